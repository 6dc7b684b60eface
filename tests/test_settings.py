from pathlib import Path

import pytest
import yaml

from dv7todv8.domain.exceptions import UsageException
from dv7todv8.domain.settings import (
    EffectiveSettings,
    MetadataVersionPolicy,
    PartialSettings,
    parse_language_codes,
)
from dv7todv8.services.settings_service import SettingsResolver, YamlSettingsStore, prompt_for_settings


class MemoryStore:
    def __init__(self, stored=None):
        self.stored = stored or PartialSettings()
        self.saved = []

    def load(self):
        return self.stored

    def save(self, settings):
        self.saved.append(settings)


def test_parse_language_codes():
    assert parse_language_codes("eng, SPA,,de,eng") == ("eng", "spa", "de")
    assert parse_language_codes("") == ()


@pytest.mark.parametrize("value", ["english", "e", "en1", "en-US"])
def test_parse_language_codes_rejects_invalid_codes(value):
    with pytest.raises(UsageException):
        parse_language_codes(value)


def test_metadata_policy_config_files():
    assert MetadataVersionPolicy.CMV4_0.config_path.name == "DV7toDV8-CMv40.json"
    assert MetadataVersionPolicy.CMV2_9.config_path.name == "DV7toDV8-CMv29.json"
    assert MetadataVersionPolicy.CMV2_9.config_path.is_file()


def test_merged_with_overrides_only_set_keys():
    base = EffectiveSettings(keep_working_files=True, language_codes=("eng",))
    merged = base.merged_with(PartialSettings(language_codes=(), use_system_tools=True))

    assert merged.keep_working_files is True
    assert merged.language_codes == ()
    assert merged.keep_all_languages
    assert merged.use_system_tools is True
    assert base.use_system_tools is False


def test_yaml_store_round_trip(tmp_path):
    store = YamlSettingsStore(tmp_path / "config" / "settings.yaml")
    store.save(PartialSettings(
        keep_working_files=True,
        language_codes=("eng", "spa"),
        metadata_version_policy=MetadataVersionPolicy.CMV2_9,
        dont_ask_again=False,
    ))

    raw = yaml.safe_load((tmp_path / "config" / "settings.yaml").read_text())
    assert raw == {
        "keepWorkingFiles": 1,
        "dontAskAgain": 0,
        "metadataVersionPolicy": 1,
        "languageFilter": "eng,spa",
    }
    loaded = store.load()
    assert loaded.keep_working_files is True
    assert loaded.language_codes == ("eng", "spa")
    assert loaded.metadata_version_policy is MetadataVersionPolicy.CMV2_9
    assert loaded.use_system_tools is None


def test_yaml_store_save_keeps_unrelated_keys(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("useSystemTools: 1\n")
    YamlSettingsStore(path).save(PartialSettings(keep_working_files=False))

    assert yaml.safe_load(path.read_text()) == {"useSystemTools": 1, "keepWorkingFiles": 0}


def test_yaml_store_tolerates_bad_content(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("keepWorkingFiles: maybe\nlanguageFilter: 'english'\nuseSystemTools: '1'\n")

    loaded = YamlSettingsStore(path).load()
    assert loaded.keep_working_files is None
    assert loaded.language_codes is None
    assert loaded.use_system_tools is True


@pytest.mark.parametrize("content", ["", "- a list\n", "key: [unclosed\n"])
def test_yaml_store_ignores_unusable_files(tmp_path, content):
    path = tmp_path / "settings.yaml"
    path.write_text(content)
    assert YamlSettingsStore(path).load().is_empty()


def test_missing_store_file_loads_nothing(tmp_path):
    assert YamlSettingsStore(tmp_path / "absent.yaml").load().is_empty()


def test_command_line_wins_over_stored_settings(tmp_path):
    store = MemoryStore(PartialSettings(keep_working_files=True, language_codes=("eng",), dont_ask_again=True))
    resolver = SettingsResolver(store=store, prompt=pytest.fail, is_interactive=lambda: True)

    settings = resolver.resolve(PartialSettings(language_codes=("spa",), target_directory=tmp_path), explicit=True)

    assert settings.keep_working_files is True
    assert settings.language_codes == ("spa",)
    assert settings.target_directory == tmp_path.resolve()


def test_prompt_runs_when_not_suppressed(tmp_path):
    store = MemoryStore()
    answers = PartialSettings(use_system_tools=True, dont_ask_again=True)
    prompted = []

    def prompt(current):
        prompted.append(current)
        return answers

    resolver = SettingsResolver(store=store, prompt=prompt, is_interactive=lambda: True)
    settings = resolver.resolve(PartialSettings(target_directory=tmp_path))

    assert len(prompted) == 1
    assert store.saved == [answers]
    assert settings.use_system_tools is True


def test_dont_ask_again_suppresses_prompt(tmp_path):
    store = MemoryStore(PartialSettings(dont_ask_again=True))
    resolver = SettingsResolver(store=store, prompt=pytest.fail, is_interactive=lambda: True)
    resolver.resolve(PartialSettings(target_directory=tmp_path))
    assert store.saved == []


def test_show_settings_forces_prompt(tmp_path):
    store = MemoryStore(PartialSettings(dont_ask_again=True))
    resolver = SettingsResolver(store=store, prompt=lambda current: PartialSettings(), is_interactive=lambda: True)
    resolver.resolve(PartialSettings(keep_working_files=True), explicit=True, force_prompt=True)
    assert store.saved == [PartialSettings()]


def test_prompt_is_skipped_without_a_terminal(tmp_path):
    store = MemoryStore()
    resolver = SettingsResolver(store=store, prompt=pytest.fail, is_interactive=lambda: False)
    settings = resolver.resolve(PartialSettings(target_directory=tmp_path))
    assert settings == EffectiveSettings(target_directory=tmp_path.resolve())


def test_target_defaults_to_current_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    resolver = SettingsResolver(is_interactive=lambda: False)
    assert resolver.resolve(PartialSettings()).target_directory == Path(tmp_path).resolve()


def feed_input(monkeypatch, answers):
    """Answers console questions in order; once exhausted, stdin is closed."""
    remaining = list(answers)

    def fake_input(prompt=""):
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    monkeypatch.setattr("builtins.input", fake_input)


def test_prompt_enter_keeps_current_values(monkeypatch):
    feed_input(monkeypatch, ["", "", "", "", ""])
    current = EffectiveSettings(keep_working_files=True, language_codes=("eng",))

    answers = prompt_for_settings(current)

    assert answers == PartialSettings(
        keep_working_files=True,
        language_codes=("eng",),
        metadata_version_policy=MetadataVersionPolicy.CMV4_0,
        use_system_tools=False,
        dont_ask_again=False,
    )


def test_prompt_dash_keeps_all_languages(monkeypatch):
    feed_input(monkeypatch, ["y", "-", "y", "n", "y"])

    answers = prompt_for_settings(EffectiveSettings(language_codes=("eng",)))

    assert answers.keep_working_files is True
    assert answers.language_codes == ()
    assert answers.metadata_version_policy is MetadataVersionPolicy.CMV2_9
    assert answers.use_system_tools is False
    assert answers.dont_ask_again is True


def test_prompt_asks_again_after_invalid_language(monkeypatch, capsys):
    feed_input(monkeypatch, ["", "english", "eng,SPA", "", "", ""])

    answers = prompt_for_settings(EffectiveSettings())

    assert answers.language_codes == ("eng", "spa")
    assert "Invalid language code 'english'" in capsys.readouterr().out


def test_prompt_closed_stdin_keeps_current_values(monkeypatch):
    feed_input(monkeypatch, [])
    current = EffectiveSettings(language_codes=("de",), use_system_tools=True)

    answers = prompt_for_settings(current)

    assert answers.language_codes == ("de",)
    assert answers.use_system_tools is True
    assert answers.keep_working_files is False
