from pathlib import Path

import pytest

import main
from dv7todv8.cli import cli_layer_from_args, get_args
from dv7todv8.domain.exceptions import UsageException
from dv7todv8.domain.settings import MetadataVersionPolicy, PartialSettings


def layer(*argv):
    return cli_layer_from_args(get_args(list(argv)))


def test_no_flags_sets_nothing():
    cli = layer()
    assert cli.settings.is_empty()
    assert not cli.explicit
    assert not cli.force_prompt


def test_flags_build_the_command_line_layer():
    cli = layer("-k", "-l", "eng,spa", "-r", "-u", "-S", "/media/movies")

    assert cli.settings == PartialSettings(
        keep_working_files=True,
        language_codes=("eng", "spa"),
        metadata_version_policy=MetadataVersionPolicy.CMV2_9,
        use_system_tools=True,
        scan_first=True,
        target_directory=Path("/media/movies"),
    )
    assert cli.explicit


def test_target_directory_alone_is_not_explicit():
    cli = layer("/media/movies")
    assert cli.settings.target_directory == Path("/media/movies")
    assert not cli.explicit


def test_show_settings_forces_the_prompt():
    cli = layer("-s", "-k")
    assert cli.force_prompt
    assert cli.explicit


def test_log_level_is_case_insensitive():
    assert get_args(["--log-level", "debug"]).log_level == "DEBUG"


@pytest.mark.parametrize(
    "argv",
    [["--bogus"], ["-l", "english"], ["a", "b"], ["--log-level", "loud"], ["--sc"], ["--keep"]],
)
def test_invalid_usage_raises(argv):
    with pytest.raises(UsageException):
        get_args(argv)


def test_main_exits_1_on_unsupported_flag():
    assert main.main(["--bogus"]) == 1


def test_help_exits_0(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main.main(["--help"])
    assert excinfo.value.code == 0
    assert "--remove-cmv4" in capsys.readouterr().out


def test_main_runs_the_pipeline(monkeypatch, tmp_path):
    captured = {}

    class FakePipeline:
        def __init__(self, settings):
            captured["settings"] = settings

        def run(self):
            return 0

    monkeypatch.setattr(main, "YamlSettingsStore", lambda: None)
    monkeypatch.setattr(main, "ConversionPipeline", FakePipeline)

    assert main.main(["-k", "-u", str(tmp_path)]) == 0
    settings = captured["settings"]
    assert settings.keep_working_files
    assert settings.use_system_tools
    assert settings.target_directory == tmp_path.resolve()
