"""
Resolves the settings for a run from their layers.

The layers, lowest priority first:

1. Built-in defaults (`EffectiveSettings()` with the current directory as target).
2. The persisted settings store, holding the choices made in an earlier
   settings prompt.
3. The answers to the settings prompt, when the prompt runs this time.
4. Flags given on the command line.

Giving any configuring flag makes the run "explicit": the prompt is then
suppressed regardless of the stored "don't ask again" choice, unless
`--show-settings` forces it.
"""
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml
from loguru import logger

from ..config.common import SETTINGS_FILE
from ..domain.exceptions import UsageException
from ..domain.settings import (
    EffectiveSettings,
    MetadataVersionPolicy,
    PartialSettings,
    parse_language_codes,
)
from ..utils.prompt_utils import ask_yes_no

# Keys of the persisted store and the settings fields they map to.
KEEP_WORKING_FILES_KEY = "keepWorkingFiles"
LANGUAGE_FILTER_KEY = "languageFilter"
METADATA_VERSION_POLICY_KEY = "metadataVersionPolicy"
USE_SYSTEM_TOOLS_KEY = "useSystemTools"
DONT_ASK_AGAIN_KEY = "dontAskAgain"

BOOLEAN_KEYS = {
    KEEP_WORKING_FILES_KEY: "keep_working_files",
    USE_SYSTEM_TOOLS_KEY: "use_system_tools",
    DONT_ASK_AGAIN_KEY: "dont_ask_again",
}


def _read_flag(values: Dict[str, Any], key: str) -> Optional[bool]:
    """Reads a 0/1 value; anything else is treated as unset."""
    if key not in values:
        return None
    value = values[key]
    if isinstance(value, bool):
        return value
    if value in (0, 1, "0", "1"):
        return int(value) == 1
    logger.warning(f"Ignoring stored setting '{key}': expected 0 or 1, got {value!r}.")
    return None


class NullSettingsStore:
    """A store for environments without persisted settings. Loads nothing, saves nothing."""

    def load(self) -> PartialSettings:
        return PartialSettings()

    def save(self, settings: PartialSettings):
        logger.debug("No settings store available; not persisting settings.")


class YamlSettingsStore:
    """
    Persists settings as a flat YAML mapping of 0/1 flags and a language string.

    Reading never fails: a missing or unreadable file, or a missing or malformed
    key, leaves the corresponding setting unset so the lower layer's value wins.
    """

    def __init__(self, path: Path = SETTINGS_FILE):
        self.path = path

    def _read_raw(self) -> Dict[str, Any]:
        if not self.path.is_file():
            logger.debug(f"Settings file '{self.path}' not found. Using defaults.")
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                values = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Could not read settings file '{self.path}': {e}")
            return {}
        if not isinstance(values, dict):
            logger.warning(f"Settings file '{self.path}' does not contain a mapping. Ignoring it.")
            return {}
        return values

    def load(self) -> PartialSettings:
        values = self._read_raw()
        loaded: Dict[str, Any] = {
            field_name: _read_flag(values, key) for key, field_name in BOOLEAN_KEYS.items()
        }

        remove_cmv4 = _read_flag(values, METADATA_VERSION_POLICY_KEY)
        if remove_cmv4 is not None:
            loaded["metadata_version_policy"] = (
                MetadataVersionPolicy.CMV2_9 if remove_cmv4 else MetadataVersionPolicy.CMV4_0
            )

        if LANGUAGE_FILTER_KEY in values:
            raw_languages = values[LANGUAGE_FILTER_KEY]
            try:
                loaded["language_codes"] = parse_language_codes(str(raw_languages or ""))
            except UsageException as e:
                logger.warning(f"Ignoring stored setting '{LANGUAGE_FILTER_KEY}': {e}")

        return PartialSettings(**loaded)

    def save(self, settings: PartialSettings):
        """Writes every key `settings` sets, keeping the stored values of the others."""
        values = self._read_raw()
        for key, field_name in BOOLEAN_KEYS.items():
            value = getattr(settings, field_name)
            if value is not None:
                values[key] = int(value)
        if settings.metadata_version_policy is not None:
            values[METADATA_VERSION_POLICY_KEY] = int(settings.metadata_version_policy is MetadataVersionPolicy.CMV2_9)
        if settings.language_codes is not None:
            values[LANGUAGE_FILTER_KEY] = ",".join(settings.language_codes)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as f:
                yaml.dump(values, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
            logger.debug(f"Saved settings to '{self.path}'.")
        except OSError as e:
            logger.error(f"Could not save settings to '{self.path}': {e}")


def prompt_for_settings(current: EffectiveSettings) -> PartialSettings:
    """
    Asks for each persisted setting on the console, offering the current value.

    Returns:
        The answers, including whether to skip this prompt on later runs.
    """
    print("\nDV7toDV8 settings (press Enter to keep the value shown)\n")
    keep_working_files = ask_yes_no("Keep working files?", current.keep_working_files)

    shown_languages = ",".join(current.language_codes)
    while True:
        try:
            raw_languages = input(
                f"Audio/subtitle languages to keep, comma-separated, '-' for all [{shown_languages or 'all'}]: "
            ).strip()
        except EOFError:
            raw_languages = ""
        if not raw_languages:
            language_codes = current.language_codes
            break
        if raw_languages == "-":
            language_codes = ()
            break
        try:
            language_codes = parse_language_codes(raw_languages)
            break
        except UsageException as e:
            print(e)

    remove_cmv4 = ask_yes_no(
        "Remove CMv4.0 metadata and keep CMv2.9?",
        current.metadata_version_policy is MetadataVersionPolicy.CMV2_9,
    )
    use_system_tools = ask_yes_no("Use tools installed on this system?", current.use_system_tools)
    dont_ask_again = ask_yes_no("Don't ask again?", current.dont_ask_again)

    return PartialSettings(
        keep_working_files=keep_working_files,
        language_codes=language_codes,
        metadata_version_policy=MetadataVersionPolicy.CMV2_9 if remove_cmv4 else MetadataVersionPolicy.CMV4_0,
        use_system_tools=use_system_tools,
        dont_ask_again=dont_ask_again,
    )


class SettingsResolver:
    """
    Merges the settings layers into one `EffectiveSettings`.

    Args:
        store: Any object with `load() -> PartialSettings` and `save(PartialSettings)`.
        prompt: Called with the settings resolved so far when the prompt should run;
                returns the answers as a `PartialSettings`.
        is_interactive: Tells whether a prompt can be shown (stdin is a terminal).
    """

    def __init__(
        self,
        store=None,
        prompt: Callable[[EffectiveSettings], PartialSettings] = prompt_for_settings,
        is_interactive: Callable[[], bool] = lambda: sys.stdin.isatty(),
    ):
        self.store = store if store is not None else NullSettingsStore()
        self.prompt = prompt
        self.is_interactive = is_interactive

    @staticmethod
    def defaults() -> EffectiveSettings:
        return EffectiveSettings(target_directory=Path.cwd())

    def should_prompt(self, stored: EffectiveSettings, explicit: bool, force_prompt: bool) -> bool:
        if force_prompt:
            return True
        if explicit:
            return False
        return not stored.dont_ask_again

    def resolve(self, cli: PartialSettings, explicit: bool = False, force_prompt: bool = False) -> EffectiveSettings:
        """
        Builds the effective settings for this run.

        Args:
            cli: The layer built from command-line flags.
            explicit: True when any configuring flag was given.
            force_prompt: True when `--show-settings` was given.
        """
        settings = self.defaults().merged_with(self.store.load())

        if self.should_prompt(settings, explicit, force_prompt):
            if self.is_interactive():
                logger.info("Prompting for settings...")
                answers = self.prompt(settings)
                self.store.save(answers)
                settings = settings.merged_with(answers)
            else:
                logger.warning("Not running in an interactive terminal; skipping the settings prompt.")

        settings = settings.merged_with(cli)
        target = settings.target_directory.expanduser()
        return settings.merged_with(PartialSettings(target_directory=target.resolve()))
