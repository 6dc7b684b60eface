"""
Common configuration settings used throughout the application.

This module contains globally shared configuration settings and constants: the
project layout, where the bundled tools live, where persisted user settings are
stored, and how the console logger is formatted. It also handles the loading of
user-specific configuration from an optional `config.user.yaml` file at the
project root, allowing for easy customization without modifying the source code.
"""
import os
from pathlib import Path

import yaml
from loguru import logger

# --- User-Defined Path Configuration ---
# This block loads user-specific paths from a 'config.user.yaml' file located
# at the project root. Only the location of the bundled tools is configurable.

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
USER_CONFIG_PATH = PROJECT_ROOT / "config.user.yaml"

# The directory holding the bundled dovi_tool, mkvextract and mkvmerge binaries.
# Used unless the run is told to use the tools installed on the local system.
TOOLS_DIR: Path = PROJECT_ROOT / "tools"

if USER_CONFIG_PATH.is_file():
    try:
        with USER_CONFIG_PATH.open("r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f)
        if user_config and "paths" in user_config:
            paths_config = user_config.get("paths") or {}
            tools_dir_str = paths_config.get("tools_dir")

            if tools_dir_str:
                TOOLS_DIR = Path(tools_dir_str).expanduser()
    except Exception as e:
        logger.warning(f"Could not load or parse '{USER_CONFIG_PATH}': {e}")
else:
    logger.debug(f"User config '{USER_CONFIG_PATH}' not found. Using default tools directory '{TOOLS_DIR}'.")


# --- Persisted Settings ---
# The choices made in the settings prompt are remembered between runs in a small
# YAML file under the user's config directory.

SETTINGS_DIR = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "dv7todv8"
SETTINGS_FILE = SETTINGS_DIR / "settings.yaml"


# --- Logging Configuration ---

# The format string for the Loguru logger.
LOGGER_FORMAT = (
    "<green>{time:MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "WARNING", "ERROR")
DEFAULT_LOG_LEVEL = "INFO"

# Stage failures are appended to this plain text file inside the target directory,
# together with the failed command and the tool's error output.
ERROR_LOG_FILE_NAME = "DV7toDV8_error.txt"


# --- Container Settings ---

MKV_EXTENSION = ".mkv"
MKV_GLOB = f"*{MKV_EXTENSION}"
