"""
Command-Line Interface (CLI) setup for DV7toDV8.

This module uses Python's `argparse` to define and parse the command-line
arguments, and turns them into the command-line settings layer. Every flag that
configures the run also marks it as explicit, which suppresses the settings
prompt.
"""
import argparse
from pathlib import Path
from typing import List, NamedTuple, Optional

from loguru import logger

from .config.common import DEFAULT_LOG_LEVEL, LOG_LEVELS
from .domain.exceptions import UsageException
from .domain.settings import MetadataVersionPolicy, PartialSettings, parse_language_codes


class CliLayer(NamedTuple):
    settings: PartialSettings
    explicit: bool
    force_prompt: bool


class DV7toDV8ArgumentParser(argparse.ArgumentParser):
    """An argument parser that raises `UsageException` instead of exiting with status 2."""

    def error(self, message):
        raise UsageException(message)


EPILOG = """
example:
  %(prog)s -k -l eng,spa -r /path/to/folder/containing/mkvs
"""


def build_parser() -> argparse.ArgumentParser:
    parser = DV7toDV8ArgumentParser(
        prog="dv7todv8",
        allow_abbrev=False,
        description="Convert Dolby Vision Profile 7 MKV files in a directory to Profile 8.1.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-k", "--keep-files", action="store_true", help="Keep working files."
    )
    parser.add_argument(
        "-l", "--languages", type=parse_language_codes, metavar="LANGS",
        help="Comma-separated ISO 639-1 (en,es,de) or ISO 639-2 (eng,spa,ger) language codes "
             "of the audio and subtitle tracks to keep (default: keep all tracks).",
    )
    parser.add_argument(
        "-r", "--remove-cmv4", action="store_true",
        help="Remove DV CMv4.0 metadata and leave CMv2.9.",
    )
    parser.add_argument(
        "-s", "--show-settings", action="store_true",
        help="Show the settings prompt even if it was previously turned off.",
    )
    parser.add_argument(
        "-S", "--scan", action="store_true",
        help="Scan the directory for DV7 files and optionally convert them.",
    )
    parser.add_argument(
        "-u", "--use-system-tools", action="store_true",
        help="Use tools installed on the local system instead of the bundled ones.",
    )
    parser.add_argument(
        "--log-level", type=str.upper, default=DEFAULT_LOG_LEVEL, choices=LOG_LEVELS,
        help="Set the logging level.",
    )
    parser.add_argument(
        "target_dir", nargs="?", metavar="PATH",
        help="The target directory (default: current directory).",
    )
    return parser


def get_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parses command-line arguments.

    Raises:
        UsageException: For unsupported flags or invalid flag values.
    """
    return build_parser().parse_args(argv)


def cli_layer_from_args(args: argparse.Namespace) -> CliLayer:
    """Builds the command-line settings layer from the parsed arguments."""
    values = {}
    if args.keep_files:
        logger.info("Option enabled to keep working files...")
        values["keep_working_files"] = True
    if args.languages is not None:
        logger.info(f"Language codes set: '{','.join(args.languages)}'...")
        values["language_codes"] = args.languages
    if args.remove_cmv4:
        logger.info("Option enabled to remove CMv4.0...")
        values["metadata_version_policy"] = MetadataVersionPolicy.CMV2_9
    if args.use_system_tools:
        logger.info("Option enabled to use system tools...")
        values["use_system_tools"] = True
    if args.scan:
        logger.info("Option enabled to scan for DV7 files...")
        values["scan_first"] = True
    if args.target_dir:
        logger.info(f"Setting target directory: '{args.target_dir}'...")
        values["target_directory"] = Path(args.target_dir)

    explicit = any(key != "target_directory" for key in values)
    if args.show_settings:
        logger.info("Option enabled to show the settings prompt...")
    return CliLayer(PartialSettings(**values), explicit=explicit, force_prompt=args.show_settings)
