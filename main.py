"""
Main entry point for the DV7toDV8 application.

This script configures logging, parses command-line arguments, resolves the
settings for the run and launches the conversion pipeline over the target
directory. The pipeline's result becomes the process exit status.
"""

import sys
from typing import List, Optional

from loguru import logger

from dv7todv8.cli import build_parser, cli_layer_from_args, get_args
from dv7todv8.config.common import DEFAULT_LOG_LEVEL, LOGGER_FORMAT
from dv7todv8.domain.exceptions import UsageException
from dv7todv8.pipeline.conversion_pipeline import EXIT_FAILURE, ConversionPipeline
from dv7todv8.services.settings_service import SettingsResolver, YamlSettingsStore


# Configure the logger for initial setup.
# The level might be overridden later by command-line arguments.
logger.remove()
logger.add(sys.stderr, level=DEFAULT_LOG_LEVEL, format=LOGGER_FORMAT)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Runs DV7toDV8 and returns the exit status.

    1. Parses command-line arguments; an unsupported flag exits with status 1.
    2. Re-configures the logger with the requested level.
    3. Resolves the effective settings from the defaults, the persisted settings,
       the settings prompt (when it applies) and the command line.
    4. Runs the conversion pipeline.
    """
    try:
        args = get_args(argv)
    except UsageException as e:
        logger.error(f"Error: {e}. Quitting.")
        build_parser().print_usage(sys.stderr)
        return EXIT_FAILURE

    logger.remove()
    logger.add(sys.stderr, level=args.log_level, format=LOGGER_FORMAT)
    logger.debug(f"Parsed arguments: {args}")

    cli_layer = cli_layer_from_args(args)
    resolver = SettingsResolver(store=YamlSettingsStore())
    settings = resolver.resolve(
        cli_layer.settings,
        explicit=cli_layer.explicit,
        force_prompt=cli_layer.force_prompt,
    )

    return ConversionPipeline(settings).run()


if __name__ == "__main__":
    sys.exit(main())
