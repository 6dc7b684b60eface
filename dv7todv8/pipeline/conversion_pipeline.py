from pathlib import Path
from typing import Callable, List, Optional

from loguru import logger

from ..domain.exceptions import (
    DV7toDV8Exception,
    PreflightException,
    StageFailedException,
    TargetDirectoryNotFoundException,
)
from ..domain.media import count_video_streams
from ..domain.settings import EffectiveSettings
from ..services.classification_service import ProfileClassifier
from ..services.conversion_service import DoviConverter
from ..services.ledger_service import RunLedger
from ..services.scan_service import DirectoryScanner, list_direct_candidates
from ..utils.cmd_utils import run_cmd
from ..utils.prompt_utils import ask_yes_no
from ..utils.tools import ToolPaths, Tools

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


class ConversionPipeline:
    """
    Runs one conversion batch over the target directory.

    The files are converted strictly one after another. The first stage failure
    aborts the whole batch: no later file is started and the run ledger is not
    offered, so no original is ever deleted after a failed run.

    Args:
        settings: The effective settings of the run.
        run: The command runner shared by every service; must behave like `run_cmd`.
        confirm: Asks yes/no questions (scan confirmation, deleting originals).
                 Defaults to asking on the console.
        output: Where tables and listings are written.
        tools_dir: Overrides the configured bundled tools directory.
        video_stream_counter: Inspects remuxed output; see `DoviConverter`.
    """

    def __init__(
        self,
        settings: EffectiveSettings,
        run: Callable = run_cmd,
        confirm: Callable[[str], bool] = ask_yes_no,
        output: Callable[[str], None] = print,
        tools_dir: Optional[Path] = None,
        video_stream_counter: Callable[[Path], Optional[int]] = count_video_streams,
    ):
        self.settings = settings
        self.run_cmd = run
        self.confirm = confirm
        self.output = output
        self.tools_dir = tools_dir
        self.video_stream_counter = video_stream_counter
        self.ledger = RunLedger(confirm=confirm, output=output)

    def preflight(self) -> ToolPaths:
        target = self.settings.target_directory
        if not target.is_dir():
            raise TargetDirectoryNotFoundException(f"Directory not found: '{target}'.")
        logger.info(f"Using {self.settings.metadata_version_policy.value} config file...")
        tool_paths = Tools.resolve(self.settings.use_system_tools, self.tools_dir)
        Tools.log_versions(tool_paths, run=self.run_cmd)
        return tool_paths

    def collect_candidates(self) -> List[Path]:
        target = self.settings.target_directory
        if self.settings.scan_first:
            classifier = ProfileClassifier(Tools.resolve_mediainfo(), run=self.run_cmd)
            scanner = DirectoryScanner(classifier, confirm=self.confirm, output=self.output)
            return scanner.scan_and_confirm(target)
        return list_direct_candidates(target)

    def convert_all(self, candidates: List[Path], tool_paths: ToolPaths):
        converter = DoviConverter(
            self.settings,
            tool_paths,
            run=self.run_cmd,
            video_stream_counter=self.video_stream_counter,
        )
        for index, source in enumerate(candidates, start=1):
            logger.info(f"[{index}/{len(candidates)}] {source.name}")
            job = converter.convert(source)
            self.ledger.record(job)

    def run(self) -> int:
        """
        Runs the batch and returns the process exit status.

        Returns:
            0 when every candidate was converted, when there was nothing to
            convert, or when the operator declined the scan confirmation;
            1 on any pre-flight or stage failure.
        """
        logger.debug(f"Effective settings: {self.settings.describe()}")
        try:
            tool_paths = self.preflight()
            candidates = self.collect_candidates()
            if not candidates:
                logger.info("No files to convert.")
                return EXIT_SUCCESS

            logger.info(f"Processing directory: '{self.settings.target_directory}'...")
            self.convert_all(candidates, tool_paths)
        except PreflightException as e:
            logger.error(f"{e} Quitting.")
            return EXIT_FAILURE
        except StageFailedException as e:
            logger.error(f"{e}. Quitting.")
            if self.ledger.succeeded:
                converted = ", ".join(p.name for p in self.ledger.succeeded)
                logger.warning(f"Converted before the failure (originals kept): {converted}")
            return EXIT_FAILURE
        except DV7toDV8Exception as e:
            logger.error(f"{e} Quitting.")
            return EXIT_FAILURE

        self.ledger.offer_deletion()
        logger.success("Done.")
        return EXIT_SUCCESS
