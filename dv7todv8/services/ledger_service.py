"""
Keeps track of the files converted during a run and offers to delete their originals.

Deleting originals is irreversible, so it is a single decision taken once every
file has been processed, over the whole batch, and only for files whose
conversion was confirmed.
"""
from pathlib import Path
from typing import Callable, List

from loguru import logger

from ..domain.job import ConversionJob, JobOutcome
from ..utils.prompt_utils import ask_yes_no


class RunLedger:
    """
    The ordered list of source files whose conversion succeeded in this run.

    Args:
        confirm: Asks a yes/no question; defaults to reading the answer from stdin.
        output: Where the list of converted files is written.
    """

    def __init__(self, confirm: Callable[[str], bool] = ask_yes_no, output: Callable[[str], None] = print):
        self.succeeded: List[Path] = []
        self.confirm = confirm
        self.output = output
        self._consumed = False

    def record(self, job: ConversionJob):
        if job.outcome is not JobOutcome.SUCCEEDED:
            raise ValueError(f"Only succeeded jobs can be recorded; '{job.source_file.name}' is {job.outcome.value}.")
        self.succeeded.append(job.source_file)

    def offer_deletion(self) -> List[Path]:
        """
        Lists the converted files and asks once whether to delete their originals.

        Returns:
            The originals that were deleted.
        """
        if self._consumed:
            raise RuntimeError("The run ledger has already been consumed.")
        self._consumed = True

        if not self.succeeded:
            logger.debug("No files were converted; nothing to offer for deletion.")
            return []

        self.output(f"\nSuccessfully converted {len(self.succeeded)} file(s):")
        for path in self.succeeded:
            self.output(f"  {path.name}")

        if not self.confirm("Delete the original files?"):
            logger.info("Keeping the original files.")
            return []

        deleted = []
        for path in self.succeeded:
            if not path.exists():
                logger.warning(f"'{path.name}' no longer exists; skipping.")
                continue
            try:
                path.unlink()
            except OSError as e:
                logger.error(f"Could not delete '{path}': {e}")
                continue
            logger.info(f"Deleted '{path.name}'.")
            deleted.append(path)
        return deleted
