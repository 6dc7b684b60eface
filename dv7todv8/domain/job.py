"""
Defines the state of one file going through the conversion pipeline.
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from .media import ArtifactPaths


class JobOutcome(Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class ConversionJob:
    """
    One pipeline run for one source file.

    The job starts `PENDING` and ends either `SUCCEEDED`, with `output_file` set to
    the remuxed container, or `FAILED`, with `failed_stage` naming the stage that
    stopped it. `output_file` is only ever set together with `SUCCEEDED`.
    """

    source_file: Path
    artifacts: ArtifactPaths = field(init=False)
    outcome: JobOutcome = JobOutcome.PENDING
    output_file: Optional[Path] = None
    failed_stage: Optional[str] = None

    def __post_init__(self):
        self.artifacts = ArtifactPaths.for_source(self.source_file)

    def mark_succeeded(self):
        if not self.artifacts.output.is_file():
            raise RuntimeError(f"Cannot mark '{self.source_file.name}' succeeded: '{self.artifacts.output.name}' does not exist.")
        self.outcome = JobOutcome.SUCCEEDED
        self.output_file = self.artifacts.output

    def mark_failed(self, stage: str):
        self.outcome = JobOutcome.FAILED
        self.failed_stage = stage
