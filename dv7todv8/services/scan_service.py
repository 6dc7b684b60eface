"""
Scans a directory for Dolby Vision MKV files and reports their conversion state.

Only the files directly inside the directory are looked at. Each one is
classified once, and the results are partitioned into:

- DV7 files without a converted sibling: the candidates for conversion.
- DV7 files with a converted sibling: listed as converted, with the `.DV8.mkv`
  shown as a child line underneath.
- Original DV8 files: listed, nothing to do.
- Converted `.DV8.mkv` files: hidden when their parent was listed, otherwise
  listed as orphaned.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from loguru import logger

from ..config.common import MKV_GLOB
from ..domain.media import DVProfile, MediaFile, converted_path_for, is_converted_output, parent_path_for
from ..utils.format_utils import formatted_size, truncate
from ..utils.prompt_utils import ask_yes_no
from .classification_service import ProfileClassifier

STATUS_NOT_CONVERTED = "not yet converted"
STATUS_CONVERTED = "converted"
STATUS_ORIGINAL_DV8 = "original DV8"
STATUS_ORPHANED = "orphaned"

NAME_WIDTH = 60
TABLE_WIDTH = 100


@dataclass
class ScanEntry:
    media_file: MediaFile
    status: str
    child: Optional["ScanEntry"] = None


@dataclass
class ScanReport:
    directory: Path
    entries: List[ScanEntry] = field(default_factory=list)
    candidates: List[Path] = field(default_factory=list)


def list_mkv_files(directory: Path) -> List[Path]:
    """Returns the MKV files directly inside `directory`, sorted by name."""
    return sorted(p for p in directory.glob(MKV_GLOB) if p.is_file())


def list_direct_candidates(directory: Path) -> List[Path]:
    """
    The candidate list used when no scan is requested.

    Every MKV in the directory is a candidate except converted output; no
    profile classification is done.
    """
    return [p for p in list_mkv_files(directory) if not is_converted_output(p)]


class DirectoryScanner:
    """
    Classifies every MKV in a directory and asks whether to convert the candidates.

    Args:
        classifier: The `ProfileClassifier` used for every file.
        confirm: Asks a yes/no question; defaults to reading the answer from stdin.
        output: Where the table and messages are written.
    """

    def __init__(
        self,
        classifier: ProfileClassifier,
        confirm: Callable[[str], bool] = ask_yes_no,
        output: Callable[[str], None] = print,
    ):
        self.classifier = classifier
        self.confirm = confirm
        self.output = output

    def scan(self, directory: Path) -> ScanReport:
        logger.info(f"Scanning for DV files in: '{directory}'")
        report = ScanReport(directory=directory)

        classified: Dict[Path, MediaFile] = {
            path: self.classifier.classify(path) for path in list_mkv_files(directory)
        }
        claimed_children = set()

        for path, media_file in classified.items():
            if media_file.is_converted_output or media_file.dv_profile is DVProfile.NONE:
                continue
            if media_file.dv_profile is DVProfile.DV7:
                if media_file.has_converted_sibling:
                    converted = converted_path_for(path)
                    child_file = classified.get(converted) or self.classifier.classify(converted)
                    claimed_children.add(converted)
                    report.entries.append(
                        ScanEntry(media_file, STATUS_CONVERTED, child=ScanEntry(child_file, STATUS_CONVERTED))
                    )
                else:
                    report.entries.append(ScanEntry(media_file, STATUS_NOT_CONVERTED))
                    report.candidates.append(path)
            else:
                report.entries.append(ScanEntry(media_file, STATUS_ORIGINAL_DV8))

        for path, media_file in classified.items():
            if media_file.is_converted_output and path not in claimed_children:
                logger.debug(f"'{path.name}' has no parent '{parent_path_for(path).name}' in this scan.")
                report.entries.append(ScanEntry(media_file, STATUS_ORPHANED))

        logger.debug(f"Scan found {len(report.entries)} DV file(s), {len(report.candidates)} candidate(s).")
        return report

    @staticmethod
    def _row(entry: ScanEntry, child: bool = False) -> str:
        media_file = entry.media_file
        name_width = NAME_WIDTH - 5 if child else NAME_WIDTH
        name = truncate(media_file.path.name, name_width)
        if child:
            name = f"  └─ {name}"
        archive = "EL" if media_file.archival_el_rpu_present else ""
        return (
            f"{name:<{NAME_WIDTH}} {media_file.dv_profile.value:<6} "
            f"{formatted_size(media_file.size):<11} {entry.status:<18} {archive}"
        )

    @staticmethod
    def render(report: ScanReport) -> str:
        """Renders the report as a fixed-width table, one row per listed file."""
        lines = [
            f"{'Filename':<{NAME_WIDTH}} {'Type':<6} {'Size':<11} {'Status':<18} Archive",
            "-" * TABLE_WIDTH,
        ]
        for entry in report.entries:
            lines.append(DirectoryScanner._row(entry))
            if entry.child:
                lines.append(DirectoryScanner._row(entry.child, child=True))
        lines.append("-" * TABLE_WIDTH)
        return "\n".join(lines)

    def scan_and_confirm(self, directory: Path) -> List[Path]:
        """
        Scans, shows the table and asks whether to convert the candidates.

        Returns:
            The candidates to convert; empty when there are none or the operator
            declined.
        """
        report = self.scan(directory)
        self.output(self.render(report))

        if not report.candidates:
            self.output("No DV7 files need conversion.")
            return []

        self.output(f"Found {len(report.candidates)} DV7 file(s) that need conversion.")
        if not self.confirm("Convert them now?"):
            self.output("Cancelled.")
            return []
        return report.candidates
