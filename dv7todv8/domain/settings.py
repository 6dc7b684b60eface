"""
Defines the settings models for a conversion run.

Settings come in layers. Each layer (the persisted store, the settings prompt,
the command line) is a `PartialSettings` in which `None` means "this layer does
not set the key". The layers are applied in order over the built-in defaults to
produce one `EffectiveSettings`, which is immutable for the rest of the run.
"""
import re
from dataclasses import dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from ..config.dovi import CMV29_CONFIG, CMV40_CONFIG
from .exceptions import UsageException

LANGUAGE_CODE_PATTERN = re.compile(r"^[a-z]{2,3}$")


class MetadataVersionPolicy(Enum):
    """Which content mapping metadata version the converted RPU keeps."""

    CMV4_0 = "CMv4.0"
    CMV2_9 = "CMv2.9"

    @property
    def config_path(self) -> Path:
        """The dovi_tool edit configuration used for this policy."""
        return CMV29_CONFIG if self is MetadataVersionPolicy.CMV2_9 else CMV40_CONFIG


def parse_language_codes(value: str) -> Tuple[str, ...]:
    """
    Parses a comma-separated list of language codes.

    Both ISO 639-1 (``en``) and ISO 639-2 (``eng``) codes are accepted, since
    mkvmerge understands both. Whitespace and empty entries are ignored, and an
    empty string means "keep all tracks", returned as an empty tuple.

    Raises:
        UsageException: If an entry is not a 2- or 3-letter code.
    """
    codes = []
    for raw_code in value.split(","):
        code = raw_code.strip().lower()
        if not code:
            continue
        if not LANGUAGE_CODE_PATTERN.match(code):
            raise UsageException(f"Invalid language code '{raw_code.strip()}'. Use 2- or 3-letter codes such as 'en' or 'eng'.")
        if code not in codes:
            codes.append(code)
    return tuple(codes)


@dataclass(frozen=True)
class PartialSettings:
    """One settings layer. A field left as `None` is not set by this layer."""

    keep_working_files: Optional[bool] = None
    language_codes: Optional[Tuple[str, ...]] = None
    metadata_version_policy: Optional[MetadataVersionPolicy] = None
    use_system_tools: Optional[bool] = None
    target_directory: Optional[Path] = None
    scan_first: Optional[bool] = None
    dont_ask_again: Optional[bool] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))


@dataclass(frozen=True)
class EffectiveSettings:
    """The resolved configuration for one run."""

    keep_working_files: bool = False
    language_codes: Tuple[str, ...] = ()
    metadata_version_policy: MetadataVersionPolicy = MetadataVersionPolicy.CMV4_0
    use_system_tools: bool = False
    target_directory: Path = Path(".")
    scan_first: bool = False
    dont_ask_again: bool = False

    @property
    def keep_all_languages(self) -> bool:
        return not self.language_codes

    def merged_with(self, layer: PartialSettings) -> "EffectiveSettings":
        """Returns a copy with every key that `layer` sets overridden."""
        overrides = {
            f.name: getattr(layer, f.name)
            for f in fields(layer)
            if getattr(layer, f.name) is not None
        }
        return replace(self, **overrides)

    def describe(self) -> str:
        languages = ",".join(self.language_codes) if self.language_codes else "all"
        return (
            f"keep working files={self.keep_working_files}, languages={languages}, "
            f"metadata={self.metadata_version_policy.value}, system tools={self.use_system_tools}, "
            f"scan first={self.scan_first}, target='{self.target_directory}'"
        )
