"""
Media file models: Dolby Vision profile classification and file naming.

The conversion state of a file is never stored anywhere. It is inferred from the
files sitting next to it, using the deterministic naming scheme defined in
`config.dovi`: `movie.mkv` has been converted if `movie.DV8.mkv` exists, and a
Profile 8 file has an archived enhancement layer if `movie.DV7.EL_RPU.hevc`
exists. This is a heuristic tied to the naming scheme, not a database, so it is
re-derived every time it is needed.
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

import ffmpeg
from loguru import logger

from ..config.common import MKV_EXTENSION
from ..config.dovi import (
    BL_EL_RPU_SUFFIX,
    CONVERTED_SUFFIX,
    DV7_EL_RPU_SUFFIX,
    DV8_BL_RPU_SUFFIX,
    DV8_L1_PLOT_SUFFIX,
    DV8_RPU_SUFFIX,
    ORIGINAL_L1_PLOT_SUFFIX,
    ORIGINAL_RPU_SUFFIX,
)


class DVProfile(Enum):
    """Dolby Vision profile family of a video track."""

    DV7 = "DV7"
    DV8 = "DV8"
    NONE = "None"


def is_converted_output(path: Path) -> bool:
    """True for files carrying the converted naming marker, e.g. `movie.DV8.mkv`."""
    return path.name.endswith(CONVERTED_SUFFIX)


def source_stem(path: Path) -> str:
    """
    Returns the base name all derived files are named from.

    For a source `movie.mkv` this is `movie`; for a converted `movie.DV8.mkv` it
    is also `movie`, so both map to the same set of sibling files.
    """
    name = path.name
    if name.endswith(CONVERTED_SUFFIX):
        return name[: -len(CONVERTED_SUFFIX)]
    if name.endswith(MKV_EXTENSION):
        return name[: -len(MKV_EXTENSION)]
    return path.stem


def converted_path_for(source: Path) -> Path:
    return source.with_name(f"{source_stem(source)}{CONVERTED_SUFFIX}")


def parent_path_for(converted: Path) -> Path:
    """The source file a converted file was produced from."""
    return converted.with_name(f"{source_stem(converted)}{MKV_EXTENSION}")


def archival_el_rpu_path_for(path: Path) -> Path:
    return path.with_name(f"{source_stem(path)}{DV7_EL_RPU_SUFFIX}")


@dataclass(frozen=True)
class ArtifactPaths:
    """Every file the conversion pipeline derives from one source file."""

    bl_el_rpu: Path
    dv7_el_rpu: Path
    original_rpu: Path
    original_l1_plot: Path
    dv8_bl_rpu: Path
    dv8_rpu: Path
    dv8_l1_plot: Path
    output: Path

    @classmethod
    def for_source(cls, source: Path) -> "ArtifactPaths":
        directory = source.parent
        stem = source_stem(source)
        return cls(
            bl_el_rpu=directory / f"{stem}{BL_EL_RPU_SUFFIX}",
            dv7_el_rpu=directory / f"{stem}{DV7_EL_RPU_SUFFIX}",
            original_rpu=directory / f"{stem}{ORIGINAL_RPU_SUFFIX}",
            original_l1_plot=directory / f"{stem}{ORIGINAL_L1_PLOT_SUFFIX}",
            dv8_bl_rpu=directory / f"{stem}{DV8_BL_RPU_SUFFIX}",
            dv8_rpu=directory / f"{stem}{DV8_RPU_SUFFIX}",
            dv8_l1_plot=directory / f"{stem}{DV8_L1_PLOT_SUFFIX}",
            output=directory / f"{stem}{CONVERTED_SUFFIX}",
        )

    @property
    def working_files(self) -> Tuple[Path, ...]:
        """Intermediates deleted after a successful run unless working files are kept."""
        return self.bl_el_rpu, self.dv8_rpu, self.dv8_bl_rpu

    @property
    def archival_files(self) -> Tuple[Path, ...]:
        """Files kept for later review or for rebuilding the Profile 7 stream."""
        return self.dv7_el_rpu, self.original_rpu, self.original_l1_plot, self.dv8_l1_plot


@dataclass(frozen=True)
class MediaFile:
    """
    The classification of one MKV file at the moment it was inspected.

    Attributes:
        path: Absolute path of the container.
        dv_profile: Dolby Vision profile family of its video track.
        hdr_format_profile: The raw profile descriptor reported by mediainfo.
        has_converted_sibling: For DV7 files, whether `name.DV8.mkv` exists.
        archival_el_rpu_present: For DV8 files (original or converted), whether
            `name.DV7.EL_RPU.hevc` exists.
    """

    path: Path
    dv_profile: DVProfile
    hdr_format_profile: str = ""
    has_converted_sibling: bool = False
    archival_el_rpu_present: bool = False

    @property
    def is_converted_output(self) -> bool:
        return is_converted_output(self.path)

    @property
    def is_candidate(self) -> bool:
        return (
            self.dv_profile is DVProfile.DV7
            and not self.has_converted_sibling
            and not self.is_converted_output
        )

    @property
    def size(self) -> int:
        try:
            return self.path.stat().st_size
        except OSError:
            return 0


def count_video_streams(path: Path) -> Optional[int]:
    """
    Counts the video streams in a container using ffprobe.

    Returns:
        The number of video streams, or `None` if ffprobe is not installed and the
        container could not be inspected.

    Raises:
        ffmpeg.Error: If ffprobe ran but could not read the container.
    """
    try:
        probe = ffmpeg.probe(str(path))
    except FileNotFoundError:
        logger.warning(f"ffprobe not found; cannot inspect the streams of '{path.name}'.")
        return None
    streams = probe.get("streams", [])
    video_streams = [s for s in streams if s.get("codec_type") == "video"]
    languages = [s.get("tags", {}).get("language", "und") for s in streams if s.get("codec_type") != "video"]
    logger.debug(f"'{path.name}': {len(video_streams)} video stream(s), other track languages: {languages}")
    return len(video_streams)
