"""
Classifies MKV files by Dolby Vision profile.

The HDR format profile of the video track is read with mediainfo and mapped to
DV7, DV8 or no Dolby Vision at all. Whether a file was already converted, or has
an archived enhancement layer, is decided by looking for sibling files named
after it. Classification only reads from the filesystem, so calling it again on
an unchanged directory gives the same answer.
"""
import re
from pathlib import Path
from typing import Callable

from loguru import logger

from ..config.dovi import MEDIAINFO, MEDIAINFO_PROFILE_INFORM
from ..domain.media import (
    DVProfile,
    MediaFile,
    archival_el_rpu_path_for,
    converted_path_for,
    is_converted_output,
)
from ..utils.cmd_utils import run_cmd

# Codec profile identifiers such as "dvhe.07.06" or "dvav.08.03".
CODEC_PROFILE_PATTERN = re.compile(r"dv[a-z0-9]{2}\.(\d{2})", re.IGNORECASE)


def map_profile(hdr_format_profile: str) -> DVProfile:
    """
    Maps a mediainfo HDR format profile descriptor to a Dolby Vision profile family.

    Descriptors without a Dolby Vision marker map to `DVProfile.NONE`. An explicit
    codec profile identifier (``dvhe.07``) decides when present, and any profile
    other than 7 or 8 (e.g. ``dvhe.05``) maps to `DVProfile.NONE`. Otherwise the
    bare profile numbers are matched, with ``08`` taking precedence over ``07``.
    """
    descriptor = hdr_format_profile.strip().lower()
    if "dv" not in descriptor:
        return DVProfile.NONE

    match = CODEC_PROFILE_PATTERN.search(descriptor)
    if match:
        if match.group(1) == "07":
            return DVProfile.DV7
        if match.group(1) == "08":
            return DVProfile.DV8
        return DVProfile.NONE

    if "08" in descriptor:
        return DVProfile.DV8
    if "07" in descriptor:
        return DVProfile.DV7
    return DVProfile.NONE


class ProfileClassifier:
    """
    Classifies container files using mediainfo.

    Args:
        mediainfo: The mediainfo command to run.
        run: The command runner; must behave like `run_cmd`.
    """

    def __init__(self, mediainfo: str = MEDIAINFO, run: Callable = run_cmd):
        self.mediainfo = mediainfo
        self.run = run

    def read_hdr_format_profile(self, path: Path) -> str:
        """Returns the HDR format profile mediainfo reports, or "" if it reports none."""
        result = self.run([self.mediainfo, MEDIAINFO_PROFILE_INFORM, str(path)], show_cmd=False)
        if result is None:
            logger.warning(f"mediainfo could not be run for '{path.name}'.")
            return ""
        if result.returncode != 0:
            logger.warning(f"mediainfo failed for '{path.name}' (rc={result.returncode}).")
            return ""
        return (result.stdout or "").strip()

    def classify(self, path: Path) -> MediaFile:
        descriptor = self.read_hdr_format_profile(path)
        dv_profile = map_profile(descriptor)

        has_converted_sibling = False
        archival_el_rpu_present = False
        if dv_profile is DVProfile.DV7 and not is_converted_output(path):
            has_converted_sibling = converted_path_for(path).is_file()
        elif dv_profile is DVProfile.DV8:
            archival_el_rpu_present = archival_el_rpu_path_for(path).is_file()

        media_file = MediaFile(
            path=path,
            dv_profile=dv_profile,
            hdr_format_profile=descriptor,
            has_converted_sibling=has_converted_sibling,
            archival_el_rpu_present=archival_el_rpu_present,
        )
        logger.trace(f"Classified '{path.name}': {media_file}")
        return media_file
