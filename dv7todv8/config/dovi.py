"""
Configuration settings related to Dolby Vision conversion.

This module defines the external tool names, the deterministic naming scheme for
intermediate and output files, the enhancement layer size heuristic and the
dovi_tool edit configurations used for each metadata version.
"""
from pathlib import Path

# --- External Tools ---
DOVI_TOOL = "dovi_tool"
MKVEXTRACT = "mkvextract"
MKVMERGE = "mkvmerge"
MEDIAINFO = "mediainfo"

# Tools every conversion needs. mediainfo is only needed for the directory scan.
REQUIRED_TOOLS = (DOVI_TOOL, MKVEXTRACT, MKVMERGE)

# mediainfo template returning the HDR format profile of each video track,
# e.g. "dvhe.07.06" for a Profile 7 stream.
MEDIAINFO_PROFILE_INFORM = "--Inform=Video;%HDR_Format_Profile%"

# --- Naming Scheme ---
# Every file derived from `name.mkv` is named `name` + one of these suffixes.
# The names are unique per source file and stable between runs.
BL_EL_RPU_SUFFIX = ".BL_EL_RPU.hevc"
DV7_EL_RPU_SUFFIX = ".DV7.EL_RPU.hevc"
ORIGINAL_RPU_SUFFIX = ".RPU.bin"
ORIGINAL_L1_PLOT_SUFFIX = ".L1_plot.png"
DV8_BL_RPU_SUFFIX = ".DV8.BL_RPU.hevc"
DV8_RPU_SUFFIX = ".DV8.RPU.bin"
DV8_L1_PLOT_SUFFIX = ".DV8.L1_plot.png"

# Marker distinguishing converted output from source files.
CONVERTED_MARKER = ".DV8"
CONVERTED_SUFFIX = f"{CONVERTED_MARKER}.mkv"

# --- Enhancement Layer Heuristic ---
# A genuine Profile 7 enhancement layer is large. A demuxed EL+RPU stream below
# this many bytes means the source was Profile 8-like, and its RPU (possibly
# CMv4.0) is archived before conversion.
EL_SIZE_THRESHOLD = 10_000_000

# --- dovi_tool Edit Configurations ---
DOVI_CONFIG_DIR = Path(__file__).resolve().parent / "edit_configs"
CMV40_CONFIG = DOVI_CONFIG_DIR / "DV7toDV8-CMv40.json"
CMV29_CONFIG = DOVI_CONFIG_DIR / "DV7toDV8-CMv29.json"

# mkvextract track selector for the video track of a UHD Blu-ray remux.
SOURCE_VIDEO_TRACK = 0
# Puts track 0 of the second input (the converted stream) before the source tracks.
REMUX_TRACK_ORDER = "1:0"
