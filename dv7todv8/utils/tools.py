"""
This module provides the Tools class to locate and verify the external tools
required by the application: dovi_tool, mkvextract and mkvmerge for the
conversion, and mediainfo for the directory scan.
"""
import os
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional

from loguru import logger

from ..config.common import TOOLS_DIR
from ..config.dovi import DOVI_TOOL, MEDIAINFO, MKVEXTRACT, MKVMERGE, REQUIRED_TOOLS
from ..domain.exceptions import ScanDependencyException, ToolNotFoundException
from .cmd_utils import run_cmd


@dataclass(frozen=True)
class ToolPaths:
    """The command (a bare name or an absolute path) used for each conversion tool."""

    dovi_tool: str
    mkvextract: str
    mkvmerge: str

    def as_dict(self) -> Dict[str, str]:
        return {DOVI_TOOL: self.dovi_tool, MKVEXTRACT: self.mkvextract, MKVMERGE: self.mkvmerge}


class Tools:
    """
    A utility class for resolving external tools before a run starts.

    Tools come from one of two places: the system search path, or the bundled
    tools directory (`tools/` beside the project, or `paths.tools_dir` in the
    user's `config.user.yaml`). Resolution is a pre-flight check: a tool that
    cannot be found raises before any file is touched.
    """

    @staticmethod
    def executable_name(tool: str) -> str:
        return f"{tool}.exe" if sys.platform == "win32" else tool

    @staticmethod
    def _resolve_system(tool: str) -> str:
        if shutil.which(tool) is None:
            raise ToolNotFoundException(tool, "the system path")
        return tool

    @staticmethod
    def _resolve_bundled(tool: str, tools_dir: Path) -> str:
        bundled_path = tools_dir / Tools.executable_name(tool)
        if not bundled_path.is_file() or not os.access(bundled_path, os.X_OK):
            raise ToolNotFoundException(tool, f"the bundled tools directory '{tools_dir}'")
        return str(bundled_path)

    @staticmethod
    def resolve(use_system_tools: bool, tools_dir: Optional[Path] = None) -> ToolPaths:
        """
        Resolves every tool the conversion pipeline needs.

        Args:
            use_system_tools: Look the tools up on the search path instead of in
                              the bundled tools directory.
            tools_dir: Overrides the configured bundled tools directory.

        Raises:
            ToolNotFoundException: For the first tool that cannot be resolved.
        """
        tools_dir = tools_dir or TOOLS_DIR
        resolved = {}
        for tool in REQUIRED_TOOLS:
            if use_system_tools:
                resolved[tool] = Tools._resolve_system(tool)
            else:
                resolved[tool] = Tools._resolve_bundled(tool, tools_dir)
        if use_system_tools:
            logger.info("Using local system tools...")
        else:
            logger.info(f"Using bundled tools from '{tools_dir}'...")
        return ToolPaths(
            dovi_tool=resolved[DOVI_TOOL],
            mkvextract=resolved[MKVEXTRACT],
            mkvmerge=resolved[MKVMERGE],
        )

    @staticmethod
    def resolve_mediainfo() -> str:
        """
        Resolves mediainfo, which only the directory scan needs.

        Raises:
            ScanDependencyException: If mediainfo is not on the system path.
        """
        if shutil.which(MEDIAINFO) is None:
            raise ScanDependencyException(
                "mediainfo is required to scan a directory. Install it with your package manager "
                "(e.g. 'brew install mediainfo' or 'apt install mediainfo')."
            )
        return MEDIAINFO

    @staticmethod
    def log_versions(tool_paths: ToolPaths, run: Callable = run_cmd):
        """
        Logs the first line of `--version` output for each resolved tool.

        A tool that fails to report its version is only warned about: resolution
        already proved it exists, and its real failures surface in the pipeline.
        """
        for tool, command in tool_paths.as_dict().items():
            result = run([command, "--version"], show_cmd=False)
            if result is None or result.returncode != 0:
                logger.warning(f"Could not determine the version of {tool} ('{command}').")
                continue
            output_lines = (result.stdout or result.stderr or "").strip().splitlines()
            logger.debug(f"{tool}: {output_lines[0] if output_lines else 'unknown version'}")
