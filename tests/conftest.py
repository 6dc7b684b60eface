"""Shared fixtures: a fake command runner standing in for the external tools."""

import subprocess
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from dv7todv8.domain.settings import EffectiveSettings
from dv7todv8.utils.tools import ToolPaths

LARGE_EL_SIZE = 50_000_000
SMALL_EL_SIZE = 1_000


def _make_file(path: Path, size: int = 16) -> None:
    with open(path, "wb") as f:
        f.truncate(size)


def _value_after(cmd: List[str], flag: str) -> str:
    return cmd[cmd.index(flag) + 1]


class FakeRunner:
    """
    Mimics run_cmd for mkvextract, dovi_tool, mkvmerge and mediainfo.

    Each invocation is recorded and creates the file the real tool would write.
    `fail` maps an operation name to a predicate over the command; when it
    matches, the tool exits with status 1 and writes nothing. Operations in
    `no_output` exit 0 without writing their output.
    """

    def __init__(self, el_size: int = LARGE_EL_SIZE, profiles: Optional[Dict[str, str]] = None):
        self.el_size = el_size
        self.profiles = profiles or {}
        self.calls: List[List[str]] = []
        self.fail: Dict[str, Callable[[List[str]], bool]] = {}
        self.no_output: set = set()

    @staticmethod
    def operation(cmd: List[str]) -> str:
        tool = Path(cmd[0]).name
        if "--version" in cmd:
            return "version"
        if tool == "mkvextract":
            return "extract"
        if tool == "mkvmerge":
            return "remux"
        if tool == "mediainfo":
            return "mediainfo"
        for op in ("demux", "convert", "extract-rpu", "plot"):
            if op in cmd:
                return op
        raise AssertionError(f"unexpected command {cmd}")

    def output_of(self, op: str, cmd: List[str]) -> Optional[Path]:
        if op == "extract":
            return Path(cmd[3].split(":", 1)[1])
        if op == "demux":
            return Path(_value_after(cmd, "-e"))
        if op in ("convert", "extract-rpu", "plot", "remux"):
            return Path(_value_after(cmd, "-o"))
        return None

    def operations(self) -> List[str]:
        return [self.operation(cmd) for cmd in self.calls if self.operation(cmd) not in ("version", "mediainfo")]

    def __call__(self, cmd: List[str], show_cmd: bool = True):
        self.calls.append(list(cmd))
        op = self.operation(cmd)

        if op == "version":
            return subprocess.CompletedProcess(cmd, 0, f"{Path(cmd[0]).name} 1.0.0\n", "")
        if op == "mediainfo":
            return subprocess.CompletedProcess(cmd, 0, self.profiles.get(Path(cmd[-1]).name, "") + "\n", "")

        predicate = self.fail.get(op)
        if predicate is not None and predicate(cmd):
            return subprocess.CompletedProcess(cmd, 1, "", f"{op} failed")

        output = self.output_of(op, cmd)
        if op not in self.no_output and output is not None:
            _make_file(output, self.el_size if op == "demux" else 16)
        return subprocess.CompletedProcess(cmd, 0, "", "")


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def tool_paths():
    return ToolPaths(dovi_tool="dovi_tool", mkvextract="mkvextract", mkvmerge="mkvmerge")


@pytest.fixture
def make_settings(tmp_path):
    def _make(**overrides) -> EffectiveSettings:
        values = {"target_directory": tmp_path, "use_system_tools": True}
        values.update(overrides)
        return EffectiveSettings(**values)

    return _make


@pytest.fixture
def make_mkv(tmp_path):
    def _make(name: str, size: int = 1024) -> Path:
        path = tmp_path / name
        _make_file(path, size)
        return path

    return _make


@pytest.fixture
def system_tools(monkeypatch):
    """Pretends every external tool is installed on the search path."""
    monkeypatch.setattr("dv7todv8.utils.tools.shutil.which", lambda tool: f"/usr/bin/{tool}")
