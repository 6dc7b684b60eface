import os
import stat
import subprocess
import sys

import pytest

from conftest import FakeRunner
from dv7todv8.domain.exceptions import ScanDependencyException, ToolNotFoundException
from dv7todv8.utils.cmd_utils import format_cmd, run_cmd
from dv7todv8.utils.format_utils import formatted_size, truncate
from dv7todv8.utils.tools import ToolPaths, Tools


def make_executable(path):
    path.write_text("#!/bin/sh\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)


def test_system_tools_resolve_to_bare_names(system_tools):
    assert Tools.resolve(use_system_tools=True) == ToolPaths("dovi_tool", "mkvextract", "mkvmerge")


def test_missing_system_tool(monkeypatch):
    monkeypatch.setattr("dv7todv8.utils.tools.shutil.which", lambda tool: None)
    with pytest.raises(ToolNotFoundException) as excinfo:
        Tools.resolve(use_system_tools=True)
    assert excinfo.value.tool == "dovi_tool"


@pytest.mark.skipif(sys.platform == "win32", reason="relies on POSIX execute bits")
def test_bundled_tools_resolve_to_absolute_paths(tmp_path):
    for tool in ("dovi_tool", "mkvextract", "mkvmerge"):
        make_executable(tmp_path / tool)

    tool_paths = Tools.resolve(use_system_tools=False, tools_dir=tmp_path)
    assert tool_paths.mkvmerge == str(tmp_path / "mkvmerge")
    assert all(os.path.isabs(p) for p in tool_paths.as_dict().values())


@pytest.mark.skipif(sys.platform == "win32", reason="relies on POSIX execute bits")
def test_bundled_tool_must_be_executable(tmp_path):
    make_executable(tmp_path / "dovi_tool")
    make_executable(tmp_path / "mkvextract")
    (tmp_path / "mkvmerge").write_text("not executable")

    with pytest.raises(ToolNotFoundException) as excinfo:
        Tools.resolve(use_system_tools=False, tools_dir=tmp_path)
    assert excinfo.value.tool == "mkvmerge"


def test_mediainfo_required_for_scan(monkeypatch):
    monkeypatch.setattr("dv7todv8.utils.tools.shutil.which", lambda tool: None)
    with pytest.raises(ScanDependencyException):
        Tools.resolve_mediainfo()


def test_log_versions_tolerates_failures(tool_paths):
    runner = FakeRunner()
    Tools.log_versions(tool_paths, run=runner)
    assert [cmd[-1] for cmd in runner.calls] == ["--version"] * 3

    Tools.log_versions(tool_paths, run=lambda cmd, show_cmd=True: None)


def test_run_cmd_missing_executable_returns_none():
    assert run_cmd(["definitely-not-a-real-dv7todv8-tool"]) is None


def test_run_cmd_captures_output():
    result = run_cmd([sys.executable, "-c", "import sys; print('out'); sys.exit(3)"])
    assert isinstance(result, subprocess.CompletedProcess)
    assert result.returncode == 3
    assert result.stdout.strip() == "out"


@pytest.mark.skipif(os.name == "nt", reason="POSIX quoting")
def test_format_cmd_quotes_spaces():
    assert format_cmd(["mkvmerge", "-o", "My Movie.DV8.mkv"]) == "mkvmerge -o 'My Movie.DV8.mkv'"


@pytest.mark.parametrize(
    "size, expected",
    [(0, "0 B"), (512, "512 B"), (1536, "1.50 KB"), (2097152, "2.00 MB")],
)
def test_formatted_size(size, expected):
    assert formatted_size(size) == expected


def test_truncate():
    assert truncate("short.mkv", 20) == "short.mkv"
    assert truncate("a-very-long-name.mkv", 10) == "a-very-lo…"
