"""
Tests for hook discovery and execution.
"""

import os
import shutil
import stat
import time
from datetime import datetime, timedelta

import pytest

from zcr.adapters.mock import MockHookAdapter
from zcr.adapters.shell.hooks import ShellHookAdapter
from zcr.core.services.hook_runner import HookRunner

BUILD_DIR = "zcr-build-files"


def _write_hook(package_dir, kind, body, mode=0o644):
    path = package_dir / BUILD_DIR / f"{kind}.sh"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body)
    path.chmod(mode)
    return path


@pytest.fixture
def package_dir(tmp_path):
    path = tmp_path / "hello"
    path.mkdir()
    return path


class TestLocate:
    def test_missing_build_dir(self, package_dir):
        assert ShellHookAdapter(BUILD_DIR).locate("unpack", package_dir) is None

    def test_present(self, package_dir):
        path = _write_hook(package_dir, "unpack", "exit 0\n")
        assert ShellHookAdapter(BUILD_DIR).locate("unpack", package_dir) == path

    def test_directory_named_like_hook_is_ignored(self, package_dir):
        (package_dir / BUILD_DIR / "remove.sh").mkdir(parents=True)
        assert ShellHookAdapter(BUILD_DIR).locate("remove", package_dir) is None

    def test_custom_build_dir(self, package_dir):
        (package_dir / "build").mkdir()
        (package_dir / "build" / "unpack.sh").write_text("exit 0\n")
        assert ShellHookAdapter("build").locate("unpack", package_dir) is not None


@pytest.mark.skipif(shutil.which("sh") is None, reason="no POSIX shell")
class TestShellHookAdapter:
    def test_runs_in_build_dir(self, package_dir):
        path = _write_hook(package_dir, "unpack", "pwd > where.txt\n")

        code = ShellHookAdapter(BUILD_DIR).execute(path, path.parent)

        assert code == 0
        where = (path.parent / "where.txt").read_text().strip()
        assert os.path.realpath(where) == os.path.realpath(path.parent)

    def test_sets_execute_bits(self, package_dir):
        path = _write_hook(package_dir, "unpack", "exit 0\n", mode=0o644)

        ShellHookAdapter(BUILD_DIR).execute(path, path.parent)

        mode = path.stat().st_mode
        assert mode & stat.S_IXUSR
        assert mode & stat.S_IXGRP
        assert mode & stat.S_IXOTH

    def test_returns_exit_code(self, package_dir):
        path = _write_hook(package_dir, "remove", "exit 3\n")
        assert ShellHookAdapter(BUILD_DIR).execute(path, path.parent) == 3

    def test_sibling_files_reachable(self, package_dir):
        path = _write_hook(package_dir, "unpack", "cp payload.txt ../installed.txt\n")
        (path.parent / "payload.txt").write_text("data")

        assert ShellHookAdapter(BUILD_DIR).execute(path, path.parent) == 0
        assert (package_dir / "installed.txt").read_text() == "data"


class TestHookRunner:
    def test_skip_when_missing(self, package_dir):
        receipt = HookRunner(MockHookAdapter()).run("unpack", package_dir)

        assert receipt.skipped
        assert receipt.action_id == "unpack:hello"

    def test_ok(self, package_dir):
        _write_hook(package_dir, "unpack", "exit 0\n")
        backend = MockHookAdapter()

        receipt = HookRunner(backend).run("unpack", package_dir)

        assert receipt.ok
        assert receipt.metadata["return_code"] == 0
        assert backend.executed == ["hello/unpack"]

    def test_receipt_spans_execution(self, package_dir):
        _write_hook(package_dir, "unpack", "exit 0\n")

        class SlowBackend(MockHookAdapter):
            def execute(self, path, cwd):
                time.sleep(0.01)
                return super().execute(path, cwd)

        receipt = HookRunner(SlowBackend()).run("unpack", package_dir)

        started = datetime.fromisoformat(receipt.started_at)
        ended = datetime.fromisoformat(receipt.ended_at)
        assert ended - started >= timedelta(milliseconds=10)

    def test_non_zero_exit_is_failure(self, package_dir):
        _write_hook(package_dir, "remove", "exit 1\n")
        backend = MockHookAdapter(exit_codes={"hello/remove": 4})

        receipt = HookRunner(backend).run("remove", package_dir)

        assert receipt.failed
        assert receipt.metadata["return_code"] == 4
        assert "exited with code 4" in receipt.error

    def test_spawn_failure_is_failure(self, package_dir):
        _write_hook(package_dir, "unpack", "exit 0\n")
        backend = ShellHookAdapter(BUILD_DIR, shell="/nonexistent/shell")

        receipt = HookRunner(backend).run("unpack", package_dir)

        assert receipt.failed
        assert "Cannot execute unpack.sh" in receipt.error

    def test_unknown_kind(self, package_dir):
        with pytest.raises(ValueError, match="Unknown hook kind"):
            HookRunner(MockHookAdapter()).run("install", package_dir)
