"""
Shell hook adapter — runs ``unpack.sh`` / ``remove.sh`` with the host shell.

Hook output is not captured: it goes straight to the invoking process's
stdout/stderr so the user sees it raw.
"""

from __future__ import annotations

import logging
import shutil
import stat
import subprocess
from pathlib import Path

from zcr.adapters.base import HookBackend

logger = logging.getLogger(__name__)

_EXEC_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


class ShellHookAdapter(HookBackend):
    """Execute hook scripts as ``<shell> <script>``.

    Args:
        build_dir: Name of the reserved build-files directory in a package.
        shell: Interpreter used to run the hook.
    """

    def __init__(self, build_dir: str = "zcr-build-files", shell: str = "/bin/sh") -> None:
        super().__init__(build_dir)
        self.shell = shell

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which(self.shell) is not None

    def execute(self, path: Path, cwd: Path) -> int:
        self._make_executable(path)
        logger.debug("Executing %s (cwd=%s)", path, cwd)
        result = subprocess.run([self.shell, str(path)], cwd=cwd)
        return result.returncode

    @staticmethod
    def _make_executable(path: Path) -> None:
        mode = path.stat().st_mode
        if mode & _EXEC_BITS != _EXEC_BITS:
            try:
                path.chmod(mode | _EXEC_BITS)
            except OSError as e:
                # The hook runs through the shell, so a read-only bit is not fatal
                logger.warning("Failed to make %s executable: %s", path, e)
