"""File and process helpers used when redirecting a sub-process's standard I/O."""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
import tempfile
import time
from pathlib import Path
from typing import BinaryIO

_POLL_INTERVAL = 0.1


class WriteFailedError(Exception):
    """Raised when an expected output file does not appear in time."""

    def __init__(self, path: str, timeout: int) -> None:
        self.path = path
        self.timeout = timeout
        super().__init__(
            f"Write failed for file '{path}' after {timeout} miliseconds"
        )


def _strip_append_flag(path: str) -> tuple[str, bool]:
    if path.startswith("+"):
        return path[1:], True
    return path, False


def command_exists(cmd: str) -> bool:
    """Return True if *cmd* is found as an executable on the search path."""
    if not cmd:
        return False
    return bool(shutil.which(cmd))


def do_sync() -> None:
    """Flush file-system buffers by running ``sync``; warn on failure."""
    try:
        subprocess.run(["sync"], check=False)
    except OSError as e:
        print(f"o-o: warning: failed to execute sync command: {e}", file=sys.stderr)


def open_file_with_mode(path: str) -> BinaryIO:
    """Open *path* for writing; a leading ``+`` means append instead of truncate."""
    clean_path, append = _strip_append_flag(path)
    mode = "ab" if append else "wb"
    try:
        return open(clean_path, mode)
    except OSError as e:
        raise OSError(e.errno, f"Failed to open file: {clean_path}") from e


def create_temp_file(tempdir_placeholder: str | None = None) -> Path:
    """Return a fresh, unique temporary file path.

    When a directory is given the name is made there with the prefix
    ``tempfile``. The file itself is removed again; only the path is kept.
    """
    if tempdir_placeholder is not None:
        handle = tempfile.NamedTemporaryFile(prefix="tempfile", dir=tempdir_placeholder)
    else:
        handle = tempfile.NamedTemporaryFile()
    with handle:
        return Path(handle.name)


def wait_for_file_existence_with_mode(file_path: str, timeout: int) -> None:
    """Wait until the file (``+`` prefix ignored) exists, for up to *timeout* ms."""
    clean_path, _ = _strip_append_flag(file_path)
    path = Path(clean_path)
    start = time.monotonic()
    while not path.exists():
        elapsed_ms = int((time.monotonic() - start) * 1000)
        if elapsed_ms >= timeout:
            raise WriteFailedError(os.fspath(path), timeout)
        time.sleep(_POLL_INTERVAL)