"""Atomic file writes and exclusive file locks.

Writes go through a temp file in the target directory, are fsynced, renamed
over the target and the directory is fsynced, so a crash leaves either the old
or the new content and never a partial file.

``FileLock`` takes an exclusive ``flock`` on a sidecar ``.lock`` file. Each
lock opens its own descriptor, so it serializes threads of one process as well
as separate processes.
"""

from __future__ import annotations

import fcntl
import os
import tempfile
import time
from pathlib import Path
from typing import Any

from ..core.errors import DestinationError

__all__ = [
    "FileLock",
    "FileLockTimeout",
    "atomic_write",
]


class FileLockTimeout(DestinationError):
    """Raised when a file lock cannot be acquired in time."""

    pass


def atomic_write(file_path: Path, content: str, *, create_dirs: bool = True) -> None:
    """Atomically replace ``file_path`` with ``content``.

    Parameters
    ----------
    file_path
        Target file path
    content
        Text to write (UTF-8)
    create_dirs
        Create parent directories if needed

    Raises
    ------
    OSError
        If any step fails; the target is left untouched and the temp file is
        removed
    """
    file_path = Path(file_path)
    if create_dirs:
        file_path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=file_path.parent,
        prefix=f".{file_path.name}.tmp",
        delete=False,
    ) as tmp_file:
        tmp_path = Path(tmp_file.name)
        try:
            tmp_file.write(content)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    try:
        os.replace(tmp_path, file_path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise

    dir_fd = os.open(file_path.parent, os.O_RDONLY)
    try:
        os.fsync(dir_fd)
    finally:
        os.close(dir_fd)


class FileLock:
    """Exclusive lock on ``<path>.lock`` used as a context manager."""

    def __init__(self, path: Path, timeout: float = 10.0, poll_interval: float = 0.05) -> None:
        """Initialize file lock.

        Parameters
        ----------
        path
            File being protected; the lock lives next to it
        timeout
            Seconds to wait before giving up
        poll_interval
            Seconds between acquisition attempts
        """
        self.path = Path(path)
        self.lock_file = self.path.with_name(f"{self.path.name}.lock")
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.lock_fd: int | None = None

    def __enter__(self) -> FileLock:
        self.lock_file.parent.mkdir(parents=True, exist_ok=True)
        self.lock_fd = os.open(self.lock_file, os.O_CREAT | os.O_RDWR, 0o644)

        start_time = time.monotonic()
        while True:
            try:
                fcntl.flock(self.lock_fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
                break
            except BlockingIOError:
                if time.monotonic() - start_time > self.timeout:
                    os.close(self.lock_fd)
                    self.lock_fd = None
                    raise FileLockTimeout(
                        f"Failed to acquire lock on {self.path} after {self.timeout}s timeout"
                    ) from None
                time.sleep(self.poll_interval)

        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.lock_fd is not None:
            try:
                fcntl.flock(self.lock_fd, fcntl.LOCK_UN)
            finally:
                os.close(self.lock_fd)
                self.lock_fd = None
