# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Filesystem helpers used by the loader."""

import os
import stat
import tempfile
import uuid
from pathlib import Path

__all__ = [
    "LocalFilesystem",
    "ensure_executable",
    "exists",
    "is_writable_dir",
    "write_temp_file",
]


def exists(path: Path) -> bool:
    """Return True if path exists (file or directory)."""
    return Path(path).exists()


def is_writable_dir(path: Path) -> None:
    """Check that path is a directory the current process can write to.

    The check writes and removes a probe file, which also catches read-only
    mounts that os.access() reports as writable.

    Raises:
        NotADirectoryError: path is not a directory.
        OSError: The probe file could not be written.
    """
    path = Path(path)
    if not path.is_dir():
        raise NotADirectoryError(f"{str(path)!r} is not a directory")
    probe = path / f".touch-{uuid.uuid4().hex}"
    probe.write_bytes(b"")
    probe.unlink()


def ensure_executable(path: Path) -> None:
    """Add the user/group/other executable bits to path.

    Raises:
        OSError: The mode could not be changed (e.g. the file is owned by another user).
    """
    path = Path(path)
    mode = path.stat().st_mode
    wanted = mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH
    if wanted != mode:
        os.chmod(path, wanted)


def write_temp_file(data: bytes) -> Path:
    """Write data to a fresh file in the system temp directory and return its path."""
    fd, name = tempfile.mkstemp(prefix="clusterloader-", suffix=".yaml")
    with os.fdopen(fd, "wb") as f:
        f.write(data)
    return Path(name)


class LocalFilesystem:
    """Default filesystem probe backed by the local filesystem."""

    def exists(self, path: Path) -> bool:
        return exists(path)

    def is_writable_dir(self, path: Path) -> None:
        is_writable_dir(path)

    def ensure_executable(self, path: Path) -> None:
        ensure_executable(path)

    def write_temp_file(self, data: bytes) -> Path:
        return write_temp_file(data)
