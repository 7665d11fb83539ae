# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Collaborator interfaces consumed by the orchestrator.

The default implementations live in fileutil, httputil and process. Tests and
embedding callers may substitute any object that satisfies these protocols.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from clusterloader.common.context import RunContext


@runtime_checkable
class FilesystemProtocol(Protocol):
    """Filesystem probe used for preconditions, provisioning and rendering."""

    def exists(self, path: Path) -> bool: ...

    def is_writable_dir(self, path: Path) -> None: ...

    def ensure_executable(self, path: Path) -> None: ...

    def write_temp_file(self, data: bytes) -> Path: ...


@runtime_checkable
class DownloaderProtocol(Protocol):
    """Fetches a remote file to a local path."""

    def download(self, url: str, dest: Path) -> None: ...


@runtime_checkable
class ProcessRunnerProtocol(Protocol):
    """Runs one external process bounded by a RunContext."""

    def run_with_timeout(self, ctx: RunContext, argv: Sequence[str]) -> str: ...
