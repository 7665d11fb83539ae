# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Shared fixtures and test doubles for clusterloader-runner tests."""

import hashlib
import subprocess
import threading
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from clusterloader.common.config import ClusterLoaderConfig
from clusterloader.common.context import RunContext
from clusterloader.common.environment import Environment


class RecordingRunner:
    """Process runner double that records every run instead of spawning processes.

    '--help' probes are recorded separately and always succeed.

    Args:
        fail_at: Run indices that exit with status 1
        hang_at: Run indices that block until their context is done
        on_run: Callback invoked with (index, ctx, argv) before a run returns
    """

    def __init__(
        self,
        fail_at: Sequence[int] = (),
        hang_at: Sequence[int] = (),
        on_run: Callable[[int, RunContext, tuple[str, ...]], None] | None = None,
    ) -> None:
        self.fail_at = set(fail_at)
        self.hang_at = set(hang_at)
        self.on_run = on_run
        self.calls: list[tuple[str, ...]] = []
        self.contexts: list[RunContext] = []
        self.probes: list[tuple[str, ...]] = []
        self._lock = threading.Lock()

    def run_with_timeout(self, ctx: RunContext, argv: Sequence[str]) -> str:
        argv = tuple(argv)
        if len(argv) == 2 and argv[1] == "--help":
            self.probes.append(argv)
            return "Usage of clusterloader:\n  --testconfig"

        with self._lock:
            index = len(self.calls)
            self.calls.append(argv)
            self.contexts.append(ctx)

        if self.on_run is not None:
            self.on_run(index, ctx, argv)
        if index in self.hang_at:
            ctx.wait()
            raise subprocess.TimeoutExpired(list(argv), 0, output=f"run {index} killed")
        if index in self.fail_at:
            raise subprocess.CalledProcessError(1, list(argv), output=f"run {index} failed")
        return f"run {index} ok"


class FakeDownloader:
    """Downloader double that writes a fixed payload, or raises."""

    def __init__(self, payload: bytes = b"#!/bin/sh\nexit 0\n", error: Exception | None = None) -> None:
        self.payload = payload
        self.error = error
        self.calls: list[tuple[str, Path]] = []

    def download(self, url: str, dest: Path) -> None:
        self.calls.append((url, Path(dest)))
        if self.error is not None:
            raise self.error
        Path(dest).write_bytes(self.payload)


def sha256_of(path: Path) -> str:
    return hashlib.sha256(Path(path).read_bytes()).hexdigest()


@pytest.fixture(autouse=True)
def fast_poll_interval(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep polling loops responsive in tests."""
    monkeypatch.setattr(Environment, "POLL_INTERVAL", 0.01)


@pytest.fixture
def test_config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text("name: load\nnamespace:\n  number: 1\n")
    return path


@pytest.fixture
def make_config(tmp_path: Path, test_config_file: Path) -> Callable[..., ClusterLoaderConfig]:
    """Build a ClusterLoaderConfig rooted in tmp_path."""

    def _make(**kwargs) -> ClusterLoaderConfig:
        defaults = {
            "clusterloader_path": tmp_path / "bin" / "clusterloader2",
            "clusterloader_download_url": "https://example.com/clusterloader2",
            "test_config_path": test_config_file,
            "report_dir": tmp_path / "reports",
            "runs": 3,
            "timeout": 60.0,
            "nodes": 10,
        }
        defaults.update(kwargs)
        return ClusterLoaderConfig(**defaults)

    return _make


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def downloader() -> FakeDownloader:
    return FakeDownloader()
