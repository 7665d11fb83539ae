# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Data models for the clusterloader run loop."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from clusterloader.common.exceptions import ClusterLoaderError, ClusterLoaderWarning


@dataclass(frozen=True, slots=True)
class RunAttempt:
    """One clusterloader invocation.

    Attributes:
        index: Zero-based run index
        argv: Argument vector the process was started with
        output: Combined stdout/stderr captured from the process
        error: Error the run ended with, None on success
        duration_sec: Wall-clock duration of the run
    """

    index: int
    argv: tuple[str, ...]
    output: str = ""
    error: ClusterLoaderError | None = None
    duration_sec: float = 0.0

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class ProvisionResult:
    """Outcome of making the clusterloader binary available.

    Attributes:
        path: Path of the executable (absolute if it was downloaded)
        downloaded: Whether the binary was downloaded during this provisioning
        warnings: Non-fatal problems that were logged
        probe_output: Output of the '--help' liveness probe
    """

    path: Path
    downloaded: bool
    warnings: list[ClusterLoaderWarning] = field(default_factory=list)
    probe_output: str = ""
