# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Exception and warning hierarchy for clusterloader-runner."""

from pathlib import Path

__all__ = [
    "ClusterLoaderError",
    "ClusterLoaderWarning",
    "ConfigNotFoundError",
    "DirectoryError",
    "DownloadError",
    "ExecutableBitWarning",
    "LoaderStateError",
    "PreconditionError",
    "ProbeWarning",
    "ProvisionError",
    "RenderError",
    "RunCancelledError",
    "RunError",
    "RunTimeoutError",
]


class ClusterLoaderError(Exception):
    """Base class for all clusterloader-runner errors."""


class PreconditionError(ClusterLoaderError):
    """A precondition checked before provisioning does not hold."""


class ConfigNotFoundError(PreconditionError):
    """The clusterloader test config file does not exist."""

    def __init__(self, path: Path, reason: str | None = None) -> None:
        message = f"{str(path)!r} not found"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.path = path
        self.reason = reason


class DirectoryError(PreconditionError):
    """The report directory could not be created or is not writable."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"report directory {str(path)!r} is not usable: {reason}")
        self.path = path
        self.reason = reason


class ProvisionError(ClusterLoaderError):
    """The clusterloader binary could not be made available locally."""


class DownloadError(ProvisionError):
    """Downloading the clusterloader binary failed."""

    def __init__(self, url: str, dest: Path, reason: str) -> None:
        super().__init__(f"failed to download {url!r} to {str(dest)!r}: {reason}")
        self.url = url
        self.dest = dest
        self.reason = reason


class RenderError(ClusterLoaderError):
    """The test overrides file could not be rendered or written."""


class RunError(ClusterLoaderError):
    """A single clusterloader run failed (non-zero exit, launch failure or timeout)."""

    def __init__(
        self,
        index: int,
        message: str,
        *,
        returncode: int | None = None,
        output: str = "",
    ) -> None:
        super().__init__(f"run {index} failed: {message}")
        self.index = index
        self.returncode = returncode
        self.output = output


class RunTimeoutError(RunError):
    """A single clusterloader run exceeded its own per-run timeout."""

    def __init__(self, index: int, timeout: float, *, output: str = "") -> None:
        super().__init__(index, f"timed out after {timeout:g}s", output=output)
        self.timeout = timeout


class RunCancelledError(ClusterLoaderError):
    """A run was killed because the loader's root context was cancelled.

    This happens on global deadline expiry or after a stop request. It is not
    a run failure and never surfaces from ClusterLoader.start().
    """

    def __init__(self, index: int, reason: str, *, output: str = "") -> None:
        super().__init__(f"run {index} cancelled: {reason}")
        self.index = index
        self.reason = reason
        self.output = output


class LoaderStateError(ClusterLoaderError):
    """An operation was requested in a lifecycle state that does not allow it."""


class ClusterLoaderWarning(UserWarning):
    """Base class for non-fatal conditions that are logged and recorded only."""


class ExecutableBitWarning(ClusterLoaderWarning):
    """The executable bit could not be set on the clusterloader binary."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"failed to ensure {str(path)!r} is executable: {reason}")
        self.path = path
        self.reason = reason


class ProbeWarning(ClusterLoaderWarning):
    """The '--help' liveness probe of the clusterloader binary failed."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"'{path} --help' probe failed: {reason}")
        self.path = path
        self.reason = reason
