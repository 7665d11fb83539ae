# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Provisioning of the clusterloader2 executable."""

import logging
import subprocess
from pathlib import Path

from clusterloader.common.context import RunContext
from clusterloader.common.environment import Environment
from clusterloader.common.exceptions import (
    ClusterLoaderWarning,
    ExecutableBitWarning,
    ProbeWarning,
    ProvisionError,
)
from clusterloader.common.fileutil import LocalFilesystem
from clusterloader.common.httputil import HttpDownloader
from clusterloader.common.protocols import (
    DownloaderProtocol,
    FilesystemProtocol,
    ProcessRunnerProtocol,
)
from clusterloader.common.process import SubprocessRunner
from clusterloader.orchestrator.models import ProvisionResult

logger = logging.getLogger(__name__)

__all__ = [
    "BinaryProvisioner",
]


class BinaryProvisioner:
    """Makes sure the clusterloader executable exists locally.

    After provision() returns, the path holds a file that was downloaded or
    already cached; any fatal problem raises ProvisionError instead. Failing to
    set the executable bit and a failing '--help' probe are only logged, since
    the binary may still be runnable by the owning process.
    """

    def __init__(
        self,
        fs: FilesystemProtocol | None = None,
        downloader: DownloaderProtocol | None = None,
        runner: ProcessRunnerProtocol | None = None,
        probe_timeout: float | None = None,
    ) -> None:
        self.fs = fs or LocalFilesystem()
        self.downloader = downloader or HttpDownloader()
        self.runner = runner or SubprocessRunner()
        self.probe_timeout = probe_timeout

    def provision(self, path: Path, download_url: str) -> ProvisionResult:
        """Download (if absent), mark executable and probe the binary at path.

        Args:
            path: Where the executable lives or should be downloaded to
            download_url: Source to download from when path is absent

        Returns:
            ProvisionResult describing the executable

        Raises:
            ProvisionError: The parent directory could not be created or the
                download failed.
        """
        path = Path(path)
        warnings: list[ClusterLoaderWarning] = []

        parent = path.parent
        logger.info(f"Ensuring clusterloader directory exists: {parent}")
        try:
            parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as e:
            raise ProvisionError(f"could not create {str(parent)!r} ({e})") from e

        try:
            present = self.fs.exists(path)
        except OSError as e:
            raise ProvisionError(f"could not check {str(path)!r} ({e})") from e

        downloaded = False
        if not present:
            path = path.absolute()
            logger.info(f"Downloading clusterloader to {path}")
            # DownloadError is already a ProvisionError; anything else is wrapped
            try:
                self.downloader.download(download_url, path)
            except ProvisionError:
                raise
            except Exception as e:
                raise ProvisionError(
                    f"failed to download {download_url!r} to {str(path)!r} ({e!r})"
                ) from e
            downloaded = True
        else:
            logger.info(f"Skipping clusterloader download; already exists: {path}")

        try:
            self.fs.ensure_executable(path)
        except OSError as e:
            warning = ExecutableBitWarning(path, str(e))
            logger.warning(str(warning))
            warnings.append(warning)

        probe_output, probe_warning = self._probe(path)
        if probe_warning is not None:
            warnings.append(probe_warning)

        return ProvisionResult(
            path=path,
            downloaded=downloaded,
            warnings=warnings,
            probe_output=probe_output,
        )

    def _probe(self, path: Path) -> tuple[str, ProbeWarning | None]:
        """Run '<path> --help' with a short timeout; failures are diagnostic only."""
        timeout = self.probe_timeout or Environment.PROBE_TIMEOUT
        ctx = RunContext(timeout)
        warning = None
        try:
            output = self.runner.run_with_timeout(ctx, [str(path), "--help"])
        except subprocess.TimeoutExpired as e:
            output = e.output or ""
            warning = ProbeWarning(path, f"timed out after {timeout:g}s")
        except subprocess.CalledProcessError as e:
            output = e.output or ""
            warning = ProbeWarning(path, f"exit status {e.returncode}")
        except OSError as e:
            output = ""
            warning = ProbeWarning(path, str(e))
        finally:
            ctx.cancel()

        output = output.strip()
        logger.info(f"'{path} --help' output:\n{output}")
        if warning is not None:
            logger.warning(str(warning))
        return output, warning
