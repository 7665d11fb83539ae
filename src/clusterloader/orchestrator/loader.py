# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Cluster loader: runs clusterloader2 a fixed number of times under one deadline.

ref. https://github.com/kubernetes/perf-tests/tree/master/clusterloader2
"""

import logging
import threading
from pathlib import Path

import orjson

from clusterloader.common.config import ClusterLoaderConfig
from clusterloader.common.context import RunContext
from clusterloader.common.enums import LoaderState
from clusterloader.common.environment import Environment
from clusterloader.common.exceptions import (
    ClusterLoaderError,
    ConfigNotFoundError,
    DirectoryError,
    LoaderStateError,
    RunCancelledError,
    RunError,
)
from clusterloader.common.fileutil import LocalFilesystem
from clusterloader.common.protocols import (
    DownloaderProtocol,
    FilesystemProtocol,
    ProcessRunnerProtocol,
)
from clusterloader.common.process import SubprocessRunner
from clusterloader.orchestrator.executor import RunExecutor
from clusterloader.orchestrator.models import ProvisionResult
from clusterloader.orchestrator.overrides import OverridesRenderer
from clusterloader.orchestrator.provisioner import BinaryProvisioner

logger = logging.getLogger(__name__)

__all__ = [
    "CONFIG_SNAPSHOT_FILE_NAME",
    "ClusterLoader",
]

CONFIG_SNAPSHOT_FILE_NAME = "clusterloader_runner_config.json"


class ClusterLoader:
    """Drives clusterloader2 runs back-to-back.

    start() checks preconditions, provisions the binary, renders the test
    overrides once and then runs clusterloader ``config.runs`` times on a
    background thread. The calling thread waits for whichever comes first:
    a stop request, the global deadline, or the end of the run loop.

    Runs are strictly sequential. The first failing run ends the loop and the
    remaining runs are skipped; later runs are not trusted once one failed.

    A stop request is honoured between runs. On return from start() the root
    context is cancelled, which kills a run that is still in flight, and the
    background thread has exited.
    """

    def __init__(
        self,
        config: ClusterLoaderConfig,
        *,
        stop_event: threading.Event | None = None,
        fs: FilesystemProtocol | None = None,
        downloader: DownloaderProtocol | None = None,
        runner: ProcessRunnerProtocol | None = None,
        run_timeout: float | None = None,
        probe_timeout: float | None = None,
    ) -> None:
        """Initialize ClusterLoader.

        Args:
            config: Loader configuration
            stop_event: Optional externally owned event; setting it has the
                same effect as calling stop()
            fs: Filesystem probe (defaults to the local filesystem)
            downloader: Binary downloader (defaults to httpx)
            runner: Process runner (defaults to subprocess)
            run_timeout: Per-run timeout in seconds (defaults to Environment.RUN_TIMEOUT)
            probe_timeout: '--help' probe timeout (defaults to Environment.PROBE_TIMEOUT)
        """
        self.config = config
        self.fs = fs or LocalFilesystem()
        self.runner = runner or SubprocessRunner()
        self.run_timeout = run_timeout
        self._provisioner = BinaryProvisioner(
            fs=self.fs,
            downloader=downloader,
            runner=self.runner,
            probe_timeout=probe_timeout,
        )
        self._renderer = OverridesRenderer(fs=self.fs)

        self._external_stop = stop_event
        self._stop = threading.Event()
        self._wake = threading.Event()
        self._loop_done = threading.Event()
        self._lock = threading.Lock()

        self._state = LoaderState.IDLE
        self._root_ctx: RunContext | None = None
        self._loop_error: ClusterLoaderError | None = None
        self._test_overrides_path: Path | None = None
        self._provision_result: ProvisionResult | None = None
        self._args: tuple[str, ...] = ()

    @property
    def state(self) -> LoaderState:
        return self._state

    @property
    def test_overrides_path(self) -> Path | None:
        """Path of the rendered overrides file, shared by every run."""
        return self._test_overrides_path

    @property
    def provision_result(self) -> ProvisionResult | None:
        return self._provision_result

    @property
    def args(self) -> tuple[str, ...]:
        """Argument vector used for every run."""
        return self._args

    def start(self) -> None:
        """Run clusterloader ``config.runs`` times, blocking until a terminal state.

        Returns normally when all runs completed, the global deadline expired or
        a stop was requested.

        Raises:
            PreconditionError: The test config is missing or the report directory
                is not writable.
            ProvisionError: The binary could not be provisioned.
            RenderError: The test overrides could not be written.
            RunError: A run failed; the remaining runs were skipped.
            LoaderStateError: start() was already called.
        """
        with self._lock:
            if self._state != LoaderState.IDLE:
                raise LoaderStateError(
                    f"cluster loader can only be started once (state: {self._state})"
                )
            self._state = LoaderState.STARTING

        logger.info("Starting cluster loader")
        try:
            outcome = self._run()
        except BaseException:
            self._set_state(LoaderState.FAILED)
            raise
        self._set_state(outcome)

    def _run(self) -> LoaderState:
        self._check_preconditions()
        self._provision_result = self._provisioner.provision(
            self.config.clusterloader_path,
            self.config.clusterloader_download_url,
        )
        self._test_overrides_path = self._renderer.write(self.config.overrides)

        self._args = self._build_args()
        self._write_config_snapshot()

        self._root_ctx = RunContext(self.config.timeout)
        executor = RunExecutor(
            self._root_ctx,
            runner=self.runner,
            run_timeout=self.run_timeout,
            logs_path=self.config.logs_path,
        )
        self._set_state(LoaderState.RUNNING)

        loop = threading.Thread(
            target=self._run_loop,
            args=(executor,),
            name="clusterloader-runs",
            daemon=True,
        )
        loop.start()

        try:
            outcome = self._wait_for_outcome()
            if outcome == LoaderState.STOPPED:
                logger.info("Stopping cluster loader")
            elif outcome == LoaderState.TIMED_OUT:
                logger.info(f"Timed out cluster loader after {self.config.timeout:g}s")
            else:
                logger.info("Completed cluster loader")
        finally:
            self._root_ctx.cancel()
            loop.join()

        if self._loop_error is not None:
            raise self._loop_error
        return outcome

    def stop(self) -> None:
        """Request the loader to stop. Non-blocking, idempotent and thread-safe.

        Takes no lock, so it is safe to call from a signal handler.
        """
        if self._stop.is_set():
            return
        self._stop.set()
        logger.info("Stop requested for cluster loader")
        self._wake.set()

    def get_results(self) -> None:
        """Reserved for collaborators that parse the report directory; no-op."""
        return None

    def _stop_requested(self) -> bool:
        if self._stop.is_set():
            return True
        return self._external_stop is not None and self._external_stop.is_set()

    def _set_state(self, state: LoaderState) -> None:
        with self._lock:
            self._state = state

    def _check_preconditions(self) -> None:
        test_config = self.config.test_config_path
        try:
            found = self.fs.exists(test_config)
        except OSError as e:
            raise ConfigNotFoundError(test_config, str(e)) from e
        if not found:
            logger.warning(f"Clusterloader test config file does not exist: {test_config}")
            raise ConfigNotFoundError(test_config)

        report_dir = self.config.report_dir
        try:
            report_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryError(report_dir, str(e)) from e
        try:
            self.fs.is_writable_dir(report_dir)
        except OSError as e:
            raise DirectoryError(report_dir, str(e)) from e

    def _build_args(self) -> tuple[str, ...]:
        args = [
            str(self._provision_result.path),
            "--alsologtostderr",
            f"--testconfig={self.config.test_config_path}",
            f"--testoverrides={self._test_overrides_path}",
            f"--report-dir={self.config.report_dir}",
            f"--nodes={self.config.nodes}",
        ]
        if self.config.kubeconfig_path is not None:
            args.append(f"--kubeconfig={self.config.kubeconfig_path}")
        return tuple(args)

    def _write_config_snapshot(self) -> None:
        """Write the resolved config and argv next to the reports for reproducibility."""
        snapshot = {
            "config": self.config.model_dump(mode="json"),
            "args": list(self._args),
            "test_overrides_path": str(self._test_overrides_path),
        }
        path = self.config.report_dir / CONFIG_SNAPSHOT_FILE_NAME
        try:
            path.write_bytes(orjson.dumps(snapshot, option=orjson.OPT_INDENT_2))
        except OSError as e:
            logger.warning(f"Failed to write config snapshot {path}: {e!r}")

    def _wait_for_outcome(self) -> LoaderState:
        poll_interval = Environment.POLL_INTERVAL
        while True:
            if self._stop_requested():
                return LoaderState.STOPPED
            if self._root_ctx.done():
                return LoaderState.TIMED_OUT
            if self._loop_done.is_set():
                return LoaderState.COMPLETED
            remaining = self._root_ctx.remaining()
            self._wake.wait(
                poll_interval if remaining is None else min(poll_interval, remaining)
            )

    def _run_loop(self, executor: RunExecutor) -> None:
        try:
            for index in range(self.config.runs):
                if self._root_ctx.done():
                    logger.info(f"Skipping clusterloader run [{index}]: deadline reached")
                    return
                if self._stop_requested():
                    logger.info(f"Skipping clusterloader run [{index}]: stop requested")
                    return
                try:
                    executor.run(index, self._args)
                except RunCancelledError:
                    return
                except RunError as e:
                    self._loop_error = e
                    remaining = self.config.runs - index - 1
                    if remaining:
                        logger.warning(f"Aborting the remaining {remaining} clusterloader run(s)")
                    return
        except Exception as e:
            logger.exception("Unexpected error in the clusterloader run loop")
            if not isinstance(e, ClusterLoaderError):
                wrapped = ClusterLoaderError(f"run loop failed: {e!r}")
                wrapped.__cause__ = e
                e = wrapped
            self._loop_error = e
        finally:
            self._loop_done.set()
            self._wake.set()
