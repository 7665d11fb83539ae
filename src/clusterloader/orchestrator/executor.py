# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Execution of a single clusterloader run."""

import logging
import subprocess
import time
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path

from clusterloader.common.context import RunContext
from clusterloader.common.environment import Environment
from clusterloader.common.exceptions import (
    RunCancelledError,
    RunError,
    RunTimeoutError,
)
from clusterloader.common.process import SubprocessRunner
from clusterloader.common.protocols import ProcessRunnerProtocol
from clusterloader.orchestrator.models import RunAttempt

logger = logging.getLogger(__name__)

__all__ = [
    "RunExecutor",
]

# Keep error messages readable; the full output goes to the logs file.
_OUTPUT_TAIL_CHARS = 2000


class RunExecutor:
    """Runs clusterloader once per call, without retrying.

    Each run gets a child of the loader's root context with its own timeout, so
    it is killed by whichever expires first: the per-run timeout or the root
    context (global deadline or stop).
    """

    def __init__(
        self,
        root_ctx: RunContext,
        runner: ProcessRunnerProtocol | None = None,
        run_timeout: float | None = None,
        logs_path: Path | None = None,
    ) -> None:
        self.root_ctx = root_ctx
        self.runner = runner or SubprocessRunner()
        self.run_timeout = run_timeout or Environment.RUN_TIMEOUT
        self.logs_path = Path(logs_path) if logs_path else None

    def run(self, index: int, argv: Sequence[str]) -> RunAttempt:
        """Run clusterloader once.

        Returns:
            The successful RunAttempt.

        Raises:
            RunError: Non-zero exit, launch failure or per-run timeout
                (RunTimeoutError).
            RunCancelledError: The root context was done before the process exited.
        """
        argv = tuple(argv)
        command = " ".join(argv)
        logger.info(f"Running clusterloader [{index}]: {command}")

        ctx = self.root_ctx.child(self.run_timeout)
        start = time.monotonic()
        output = ""
        error = None
        try:
            output = self.runner.run_with_timeout(ctx, argv)
        except subprocess.TimeoutExpired as e:
            output = _as_text(e.output)
            if ctx.own_deadline_exceeded():
                error = RunTimeoutError(index, self.run_timeout, output=output)
            else:
                error = RunCancelledError(
                    index, str(self.root_ctx.reason() or "cancelled"), output=output
                )
        except subprocess.CalledProcessError as e:
            output = _as_text(e.output)
            error = RunError(
                index,
                f"exit status {e.returncode}{_tail(output)}",
                returncode=e.returncode,
                output=output,
            )
        except OSError as e:
            error = RunError(index, f"could not start {argv[0]!r}: {e}")
        finally:
            ctx.cancel()

        attempt = RunAttempt(
            index=index,
            argv=argv,
            output=output,
            error=error,
            duration_sec=time.monotonic() - start,
        )
        self._append_log(attempt, command)

        if error is None:
            logger.info(
                f"Clusterloader run [{index}] completed in {attempt.duration_sec:.1f}s"
            )
            return attempt
        if isinstance(error, RunCancelledError):
            logger.info(f"Clusterloader run [{index}] cancelled: {error.reason}")
        else:
            logger.warning(f"Failed to run clusterloader [{index}]: {error}")
        raise error

    def _append_log(self, attempt: RunAttempt, command: str) -> None:
        if self.logs_path is None:
            return
        status = "ok" if attempt.success else str(attempt.error)
        header = (
            f"===== run {attempt.index} "
            f"({datetime.now(timezone.utc).isoformat(timespec='seconds')}) =====\n"
            f"$ {command}\n"
        )
        try:
            self.logs_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.logs_path, "a", encoding="utf-8") as f:
                f.write(header)
                f.write(attempt.output)
                if attempt.output and not attempt.output.endswith("\n"):
                    f.write("\n")
                f.write(f"===== run {attempt.index} result: {status} =====\n")
        except OSError as e:
            logger.warning(f"Failed to write clusterloader logs to {self.logs_path}: {e!r}")


def _as_text(output: str | bytes | None) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode(errors="replace")
    return output


def _tail(output: str) -> str:
    output = output.strip()
    if not output:
        return ""
    return f"\nOutput: {output[-_OUTPUT_TAIL_CHARS:]}"
