# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Run an external process bounded by a RunContext."""

import contextlib
import os
import signal
import subprocess
import time
from collections.abc import Sequence

from clusterloader.common.context import RunContext
from clusterloader.common.environment import Environment

__all__ = [
    "SubprocessRunner",
    "run_with_timeout",
]


def _kill_process_group(proc: subprocess.Popen) -> None:
    # The process leads its own session, so its children go down with it.
    with contextlib.suppress(ProcessLookupError, PermissionError):
        os.killpg(proc.pid, signal.SIGKILL)
    with contextlib.suppress(ProcessLookupError):
        proc.kill()


def run_with_timeout(
    ctx: RunContext,
    argv: Sequence[str],
    *,
    poll_interval: float | None = None,
) -> str:
    """Run argv to completion and return its combined stdout/stderr.

    The process (and its process group) is killed as soon as ctx is done.

    Args:
        ctx: Context bounding the run. Its deadline and cancellation both apply.
        argv: Executable followed by its arguments.
        poll_interval: How often to check ctx while the process runs.
            Defaults to Environment.POLL_INTERVAL.

    Returns:
        The combined output of the process.

    Raises:
        subprocess.TimeoutExpired: ctx was done before the process exited.
            The partial output is attached.
        subprocess.CalledProcessError: The process exited with a non-zero code.
        OSError: The process could not be launched.
    """
    argv = list(argv)
    if poll_interval is None:
        poll_interval = Environment.POLL_INTERVAL

    start = time.monotonic()
    proc = subprocess.Popen(
        argv,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        errors="replace",
        start_new_session=True,
    )
    try:
        while True:
            wait = poll_interval
            remaining = ctx.remaining()
            if remaining is not None:
                wait = min(wait, remaining)
            try:
                output, _ = proc.communicate(timeout=wait)
                break
            except subprocess.TimeoutExpired:
                if not ctx.done():
                    continue
                _kill_process_group(proc)
                output, _ = proc.communicate()
                raise subprocess.TimeoutExpired(
                    argv, time.monotonic() - start, output=output
                ) from None
    except BaseException:
        if proc.poll() is None:
            _kill_process_group(proc)
            proc.wait()
        raise

    if proc.returncode != 0:
        raise subprocess.CalledProcessError(proc.returncode, argv, output=output)
    return output


class SubprocessRunner:
    """Default process runner backed by subprocess."""

    def __init__(self, poll_interval: float | None = None) -> None:
        self.poll_interval = poll_interval

    def run_with_timeout(self, ctx: RunContext, argv: Sequence[str]) -> str:
        return run_with_timeout(ctx, argv, poll_interval=self.poll_interval)
