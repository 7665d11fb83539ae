# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Tests for run_with_timeout against real processes."""

import subprocess
import sys
import threading
import time

import pytest

from clusterloader.common.context import RunContext
from clusterloader.common.process import SubprocessRunner, run_with_timeout

pytestmark = pytest.mark.skipif(
    sys.platform == "win32", reason="uses /bin/sh and process groups"
)


class TestRunWithTimeout:
    def test_returns_combined_output(self):
        output = run_with_timeout(
            RunContext(30.0), ["/bin/sh", "-c", "echo out; echo err >&2"]
        )

        assert "out" in output
        assert "err" in output

    def test_non_zero_exit_raises_with_output(self):
        with pytest.raises(subprocess.CalledProcessError) as exc_info:
            run_with_timeout(RunContext(30.0), ["/bin/sh", "-c", "echo nope; exit 3"])

        assert exc_info.value.returncode == 3
        assert "nope" in exc_info.value.output

    def test_deadline_kills_process(self):
        start = time.monotonic()
        with pytest.raises(subprocess.TimeoutExpired) as exc_info:
            run_with_timeout(RunContext(0.2), ["/bin/sh", "-c", "echo started; sleep 30"])

        assert time.monotonic() - start < 10.0
        assert "started" in exc_info.value.output

    def test_cancel_kills_process(self):
        ctx = RunContext()
        timer = threading.Timer(0.2, ctx.cancel)
        timer.start()

        start = time.monotonic()
        with pytest.raises(subprocess.TimeoutExpired):
            run_with_timeout(ctx, ["/bin/sh", "-c", "sleep 30"])
        timer.join()

        assert time.monotonic() - start < 10.0

    def test_missing_executable_raises_oserror(self, tmp_path):
        with pytest.raises(OSError):
            run_with_timeout(RunContext(30.0), [str(tmp_path / "missing")])

    def test_runner_delegates(self):
        runner = SubprocessRunner(poll_interval=0.01)

        assert runner.run_with_timeout(RunContext(30.0), ["/bin/sh", "-c", "echo hi"]).strip() == "hi"
