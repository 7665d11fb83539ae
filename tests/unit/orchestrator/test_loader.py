# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Tests for the ClusterLoader state machine."""

import threading
import time
from pathlib import Path
from unittest.mock import patch

import orjson
import pytest
from conftest import FakeDownloader, RecordingRunner, sha256_of

from clusterloader.common.enums import LoaderState
from clusterloader.common.exceptions import (
    ConfigNotFoundError,
    DirectoryError,
    DownloadError,
    LoaderStateError,
    PreconditionError,
    RenderError,
    RunError,
)
from clusterloader.common.fileutil import LocalFilesystem
from clusterloader.orchestrator.loader import CONFIG_SNAPSHOT_FILE_NAME, ClusterLoader


def make_loader(config, runner, downloader=None, **kwargs) -> ClusterLoader:
    return ClusterLoader(
        config,
        runner=runner,
        downloader=downloader or FakeDownloader(),
        **kwargs,
    )


class TestClusterLoaderPreconditions:
    """Tests for the checks done before provisioning."""

    def test_missing_test_config_has_no_side_effects(self, make_config, runner, downloader, tmp_path):
        config = make_config(test_config_path=tmp_path / "missing.yaml")
        loader = make_loader(config, runner, downloader)

        with pytest.raises(ConfigNotFoundError) as exc_info:
            loader.start()

        assert isinstance(exc_info.value, PreconditionError)
        assert loader.state == LoaderState.FAILED
        assert not config.report_dir.exists()
        assert not config.clusterloader_path.parent.exists()
        assert downloader.calls == []
        assert runner.calls == []
        assert runner.probes == []

    def test_report_dir_is_created(self, make_config, runner, tmp_path):
        config = make_config(report_dir=tmp_path / "a" / "b" / "reports", runs=0)

        make_loader(config, runner).start()

        assert config.report_dir.is_dir()

    def test_unreadable_test_config_is_precondition_error(self, make_config, runner, downloader):
        fs = LocalFilesystem()
        loader = make_loader(make_config(), runner, downloader, fs=fs)

        with patch.object(fs, "exists", side_effect=PermissionError("permission denied")):
            with pytest.raises(ConfigNotFoundError, match="permission denied"):
                loader.start()

        assert loader.state == LoaderState.FAILED
        assert downloader.calls == []
        assert runner.calls == []

    def test_unexpected_error_during_start_sets_failed(self, make_config, runner):
        fs = LocalFilesystem()
        loader = make_loader(make_config(), runner, fs=fs)

        with patch.object(fs, "is_writable_dir", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError, match="boom"):
                loader.start()

        assert loader.state == LoaderState.FAILED
        with pytest.raises(LoaderStateError):
            loader.start()

    def test_report_dir_not_writable(self, make_config, runner, downloader):
        config = make_config()
        fs = LocalFilesystem()
        loader = make_loader(config, runner, downloader, fs=fs)

        with patch.object(fs, "is_writable_dir", side_effect=PermissionError("read-only")):
            with pytest.raises(DirectoryError, match="read-only"):
                loader.start()

        assert loader.state == LoaderState.FAILED
        assert downloader.calls == []

    def test_report_dir_cannot_be_created(self, make_config, runner, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("file")
        config = make_config(report_dir=blocker / "reports")

        with pytest.raises(DirectoryError):
            make_loader(config, runner).start()


class TestClusterLoaderStartup:
    """Tests for provisioning, rendering and argument construction."""

    def test_download_failure_aborts_start(self, make_config, runner):
        config = make_config()
        error = DownloadError("https://example.com/clusterloader2", config.clusterloader_path, "HTTP 500")
        loader = make_loader(config, runner, FakeDownloader(error=error))

        with pytest.raises(DownloadError):
            loader.start()

        assert loader.state == LoaderState.FAILED
        assert runner.calls == []

    def test_render_failure_aborts_start(self, make_config, runner):
        fs = LocalFilesystem()
        loader = make_loader(make_config(), runner, fs=fs)

        with patch.object(fs, "write_temp_file", side_effect=OSError("no space left")):
            with pytest.raises(RenderError):
                loader.start()

        assert loader.state == LoaderState.FAILED
        assert runner.calls == []

    def test_args(self, make_config, runner):
        config = make_config(runs=1, nodes=7)
        loader = make_loader(config, runner)

        loader.start()

        assert loader.args == (
            str(config.clusterloader_path.absolute()),
            "--alsologtostderr",
            f"--testconfig={config.test_config_path}",
            f"--testoverrides={loader.test_overrides_path}",
            f"--report-dir={config.report_dir}",
            "--nodes=7",
        )
        assert runner.calls == [loader.args]

    def test_kubeconfig_flag_when_configured(self, make_config, runner, tmp_path):
        kubeconfig = tmp_path / "kubeconfig"
        loader = make_loader(make_config(runs=1, kubeconfig_path=kubeconfig), runner)

        loader.start()

        assert loader.args[-1] == f"--kubeconfig={kubeconfig}"

    def test_writes_config_snapshot(self, make_config, runner):
        config = make_config(runs=0)
        loader = make_loader(config, runner)

        loader.start()

        snapshot = orjson.loads((config.report_dir / CONFIG_SNAPSHOT_FILE_NAME).read_bytes())
        assert snapshot["args"] == list(loader.args)
        assert snapshot["config"]["runs"] == 0
        assert snapshot["test_overrides_path"] == str(loader.test_overrides_path)

    def test_start_twice_raises(self, make_config, runner):
        loader = make_loader(make_config(runs=0), runner)
        loader.start()

        with pytest.raises(LoaderStateError):
            loader.start()

    def test_get_results_is_a_no_op(self, make_config, runner):
        loader = make_loader(make_config(runs=1), runner)
        loader.start()

        assert loader.get_results() is None


class TestClusterLoaderRuns:
    """Tests for the run loop and its terminal states."""

    def test_runs_n_times_with_identical_args(self, make_config, runner):
        loader = make_loader(make_config(runs=3), runner)

        loader.start()

        assert len(runner.calls) == 3
        assert len(set(runner.calls)) == 1
        assert loader.state == LoaderState.COMPLETED

    def test_zero_runs_completes(self, make_config, runner):
        loader = make_loader(make_config(runs=0), runner)

        loader.start()

        assert runner.calls == []
        assert loader.state == LoaderState.COMPLETED

    def test_runs_never_overlap(self, make_config):
        active = []
        overlaps = []

        def on_run(index, ctx, argv):
            active.append(index)
            if len(active) > 1:
                overlaps.append(tuple(active))
            time.sleep(0.01)
            active.remove(index)

        runner = RecordingRunner(on_run=on_run)
        make_loader(make_config(runs=5), runner).start()

        assert len(runner.calls) == 5
        assert overlaps == []

    def test_failing_run_aborts_remaining_runs(self, make_config):
        runner = RecordingRunner(fail_at=[1])
        loader = make_loader(make_config(runs=5), runner)

        with pytest.raises(RunError) as exc_info:
            loader.start()

        assert exc_info.value.index == 1
        assert len(runner.calls) == 2
        assert loader.state == LoaderState.FAILED

    def test_first_run_failure(self, make_config):
        runner = RecordingRunner(fail_at=[0])

        with pytest.raises(RunError):
            make_loader(make_config(runs=3), runner).start()

        assert len(runner.calls) == 1

    def test_overrides_file_is_stable_across_runs(self, make_config):
        hashes = []

        def on_run(index, ctx, argv):
            overrides = next(a for a in argv if a.startswith("--testoverrides="))
            hashes.append(sha256_of(Path(overrides.split("=", 1)[1])))

        runner = RecordingRunner(on_run=on_run)
        loader = make_loader(make_config(runs=4), runner)

        loader.start()

        assert len(hashes) == 4
        assert len(set(hashes)) == 1
        assert sha256_of(loader.test_overrides_path) == hashes[0]

    def test_global_deadline_kills_in_flight_run(self, make_config):
        runner = RecordingRunner(hang_at=[1])
        loader = make_loader(make_config(runs=5, timeout=0.3), runner)

        start = time.monotonic()
        loader.start()

        assert time.monotonic() - start < 10.0
        assert len(runner.calls) == 2
        assert runner.contexts[1].done() is True
        assert loader.state == LoaderState.TIMED_OUT

    def test_per_run_timeout_is_run_error(self, make_config):
        runner = RecordingRunner(hang_at=[0])
        loader = make_loader(make_config(runs=3, timeout=60.0), runner, run_timeout=0.05)

        with pytest.raises(RunError):
            loader.start()

        assert len(runner.calls) == 1
        assert loader.state == LoaderState.FAILED


class TestClusterLoaderStop:
    """Tests for stop() and the external stop event."""

    def test_stop_before_start_launches_no_runs(self, make_config, runner):
        loader = make_loader(make_config(runs=3), runner)

        loader.stop()
        loader.start()

        assert runner.calls == []
        assert loader.state == LoaderState.STOPPED

    def test_stop_between_runs_skips_the_rest(self, make_config):
        loader_ref = []

        def on_run(index, ctx, argv):
            if index == 0:
                loader_ref[0].stop()

        runner = RecordingRunner(on_run=on_run)
        loader = make_loader(make_config(runs=5), runner)
        loader_ref.append(loader)

        loader.start()

        assert len(runner.calls) == 1
        assert loader.state == LoaderState.STOPPED

    def test_stop_during_run_returns_without_error(self, make_config):
        runner = RecordingRunner(hang_at=[0])
        loader = make_loader(make_config(runs=3), runner)
        timer = threading.Timer(0.1, loader.stop)
        timer.start()

        loader.start()
        timer.join()

        assert len(runner.calls) == 1
        assert runner.contexts[0].done() is True
        assert loader.state == LoaderState.STOPPED

    def test_concurrent_stop_calls(self, make_config):
        runner = RecordingRunner(hang_at=[0])
        loader = make_loader(make_config(runs=3), runner)
        errors = []

        def stop():
            try:
                loader.stop()
            except Exception as e:
                errors.append(e)

        def stop_many():
            time.sleep(0.05)
            threads = [threading.Thread(target=stop) for _ in range(16)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

        stopper = threading.Thread(target=stop_many)
        stopper.start()
        loader.start()
        stopper.join()
        loader.stop()

        assert errors == []
        assert loader.state == LoaderState.STOPPED

    def test_stop_while_state_lock_is_held(self, make_config, runner):
        loader = make_loader(make_config(runs=3), runner)

        with loader._lock:
            loader.stop()
        loader.start()

        assert runner.calls == []
        assert loader.state == LoaderState.STOPPED

    def test_stop_after_completion_is_harmless(self, make_config, runner):
        loader = make_loader(make_config(runs=1), runner)
        loader.start()

        loader.stop()
        loader.stop()

        assert loader.state == LoaderState.COMPLETED

    def test_external_stop_event(self, make_config, runner):
        stop_event = threading.Event()
        stop_event.set()
        loader = make_loader(make_config(runs=3), runner, stop_event=stop_event)

        loader.start()

        assert runner.calls == []
        assert loader.state == LoaderState.STOPPED

    def test_run_failure_is_still_raised_after_stop(self, make_config):
        loader_ref = []

        def on_run(index, ctx, argv):
            loader_ref[0].stop()

        runner = RecordingRunner(fail_at=[0], on_run=on_run)
        loader = make_loader(make_config(runs=3), runner)
        loader_ref.append(loader)

        with pytest.raises(RunError):
            loader.start()

        assert loader.state == LoaderState.FAILED
