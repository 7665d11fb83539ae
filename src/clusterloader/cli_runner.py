# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import contextlib
import logging
import signal
import threading
from collections.abc import Iterator
from typing import TYPE_CHECKING

from clusterloader.common.config import ClusterLoaderConfig
from clusterloader.common.exceptions import ClusterLoaderError, PreconditionError
from clusterloader.common.logging import setup_rich_logging

if TYPE_CHECKING:
    from clusterloader.orchestrator.loader import ClusterLoader

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_PRECONDITION = 2


@contextlib.contextmanager
def _stop_on_signals(loader: "ClusterLoader") -> Iterator[None]:
    """Route SIGINT/SIGTERM to loader.stop() while the block runs."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handler(signum: int, _frame: object) -> None:
        logger.info(f"Received {signal.Signals(signum).name}; stopping cluster loader")
        loader.stop()

    previous = {
        sig: signal.signal(sig, _handler) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


def run_cluster_loader(
    config: ClusterLoaderConfig,
    log_level: str | None = None,
) -> int:
    """Run the cluster loader for config and map the outcome to an exit code.

    Returns:
        0 on completion, timeout or stop; 2 for precondition failures;
        1 for any other failure.
    """
    from clusterloader.orchestrator.loader import ClusterLoader

    setup_rich_logging(log_level)

    logger.info("=" * 80)
    logger.info("Starting clusterloader2")
    logger.info(f"  Test config: {config.test_config_path}")
    logger.info(f"  Report dir: {config.report_dir}")
    logger.info(f"  Runs: {config.runs}")
    logger.info(f"  Timeout: {config.timeout:g}s")
    logger.info(f"  Nodes: {config.nodes}")
    logger.info("=" * 80)

    loader = ClusterLoader(config)
    try:
        with _stop_on_signals(loader):
            loader.start()
    except PreconditionError as e:
        logger.error(f"Cannot start clusterloader2: {e}")
        return EXIT_PRECONDITION
    except ClusterLoaderError as e:
        logger.error(f"Clusterloader2 failed: {e}")
        return EXIT_FAILURE

    logger.info(f"Clusterloader2 finished: {loader.state}")
    return EXIT_OK
