# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Command line interface for clusterloader-runner."""

from typing import Annotated

from cyclopts import App, Parameter

from clusterloader import __version__
from clusterloader.common.config import ClusterLoaderConfig
from clusterloader.common.environment import Environment

app = App(
    name="clusterloader-runner",
    help="Run clusterloader2 load tests back-to-back under a global deadline.",
    version=__version__,
)


@app.command
def run(
    config: Annotated[ClusterLoaderConfig, Parameter(name="*")],
    *,
    log_level: Annotated[
        str,
        Parameter(
            name=("--log-level",),
            help="Log level (DEBUG, INFO, WARNING, ERROR).",
        ),
    ] = Environment.LOG_LEVEL,
) -> int:
    """Provision clusterloader2, render the test overrides and run it --runs times."""
    from clusterloader.cli_runner import run_cluster_loader

    return run_cluster_loader(config, log_level=log_level)


def main() -> None:
    raise SystemExit(app())
