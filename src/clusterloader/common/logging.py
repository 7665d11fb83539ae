# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Rich console logging setup for the command line."""

import logging

from rich.console import Console
from rich.logging import RichHandler

from clusterloader.common.environment import Environment

_HANDLER_NAME = "clusterloader-rich"


def setup_rich_logging(level: str | int | None = None) -> None:
    """Install a rich handler on the root logger.

    Calling this more than once replaces the level but keeps a single handler.

    Args:
        level: Log level name or number. Defaults to Environment.LOG_LEVEL.
    """
    if level is None:
        level = Environment.LOG_LEVEL
    if isinstance(level, str):
        level = level.upper()

    root = logging.getLogger()
    root.setLevel(level)

    if any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        return

    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        show_path=False,
        log_time_format="%H:%M:%S.%f",
    )
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(handler)
