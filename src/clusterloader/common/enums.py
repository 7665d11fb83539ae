# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from enum import Enum


class LoaderState(str, Enum):
    """Lifecycle states of a ClusterLoader."""

    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    STOPPED = "stopped"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES

    def __str__(self) -> str:
        return self.value


_TERMINAL_STATES = frozenset(
    {
        LoaderState.COMPLETED,
        LoaderState.TIMED_OUT,
        LoaderState.STOPPED,
        LoaderState.FAILED,
    }
)
