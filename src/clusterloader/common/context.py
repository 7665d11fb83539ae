# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Explicit cancellation tokens with optional deadlines.

A RunContext is owned by whoever creates it and passed down explicitly.
Children derived from a context are done whenever the parent is done, and may
add a tighter deadline of their own. Cancellation is one-shot, idempotent and
observable from any thread.
"""

from __future__ import annotations

import threading
import time
from enum import Enum

__all__ = [
    "CancelReason",
    "RunContext",
]


class CancelReason(str, Enum):
    """Why a RunContext is done."""

    CANCELLED = "cancelled"
    DEADLINE_EXCEEDED = "deadline exceeded"

    def __str__(self) -> str:
        return self.value


class RunContext:
    """Cancellation token bounded by an optional monotonic deadline."""

    def __init__(
        self,
        timeout: float | None = None,
        *,
        parent: RunContext | None = None,
    ) -> None:
        self._parent = parent
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason: CancelReason | None = None
        self._own_expired = False
        self._children: list[RunContext] = []

        self._own_deadline = None if timeout is None else time.monotonic() + timeout
        deadline = self._own_deadline
        if parent is not None and parent.deadline is not None:
            deadline = (
                parent.deadline if deadline is None else min(deadline, parent.deadline)
            )
        self._deadline = deadline

        if parent is not None:
            parent._add_child(self)

    @property
    def deadline(self) -> float | None:
        """Effective monotonic deadline, including any inherited from the parent."""
        return self._deadline

    @property
    def parent(self) -> RunContext | None:
        return self._parent

    def child(self, timeout: float | None = None) -> RunContext:
        """Derive a context that is done when this one is, or after ``timeout``."""
        return RunContext(timeout, parent=self)

    def cancel(self) -> None:
        """Cancel this context and all of its children. Safe to call repeatedly."""
        self._set_done(CancelReason.CANCELLED)
        if self._parent is not None:
            self._parent._remove_child(self)

    def remaining(self) -> float | None:
        """Seconds until the effective deadline, or None when unbounded."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def done(self) -> bool:
        """Whether the context was cancelled or its deadline has passed."""
        return self.reason() is not None

    def reason(self) -> CancelReason | None:
        """Why the context is done, or None while it is still live."""
        if self._event.is_set():
            return self._reason
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._set_done(CancelReason.DEADLINE_EXCEEDED)
            return self._reason
        return None

    def own_deadline_exceeded(self) -> bool:
        """True when this context's own timeout fired before anything else ended it.

        Decided when the context becomes done, so a parent deadline or cancel
        observed later does not change the answer.
        """
        self.reason()
        return self._own_expired

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the context is done or ``timeout`` elapses.

        Returns:
            True if the context is done.
        """
        if self.done():
            return True
        remaining = self.remaining()
        if remaining is not None:
            timeout = remaining if timeout is None else min(timeout, remaining)
        self._event.wait(timeout)
        return self.done()

    def _add_child(self, child: RunContext) -> None:
        with self._lock:
            if self._reason is None:
                self._children.append(child)
                return
            reason = self._reason
        child._set_done(reason)

    def _remove_child(self, child: RunContext) -> None:
        with self._lock:
            if child in self._children:
                self._children.remove(child)

    def _set_done(self, reason: CancelReason) -> None:
        with self._lock:
            if self._reason is not None:
                return
            self._reason = reason
            self._own_expired = self._own_deadline_passed()
            children, self._children = self._children, []
            self._event.set()
        for child in children:
            child._set_done(reason)

    def _own_deadline_passed(self) -> bool:
        if self._own_deadline is None or time.monotonic() < self._own_deadline:
            return False
        parent_deadline = None if self._parent is None else self._parent.deadline
        return parent_deadline is None or self._own_deadline <= parent_deadline
