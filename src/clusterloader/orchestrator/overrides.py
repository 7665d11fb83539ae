# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Rendering of the clusterloader2 '--testoverrides' file."""

import logging
from pathlib import Path

from clusterloader.common.config import TestOverridesConfig
from clusterloader.common.exceptions import RenderError
from clusterloader.common.fileutil import LocalFilesystem
from clusterloader.common.protocols import FilesystemProtocol

logger = logging.getLogger(__name__)

__all__ = [
    "OverridesRenderer",
    "render_test_overrides",
]


def _format_value(key: str, value: object) -> str:
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if value is None:
        raise RenderError(f"test override {key} has no value")
    raise RenderError(
        f"test override {key} has unsupported type {type(value).__name__}: {value!r}"
    )


def render_test_overrides(overrides: TestOverridesConfig) -> str:
    """Render overrides as one 'KEY: value' line per field, in declaration order."""
    lines = []
    for name, field in type(overrides).model_fields.items():
        key = field.serialization_alias or name.upper()
        try:
            value = getattr(overrides, name)
        except AttributeError as e:
            raise RenderError(f"test override {key} is missing") from e
        lines.append(f"{key}: {_format_value(key, value)}")
    return "\n".join(lines) + "\n"


class OverridesRenderer:
    """Renders the overrides document and persists it to a temp file."""

    def __init__(self, fs: FilesystemProtocol | None = None) -> None:
        self.fs = fs or LocalFilesystem()

    def write(self, overrides: TestOverridesConfig) -> Path:
        """Render overrides and write them to a fresh temp file.

        Returns:
            Path of the written file.

        Raises:
            RenderError: Rendering or writing failed.
        """
        content = render_test_overrides(overrides)
        logger.info(f"Test overrides configuration:\n{content}")

        try:
            path = self.fs.write_temp_file(content.encode())
        except OSError as e:
            logger.warning(f"Failed to write test overrides: {e!r}")
            raise RenderError(f"failed to write test overrides file: {e}") from e

        logger.info(f"Wrote test overrides file: {path}")
        return Path(path)
