# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""clusterloader-runner - drives clusterloader2 load tests."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("clusterloader-runner")
except PackageNotFoundError:
    __version__ = "unknown"
