# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
from clusterloader.common.config.loader_config import (
    ClusterLoaderConfig,
    TestOverridesConfig,
)

__all__ = [
    "ClusterLoaderConfig",
    "TestOverridesConfig",
]
