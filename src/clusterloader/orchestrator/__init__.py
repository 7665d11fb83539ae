# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Run orchestration for clusterloader2."""

from clusterloader.orchestrator.executor import RunExecutor
from clusterloader.orchestrator.loader import ClusterLoader
from clusterloader.orchestrator.models import ProvisionResult, RunAttempt
from clusterloader.orchestrator.overrides import (
    OverridesRenderer,
    render_test_overrides,
)
from clusterloader.orchestrator.provisioner import BinaryProvisioner

__all__ = [
    "BinaryProvisioner",
    "ClusterLoader",
    "OverridesRenderer",
    "ProvisionResult",
    "RunAttempt",
    "RunExecutor",
    "render_test_overrides",
]
