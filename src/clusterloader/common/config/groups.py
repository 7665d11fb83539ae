# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from cyclopts import Group


class Groups:
    """CLI help groups, in display order."""

    CLUSTERLOADER = Group.create_ordered("Clusterloader")
    RUNS = Group.create_ordered("Runs")
    TEST_OVERRIDES = Group.create_ordered("Test Overrides")
