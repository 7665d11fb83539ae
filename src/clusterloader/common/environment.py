# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Environment-driven tunables.

Every setting can be overridden with an environment variable carrying the
``CLUSTERLOADER_`` prefix, e.g. ``CLUSTERLOADER_RUN_TIMEOUT=600``.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class _Environment(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CLUSTERLOADER_",
        case_sensitive=False,
        extra="ignore",
    )

    RUN_TIMEOUT: float = Field(
        default=20 * 60,
        gt=0,
        description="Timeout in seconds for a single clusterloader run. "
        "Each run is additionally bounded by the global --timeout.",
    )
    PROBE_TIMEOUT: float = Field(
        default=15.0,
        gt=0,
        description="Timeout in seconds for the '--help' liveness probe.",
    )
    DOWNLOAD_TIMEOUT: float = Field(
        default=300.0,
        gt=0,
        description="Network timeout in seconds for downloading the clusterloader binary.",
    )
    POLL_INTERVAL: float = Field(
        default=0.1,
        gt=0,
        description="Interval in seconds at which a running process checks for cancellation.",
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Default log level when --log-level is not given.",
    )


Environment = _Environment()
