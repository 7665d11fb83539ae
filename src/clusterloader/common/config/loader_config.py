# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

from pathlib import Path
from typing import Annotated

from cyclopts import Parameter
from pydantic import BaseModel, ConfigDict, Field, field_validator

from clusterloader.common.config.groups import Groups

DEFAULT_CLUSTERLOADER_PATH = Path("/tmp/clusterloader2")
DEFAULT_CLUSTERLOADER_DOWNLOAD_URL = "https://github.com/aws/aws-k8s-tester/releases/download/v1.5.9/clusterloader2-linux-amd64"
DEFAULT_REPORT_DIR = Path("clusterloader2-reports")


class TestOverridesConfig(BaseModel):
    """Tuning values rendered into the clusterloader2 '--testoverrides' file.

    The values are passed through verbatim. Field declaration order is the
    order of the rendered lines, and each field's serialization alias is the
    key clusterloader2 reads.
    """

    __test__ = False  # not a pytest test class

    model_config = ConfigDict(frozen=True, extra="forbid")

    _CLI_GROUP = Groups.TEST_OVERRIDES

    nodes_per_namespace: Annotated[
        int,
        Field(
            serialization_alias="NODES_PER_NAMESPACE",
            description="Number of nodes per test namespace.",
        ),
        Parameter(name=("--nodes-per-namespace",), group=_CLI_GROUP),
    ] = 10

    pods_per_node: Annotated[
        int,
        Field(
            serialization_alias="PODS_PER_NODE",
            description="Number of pods to schedule per node.",
        ),
        Parameter(name=("--pods-per-node",), group=_CLI_GROUP),
    ] = 10

    big_group_size: Annotated[
        int,
        Field(serialization_alias="BIG_GROUP_SIZE", description="Big group size."),
        Parameter(name=("--big-group-size",), group=_CLI_GROUP),
    ] = 25

    medium_group_size: Annotated[
        int,
        Field(
            serialization_alias="MEDIUM_GROUP_SIZE", description="Medium group size."
        ),
        Parameter(name=("--medium-group-size",), group=_CLI_GROUP),
    ] = 10

    small_group_size: Annotated[
        int,
        Field(serialization_alias="SMALL_GROUP_SIZE", description="Small group size."),
        Parameter(name=("--small-group-size",), group=_CLI_GROUP),
    ] = 5

    small_stateful_sets_per_namespace: Annotated[
        int,
        Field(
            serialization_alias="SMALL_STATEFUL_SETS_PER_NAMESPACE",
            description="Number of small StatefulSets per namespace.",
        ),
        Parameter(name=("--small-stateful-sets-per-namespace",), group=_CLI_GROUP),
    ] = 0

    medium_stateful_sets_per_namespace: Annotated[
        int,
        Field(
            serialization_alias="MEDIUM_STATEFUL_SETS_PER_NAMESPACE",
            description="Number of medium StatefulSets per namespace.",
        ),
        Parameter(name=("--medium-stateful-sets-per-namespace",), group=_CLI_GROUP),
    ] = 0

    cl2_enable_pvs: Annotated[
        bool,
        Field(
            serialization_alias="CL2_ENABLE_PVS",
            description="Enable persistent volumes in the test workloads.",
        ),
        Parameter(name=("--cl2-enable-pvs",), group=_CLI_GROUP),
    ] = False

    prometheus_scrape_kube_proxy: Annotated[
        bool,
        Field(
            serialization_alias="PROMETHEUS_SCRAPE_KUBE_PROXY",
            description="Let Prometheus scrape kube-proxy.",
        ),
        Parameter(name=("--prometheus-scrape-kube-proxy",), group=_CLI_GROUP),
    ] = False

    enable_system_pod_metrics: Annotated[
        bool,
        Field(
            serialization_alias="ENABLE_SYSTEM_POD_METRICS",
            description="Collect system pod metrics.",
        ),
        Parameter(name=("--enable-system-pod-metrics",), group=_CLI_GROUP),
    ] = False


class ClusterLoaderConfig(BaseModel):
    """Configuration for a clusterloader2 driver session.

    The config is read-only for the loader. Paths are not resolved here; the
    loader checks them when it starts.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    _CLI_GROUP = Groups.CLUSTERLOADER

    kubeconfig_path: Annotated[
        Path | None,
        Field(
            description="Kubeconfig path passed as '--kubeconfig'. "
            "If empty, clusterloader2 uses the in-cluster client configuration.",
        ),
        Parameter(name=("--kubeconfig",), group=_CLI_GROUP),
    ] = None

    clusterloader_path: Annotated[
        Path,
        Field(description="Path of the clusterloader2 executable."),
        Parameter(name=("--clusterloader-path",), group=_CLI_GROUP),
    ] = DEFAULT_CLUSTERLOADER_PATH

    clusterloader_download_url: Annotated[
        str,
        Field(
            min_length=1,
            description="URL to download clusterloader2 from when the executable is absent.",
        ),
        Parameter(name=("--clusterloader-download-url",), group=_CLI_GROUP),
    ] = DEFAULT_CLUSTERLOADER_DOWNLOAD_URL

    test_config_path: Annotated[
        Path,
        Field(description="clusterloader2 test configuration file ('--testconfig')."),
        Parameter(name=("--test-config", "--testconfig"), group=_CLI_GROUP),
    ]

    report_dir: Annotated[
        Path,
        Field(
            description="clusterloader2 report directory ('--report-dir'). Created if missing."
        ),
        Parameter(name=("--report-dir",), group=_CLI_GROUP),
    ] = DEFAULT_REPORT_DIR

    logs_path: Annotated[
        Path | None,
        Field(
            description="File that receives the combined output of every clusterloader2 run."
        ),
        Parameter(name=("--logs-path",), group=_CLI_GROUP),
    ] = None

    runs: Annotated[
        int,
        Field(ge=0, description="Number of clusterloader2 runs, back-to-back."),
        Parameter(name=("--runs",), group=Groups.RUNS),
    ] = 2

    timeout: Annotated[
        float,
        Field(
            gt=0,
            description="Global deadline in seconds for the whole sequence of runs. "
            "A run still in flight when it expires is killed.",
        ),
        Parameter(name=("--timeout",), group=Groups.RUNS),
    ] = 30 * 60

    nodes: Annotated[
        int,
        Field(ge=0, description="Number of nodes ('--nodes')."),
        Parameter(name=("--nodes",), group=Groups.RUNS),
    ] = 10

    overrides: Annotated[
        TestOverridesConfig,
        Field(default_factory=TestOverridesConfig),
        Parameter(name="*"),
    ]

    @field_validator("kubeconfig_path", "logs_path", mode="before")
    @classmethod
    def _empty_path_is_unset(cls, v: object) -> object:
        """Treat an empty string as 'not configured'."""
        if isinstance(v, str) and not v.strip():
            return None
        return v
