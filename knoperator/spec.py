"""Data model of a KnativeEventing custom resource and its workload overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

KO_ENV_KEY = "KO_DATA_PATH"
LATEST_VERSION = "latest"
COMMA = ","
EVENTING_COMPONENT = "knative-eventing"


@dataclass
class EnvRequirementsOverride:
    """Environment variables to set on one container."""

    container: str
    env_vars: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class ProbesRequirementsOverride:
    """Probe timings to apply to one container; zero means "not set"."""

    container: str
    initial_delay_seconds: int = 0
    timeout_seconds: int = 0
    period_seconds: int = 0
    success_threshold: int = 0
    failure_threshold: int = 0
    termination_grace_period_seconds: int | None = None


@dataclass
class ResourceRequirementsOverride:
    """Resource limits and requests for one container."""

    container: str
    limits: dict[str, str] = field(default_factory=dict)
    requests: dict[str, str] = field(default_factory=dict)


@dataclass
class WorkloadOverride:
    """Changes applied to the Deployment, StatefulSet or Job called ``name``."""

    name: str
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    replicas: int | None = None
    node_selector: dict[str, str] = field(default_factory=dict)
    topology_spread_constraints: list[dict[str, Any]] = field(default_factory=list)
    tolerations: list[dict[str, Any]] = field(default_factory=list)
    affinity: dict[str, Any] | None = None
    resources: list[ResourceRequirementsOverride] = field(default_factory=list)
    env: list[EnvRequirementsOverride] = field(default_factory=list)
    readiness_probes: list[ProbesRequirementsOverride] = field(default_factory=list)
    liveness_probes: list[ProbesRequirementsOverride] = field(default_factory=list)
    host_network: bool | None = None


@dataclass
class SourceConfigs:
    """Which optional eventing sources are enabled."""

    ceph: bool = False
    github: bool = False
    gitlab: bool = False
    kafka: bool = False
    rabbitmq: bool = False
    redis: bool = False


@dataclass
class ManifestRef:
    """A reference to a manifest file or directory."""

    url: str


@dataclass
class KnativeEventingSpec:
    """Desired state of a KnativeEventing resource."""

    version: str = ""
    manifests: list[ManifestRef] = field(default_factory=list)
    additional_manifests: list[ManifestRef] = field(default_factory=list)
    config: dict[str, dict[str, str]] = field(default_factory=dict)
    workloads: list[WorkloadOverride] = field(default_factory=list)
    deployment_override: list[WorkloadOverride] = field(default_factory=list)
    default_broker_class: str = ""
    sink_binding_selection_mode: str = ""
    source: SourceConfigs | None = None


@dataclass
class KnativeEventingStatus:
    """Observed state of a KnativeEventing resource."""

    version: str = ""
    manifests: list[str] = field(default_factory=list)


@dataclass
class KnativeEventing:
    """A KnativeEventing custom resource."""

    name: str = ""
    spec: KnativeEventingSpec = field(default_factory=KnativeEventingSpec)
    status: KnativeEventingStatus = field(default_factory=KnativeEventingStatus)

    def workload_overrides(self) -> list[WorkloadOverride]:
        """All overrides: current workloads first, then deprecated deployment overrides."""
        return [*self.spec.workloads, *self.spec.deployment_override]

    def target_version(self) -> str:
        """The version to install, resolving "latest" against the bundled data."""
        version = self.spec.version
        if version and version.lower() != LATEST_VERSION:
            return version
        return _latest_available_version(EVENTING_COMPONENT)


def _parse_version(name: str) -> tuple[int, ...] | None:
    parts = name.removeprefix("v").split(".")
    if not 1 <= len(parts) <= 3 or not all(part.isdigit() for part in parts):
        return None
    return tuple(int(part) for part in parts)


def _latest_available_version(component: str) -> str:
    base = Path(os.environ.get(KO_ENV_KEY, "")) / component
    if not base.is_dir():
        return LATEST_VERSION
    names = [entry.name for entry in base.iterdir() if entry.is_dir()]
    if any(name.lower() == LATEST_VERSION for name in names):
        return LATEST_VERSION
    versioned = [(parsed, name) for name in names if (parsed := _parse_version(name))]
    if not versioned:
        return LATEST_VERSION
    return max(versioned)[1]