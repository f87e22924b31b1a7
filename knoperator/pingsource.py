"""Keep the replicas and selected env vars of the running ping source adapter."""

from __future__ import annotations

import copy
from collections.abc import Callable
from typing import Any, Protocol

Resource = dict[str, Any]
Transformer = Callable[[Resource], None]

PINGSOURCE_ADAPTER_NAME = "pingsource-mt-adapter"
PRESERVED_ENV_VARS = frozenset(
    {
        "SYSTEM_NAMESPACE",
        "K_METRICS_CONFIG",
        "K_LOGGING_CONFIG",
        "K_LEADER_ELECTION_CONFIG",
        "K_NO_SHUTDOWN_AFTER",
        "K_SINK_TIMEOUT",
        "K_TRACING_CONFIG",
        "NAMESPACE",
    }
)


class NotFoundError(LookupError):
    """Raised by a resource getter when the resource does not exist in the cluster."""


class ResourceGetter(Protocol):
    """Fetches the live copy of a resource, raising ``NotFoundError`` if absent."""

    def get(self, resource: Resource) -> Resource: ...


def _child(mapping: dict[str, Any], key: str) -> dict[str, Any]:
    value = mapping.get(key)
    if not isinstance(value, dict):
        value = {}
        mapping[key] = value
    return value


def _containers(deployment: Resource) -> list[dict[str, Any]]:
    template = (deployment.get("spec") or {}).get("template") or {}
    return (template.get("spec") or {}).get("containers") or []


def replicas_env_vars_transform(client: ResourceGetter) -> Transformer:
    """Build a transformer preserving the live adapter's replicas and env vars.

    If the adapter deployment is not in the cluster the resource is left alone;
    any other error from ``client`` propagates.
    """

    def transform(resource: Resource) -> None:
        metadata = resource.get("metadata") or {}
        if resource.get("kind") != "Deployment" or metadata.get("name") != PINGSOURCE_ADAPTER_NAME:
            return
        try:
            current = client.get(resource)
        except NotFoundError:
            return

        spec = _child(resource, "spec")
        current_replicas = (current.get("spec") or {}).get("replicas")
        if current_replicas is None:
            spec.pop("replicas", None)
        else:
            spec["replicas"] = current_replicas

        applied = _containers(resource)
        for current_container in _containers(current):
            target = next(
                (c for c in applied if c.get("name") == current_container.get("name")), None
            )
            if target is None:
                continue
            merged = [
                copy.deepcopy(var)
                for var in current_container.get("env") or []
                if var.get("name") in PRESERVED_ENV_VARS
            ]
            kept = {var.get("name") for var in merged}
            merged.extend(var for var in target.get("env") or [] if var.get("name") not in kept)
            if merged:
                target["env"] = merged
            else:
                target.pop("env", None)

    return transform