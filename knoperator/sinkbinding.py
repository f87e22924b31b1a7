"""Set the eventing webhook's sink binding selection mode."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from .spec import KnativeEventing

Resource = dict[str, Any]
Transformer = Callable[[Resource], None]

SINK_BINDING_SELECTION_MODE_ENV_VAR_KEY = "SINK_BINDING_SELECTION_MODE"
WEBHOOK_NAME = "eventing-webhook"
DEFAULT_SELECTION_MODE = "exclusion"

_log = logging.getLogger(__name__)


def selection_mode_from_workload_overrides(instance: KnativeEventing) -> str:
    """The selection mode set through the webhook's env overrides, or ``""``."""
    for override in instance.workload_overrides():
        if override.name != WEBHOOK_NAME:
            continue
        for requirement in override.env:
            if requirement.container != WEBHOOK_NAME:
                continue
            for var in requirement.env_vars:
                if var.get("name") == SINK_BINDING_SELECTION_MODE_ENV_VAR_KEY:
                    return var.get("value", "")
    return ""


def _selection_mode(instance: KnativeEventing) -> str:
    return (
        instance.spec.sink_binding_selection_mode
        or selection_mode_from_workload_overrides(instance)
        or DEFAULT_SELECTION_MODE
    )


def sink_binding_selection_mode_transform(instance: KnativeEventing) -> Transformer:
    """Build a transformer setting the selection mode env var on every webhook container."""

    def transform(resource: Resource) -> None:
        metadata = resource.get("metadata") or {}
        if resource.get("kind") != "Deployment" or metadata.get("name") != WEBHOOK_NAME:
            return

        mode = _selection_mode(instance)
        template = (resource.get("spec") or {}).get("template") or {}
        containers = (template.get("spec") or {}).get("containers") or []
        for container in containers:
            env = container.get("env") or []
            existing = next(
                (var for var in env if var.get("name") == SINK_BINDING_SELECTION_MODE_ENV_VAR_KEY),
                None,
            )
            if existing is None:
                env.append({"name": SINK_BINDING_SELECTION_MODE_ENV_VAR_KEY, "value": mode})
            else:
                existing["value"] = mode
            container["env"] = env
        _log.debug("Finished updating %s deployment for sinkBindingSelectionMode", WEBHOOK_NAME)

    return transform