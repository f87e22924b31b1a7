"""Set the cluster-wide default broker class in the broker defaults ConfigMap."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

import yaml

from .spec import KnativeEventing

Resource = dict[str, Any]
Transformer = Callable[[Resource], None]

DEFAULTS_CONFIG_NAME = "config-br-defaults"
BROKER_DEFAULTS_KEY = "default-br-config"
MT_CHANNEL_BROKER_CLASS = "MTChannelBasedBroker"
_SPEC_CONFIG_KEYS = ("br-defaults", "config-br-defaults")

_log = logging.getLogger(__name__)


def default_broker_class_defined(data: Mapping[str, str]) -> bool:
    """Whether a spec config entry already sets a broker class in its defaults."""
    value = data.get(BROKER_DEFAULTS_KEY)
    if value is None:
        return False
    return "brokerClass:" in value


def _parse_defaults(text: str | None) -> dict[str, Any]:
    if not text:
        return {}
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"invalid broker defaults: {exc}") from exc
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError("invalid broker defaults: expected a mapping")
    return parsed


def default_broker_configmap_transform(instance: KnativeEventing) -> Transformer:
    """Build a transformer writing the spec's default broker class into the defaults ConfigMap.

    The ConfigMap is left alone when the spec's own config already names a
    broker class. Raises ``ValueError`` if the existing defaults cannot be parsed.
    """

    def transform(resource: Resource) -> None:
        metadata = resource.get("metadata") or {}
        if resource.get("kind") != "ConfigMap" or metadata.get("name") != DEFAULTS_CONFIG_NAME:
            return

        config = instance.spec.config
        if any(
            key in config and default_broker_class_defined(config[key])
            for key in _SPEC_CONFIG_KEYS
        ):
            return

        data = resource.get("data")
        if not isinstance(data, dict):
            data = {}
            resource["data"] = data

        defaults = _parse_defaults(data.get(BROKER_DEFAULTS_KEY))
        broker_class = instance.spec.default_broker_class or MT_CHANNEL_BROKER_CLASS
        cluster_default = defaults.get("clusterDefault")
        if not isinstance(cluster_default, dict):
            cluster_default = {}
            defaults["clusterDefault"] = cluster_default
        cluster_default["brokerClass"] = broker_class

        data[BROKER_DEFAULTS_KEY] = yaml.safe_dump(
            defaults, sort_keys=True, default_flow_style=False
        )
        _log.debug("Finished updating Broker defaults configMap %s", metadata.get("name"))

    return transform