"""Locate and load the manifests of optional eventing sources."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml

from .spec import COMMA, KO_ENV_KEY, LATEST_VERSION, KnativeEventing

Resource = dict[str, Any]

SOURCE_DIR = "eventing-source"
SOURCE_NAMES = ("ceph", "github", "gitlab", "kafka", "rabbitmq", "redis")
_MANIFEST_SUFFIXES = (".yaml", ".yml", ".json")

_NUM = r"(0|[1-9]\d*)"
_SEMVER = re.compile(
    rf"^v{_NUM}(?:\.{_NUM}(?:\.{_NUM}(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?)?)?$"
)


def _major_minor(version: str) -> str:
    sanitized = version if version.startswith("v") else f"v{version}"
    match = _SEMVER.match(sanitized)
    if match is None:
        raise ValueError(f"invalid version: {version!r}")
    return f"{match.group(1)}.{match.group(2) or '0'}"


def _source_version(version: str) -> str:
    if version.lower() == LATEST_VERSION:
        return LATEST_VERSION
    return _major_minor(version)


def _source_root(version: str) -> str:
    return os.path.join(os.environ.get(KO_ENV_KEY, ""), SOURCE_DIR, _source_version(version))


def _load_file(path: Path) -> list[Resource]:
    with path.open(encoding="utf-8") as stream:
        return [doc for doc in yaml.safe_load_all(stream) if isinstance(doc, dict)]


def load_manifest(paths: str) -> list[Resource]:
    """Load resources from comma-separated files or directories of manifests.

    Raises ``FileNotFoundError`` for a path that does not exist.
    """
    resources: list[Resource] = []
    for entry in filter(None, (part.strip() for part in paths.split(COMMA))):
        path = Path(entry)
        if path.is_dir():
            for child in sorted(path.iterdir()):
                if child.is_file() and child.suffix in _MANIFEST_SUFFIXES:
                    resources.extend(_load_file(child))
        elif path.is_file():
            resources.extend(_load_file(path))
        else:
            raise FileNotFoundError(f"stat {entry}: no such file or directory")
    return resources


def get_source_path(version: str, instance: KnativeEventing) -> str:
    """Comma-separated paths of the sources enabled in ``instance``, or ``""``."""
    source = instance.spec.source
    if source is None:
        return ""
    root = _source_root(version)
    return COMMA.join(
        os.path.join(root, name) for name in SOURCE_NAMES if getattr(source, name)
    )


def all_source_path(version: str) -> str:
    """Comma-separated paths of every bundled source for ``version``, or ``""``."""
    root = Path(_source_root(version))
    try:
        entries = sorted(root.iterdir(), key=lambda entry: entry.name)
    except OSError:
        return ""
    return COMMA.join(str(entry) for entry in entries if entry.is_dir())


def append_target_sources(manifest: list[Resource], instance: KnativeEventing) -> list[Resource]:
    """Return ``manifest`` extended with the enabled sources of ``instance``.

    A missing source is an error unless the spec lists its own manifests,
    in which case ``manifest`` is returned unchanged.
    """
    path = get_source_path(instance.target_version(), instance)
    try:
        return [*manifest, *load_manifest(path)]
    except FileNotFoundError:
        if instance.spec.manifests:
            return list(manifest)
        raise


def append_all_sources(manifest: list[Resource], instance: KnativeEventing) -> list[Resource]:
    """Return ``manifest`` extended with every bundled source; unavailable sources are skipped."""
    version = instance.status.version or instance.target_version()
    try:
        return [*manifest, *load_manifest(all_source_path(version))]
    except FileNotFoundError:
        return list(manifest)