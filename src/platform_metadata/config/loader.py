"""Manifest loader: YAML files with ``${VAR}`` / ``${VAR:-default}`` substitution."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, cast

import structlog
import yaml
from pydantic import ValidationError

from platform_metadata.config.models import ManifestConfig

logger = structlog.get_logger()

# ${VAR} or ${VAR:-default}; a literal "}" in the default is written "\}"
_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::-((?:[^}\\]|\\.)*))?}")


def _substitute(value: str, where: str) -> str:
    def _lookup(match: re.Match[str]) -> str:
        name, default = match.group(1), match.group(2)
        if name in os.environ:
            return os.environ[name]
        if default is not None:
            return default.replace("\\}", "}")
        msg = f"Environment variable '{name}' is not set and no default provided"
        if where:
            msg += f" (at {where})"
        raise ValueError(msg)

    return _ENV_PATTERN.sub(_lookup, value)


def _entry_label(item: Any, index: int) -> str:
    """Label list entries by component name or resource id where they have one."""
    if isinstance(item, dict):
        label = item.get("name") or item.get("id")
        if isinstance(label, str) and label:
            return label
    return str(index)


def resolve_env_vars(data: Any, where: str = "") -> Any:
    """Resolve environment references throughout parsed manifest data.

    *where* is the location of *data* within the manifest, e.g.
    ``components[orders].outputs[topic://shipments]``; it is reported when a
    variable can not be resolved.
    """
    if isinstance(data, str):
        return _substitute(data, where)
    if isinstance(data, dict):
        return {
            key: resolve_env_vars(value, f"{where}.{key}" if where else str(key))
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [
            resolve_env_vars(item, f"{where}[{_entry_label(item, i)}]")
            for i, item in enumerate(data)
        ]
    return data


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Read one manifest file, resolving environment references.

    An empty file is an empty manifest.
    """
    p = Path(path)
    if not p.exists():
        msg = f"Manifest file not found: {p}"
        raise FileNotFoundError(msg)

    try:
        data = yaml.safe_load(p.read_text())
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        position = f" at line {mark.line + 1}, column {mark.column + 1}" if mark else ""
        msg = f"Failed to parse YAML in {p}{position}: {exc}"
        raise ValueError(msg) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Expected a YAML mapping at top level in {p}, got {type(data).__name__}"
        raise TypeError(msg)

    try:
        return cast(dict[str, Any], resolve_env_vars(data))
    except ValueError as exc:
        msg = f"Failed to resolve manifest {p}: {exc}"
        raise ValueError(msg) from exc


def load_manifest(*paths: str | Path) -> ManifestConfig:
    """Load one or more manifests and combine them into one.

    Components and catalog entries are concatenated in file order, so
    descriptors published by separate codebases can be checked together.
    """
    if not paths:
        msg = "At least one manifest path is required"
        raise ValueError(msg)

    combined: dict[str, list[Any]] = {"components": [], "resources": []}
    for path in paths:
        data = load_yaml(path)
        unknown = sorted(set(data) - set(combined))
        if unknown:
            msg = f"Unknown top-level keys in {path}: {unknown}"
            raise ValueError(msg)
        for key in combined:
            combined[key].extend(data.get(key) or [])

    try:
        manifest = ManifestConfig.model_validate(combined)
    except ValidationError as exc:
        sources = ", ".join(str(p) for p in paths)
        msg = f"Invalid manifest ({sources}):\n{exc}"
        raise ValueError(msg) from exc

    logger.debug(
        "manifest.loaded",
        paths=[str(p) for p in paths],
        components=len(manifest.components),
        catalog=len(manifest.resources),
    )
    return manifest
