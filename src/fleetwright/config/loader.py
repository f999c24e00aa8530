# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fleetwright/config/loader.py

import copy
import logging
import os
import yaml
from pathlib import Path
from typing import Optional

from ..catalog.models import RoleCatalog
from .builders import make_cluster, make_node_group
from .models import ClusterSpec, NodeGroup

log = logging.getLogger("fleetwright")


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Recursively merge *override* into *base* (mutates base).
    Only overwrites when the override value is non-empty.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            _deep_merge(base[key], value)
        else:
            if value not in (None, ""):
                base[key] = value
    return base


def _find_secrets_file(config_path: Path) -> Optional[Path]:
    """
    Locate secrets.yaml using this priority:

    1. FLEETWRIGHT_SECRETS_FILE environment variable (explicit override)
    2. secrets.yaml in the same directory as the cluster config
    """
    env = os.environ.get("FLEETWRIGHT_SECRETS_FILE")
    if env:
        p = Path(env)
        if p.is_file():
            return p
        log.warning("FLEETWRIGHT_SECRETS_FILE=%s does not exist, skipping", env)
        return None

    p = config_path.parent / "secrets.yaml"
    if p.is_file():
        return p

    return None


def _load_yaml(path: Path) -> dict:
    """Load a YAML file, expanding ${ENV_VAR} references."""
    raw = path.read_text()
    expanded = os.path.expandvars(raw)
    return yaml.safe_load(expanded) or {}


def _node_group(tag: str, raw: dict, catalog: Optional[RoleCatalog]) -> NodeGroup:
    raw = copy.deepcopy(raw or {})
    roles = raw.pop("roles", None)
    if not roles:
        # let pydantic produce the usual "field required" error
        return NodeGroup.model_validate(raw)
    log.debug("node-group %s: roles=%s count=%s", tag, roles, raw.get("count"))
    group = make_node_group(
        roles,
        raw.pop("count", None),
        spec=raw.pop("spec", None),
        props=raw.pop("props", None),
        catalog=catalog,
    )
    if raw:
        log.warning("node-group %s: ignoring unknown keys %s", tag, sorted(raw))
    return group


def parse_cluster(data: dict, catalog: Optional[RoleCatalog] = None) -> ClusterSpec:
    """Build a validated cluster from an already-loaded mapping."""
    groups = {
        str(tag): _node_group(str(tag), raw, catalog)
        for tag, raw in (data.get("node_groups") or {}).items()
    }
    return make_cluster(
        data.get("ip_mode", "private"),
        groups,
        base_machine_spec=data.get("base_machine_spec"),
        base_props=data.get("base_props"),
        catalog=catalog,
    )


def load_cluster(path, catalog: Optional[RoleCatalog] = None) -> ClusterSpec:
    """
    Load and validate a cluster description from YAML.

    Secrets (credentials inside ``base_props``, for example) can live in a
    ``secrets.yaml`` whose structure mirrors the cluster file. It is found via
    ``FLEETWRIGHT_SECRETS_FILE`` or next to the cluster file, and deep-merged
    before validation. ``${ENV_VAR}`` placeholders are expanded in both files.
    """
    path = Path(path)
    data = _load_yaml(path)

    secrets_path = _find_secrets_file(path)
    if secrets_path:
        log.debug("Merging secrets from %s", secrets_path)
        _deep_merge(data, _load_yaml(secrets_path))
    else:
        log.debug("No secrets.yaml found, proceeding without secrets merge")

    return parse_cluster(data, catalog)
