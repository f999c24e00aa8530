# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fleetwright/config/validator.py
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from ..catalog.models import RoleCatalog
from ..catalog.resolver import RoleResolver
from ..errors import AmbiguousSingleton, InvalidTopology
from .models import ClusterSpec, NodeGroup

log = logging.getLogger("fleetwright")


def validate_node_group(
    tag: str,
    group: NodeGroup,
    catalog: Optional[RoleCatalog] = None,
    *,
    warn: bool = True,
) -> None:
    """
    Check one node-group on its own.

    The default role is appended to every group, so it does not count as a
    recognised role here: a group must name at least one real role.
    Unknown roles are logged unless ``warn`` is False.
    """
    resolver = RoleResolver(catalog)
    if warn:
        resolver.warn_unknown(tag, group.roles)

    if not resolver.known_roles(group.roles):
        raise InvalidTopology(
            f"Node-group '{tag}' has no recognised role among {group.roles}; "
            f"known roles: {', '.join(sorted(resolver.catalog.roles))}"
        )

    masters = resolver.masters_in(group.roles)
    if masters and group.count not in (0, 1):
        raise InvalidTopology(
            f"Node-group '{tag}' holds singleton role(s) {', '.join(masters)} "
            f"and must have a count of 0 or 1, got {group.count}"
        )


def validate_cluster(
    cluster: ClusterSpec,
    catalog: Optional[RoleCatalog] = None,
    *,
    warn: bool = True,
) -> None:
    """Validate every node-group, then make sure each singleton role has one owner."""
    resolver = RoleResolver(catalog)
    owners: Dict[str, List[str]] = {}

    for tag, group in cluster.node_groups.items():
        validate_node_group(tag, group, resolver.catalog, warn=warn)
        for role in resolver.masters_in(group.roles):
            owners.setdefault(role, []).append(tag)

    for role in sorted(owners):
        if len(owners[role]) > 1:
            raise AmbiguousSingleton(role, owners[role])

    log.debug("cluster validated: %d node-group(s)", len(cluster.node_groups))
