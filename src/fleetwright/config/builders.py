# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fleetwright/config/builders.py
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence, Union

from ..catalog.models import RoleCatalog
from ..catalog.resolver import RoleResolver
from ..errors import InvalidTopology
from .models import ClusterSpec, MachineTemplate, NodeGroup
from .validator import validate_cluster


def make_node_group(
    roles: Sequence[str],
    count: Optional[int] = None,
    *,
    spec: Optional[Dict[str, Any]] = None,
    props: Optional[Dict[str, Any]] = None,
    catalog: Optional[RoleCatalog] = None,
) -> NodeGroup:
    """
    Build a node-group with sane defaults.

    A group holding a singleton role defaults to a count of 1. Every other
    group must say how many instances it wants.
    """
    if count is None:
        if not RoleResolver(catalog).is_master(roles):
            raise InvalidTopology(
                f"A count is required for node-groups without a singleton role (roles={list(roles)})"
            )
        count = 1
    return NodeGroup(roles=list(roles), count=count, spec=spec or {}, props=props or {})


def slave_node(count: int, **kwargs: Any) -> NodeGroup:
    """Storage + worker group, the usual shape for everything but the masters."""
    return make_node_group(["slavenode"], count, **kwargs)


def make_cluster(
    ip_mode: str,
    node_groups: Mapping[str, NodeGroup],
    base_machine_spec: Optional[Union[MachineTemplate, Dict[str, Any]]] = None,
    base_props: Optional[Dict[str, Any]] = None,
    *,
    catalog: Optional[RoleCatalog] = None,
) -> ClusterSpec:
    """Assemble and validate a cluster. Raises a TopologyError before anything runs."""
    if base_machine_spec is None:
        base_machine_spec = MachineTemplate()
    elif not isinstance(base_machine_spec, MachineTemplate):
        base_machine_spec = MachineTemplate.model_validate(base_machine_spec)

    cluster = ClusterSpec(
        ip_mode=ip_mode,
        node_groups=dict(node_groups),
        base_machine_spec=base_machine_spec,
        base_props=base_props or {},
    )
    validate_cluster(cluster, catalog)
    return cluster


def example_cluster(ip_mode: str = "private", node_count: int = 5) -> ClusterSpec:
    """A single master and a pool of slaves on 64-bit Ubuntu."""
    return make_cluster(
        ip_mode,
        {
            "master": make_node_group(["coordinator", "jobcontrol"]),
            "slaves": slave_node(node_count),
        },
        base_machine_spec={
            "os_family": "ubuntu",
            "os_version_matches": "10.10",
            "os_64_bit": True,
        },
        base_props={
            "mapred-site": {
                "mapred.task.timeout": 300000,
                "mapred.tasktracker.map.tasks.maximum": 20,
                "mapred.tasktracker.reduce.tasks.maximum": 20,
            }
        },
    )
