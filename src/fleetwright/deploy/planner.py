# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from ..catalog.models import RoleCatalog
from ..catalog.resolver import RoleResolver
from ..config.models import ClusterSpec, NodeGroup
from ..config.validator import validate_cluster
from ..errors import InvalidTopology, MissingRole
from ..spec.builder import ResolvedNodeSpec, resolve_node_spec
from ..spec.phases import PhaseContext, PhaseLibrary

# Observer bits
from ..observers.dispatcher import EventBus
from ..observers.events import PlanComputed, PlanFailed, new_ctx

log = logging.getLogger("fleetwright")

# Roles whose hosts parameterise the phase table, in PhaseContext order.
ANCHOR_ROLES: Tuple[str, str] = ("coordinator", "jobcontrol")


class Action(str, Enum):
    BRING_UP = "bring-up"
    TEAR_DOWN = "tear-down"


class TopologyDiff(Mapping[ResolvedNodeSpec, int]):
    """
    Resolved node spec -> target instance count, in node-group declaration
    order. This is what the convergence engine receives.
    """

    def __init__(self, action: Action, entries: Sequence[Tuple[ResolvedNodeSpec, int]]):
        self.action = action
        self._entries: Dict[ResolvedNodeSpec, int] = dict(entries)

    def __getitem__(self, spec: ResolvedNodeSpec) -> int:
        return self._entries[spec]

    def __iter__(self) -> Iterator[ResolvedNodeSpec]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"TopologyDiff(action={self.action.value!r}, counts={self.counts()!r})"

    def specs(self) -> List[ResolvedNodeSpec]:
        return list(self._entries)

    def counts(self) -> Dict[str, int]:
        return {spec.tag: n for spec, n in self._entries.items()}

    def by_tag(self, tag: str) -> ResolvedNodeSpec:
        for spec in self._entries:
            if spec.tag == tag:
                return spec
        raise KeyError(tag)

    def check_consistency(self, catalog: Optional[RoleCatalog] = None) -> None:
        """Every spec may only carry phases its own roles ask for."""
        resolver = RoleResolver(catalog)
        for spec in self._entries:
            extra = set(spec.phases) - resolver.phases_for(spec.roles)
            if extra:
                raise InvalidTopology(
                    f"Node-group '{spec.tag}' carries phases not valid for its roles: {sorted(extra)}"
                )


def resolve_tags(
    target_roles: Sequence[str],
    node_groups: Mapping[str, NodeGroup],
    catalog: Optional[RoleCatalog] = None,
) -> List[str]:
    """
    Tag of the node-group holding each role, in the order the roles were asked
    for. Groups are matched on their expanded roles, first declared wins.
    """
    resolver = RoleResolver(catalog)
    expanded = {tag: resolver.expand(g.roles) for tag, g in node_groups.items()}

    tags: List[str] = []
    missing: List[str] = []
    for role in target_roles:
        tag = next((t for t, roles in expanded.items() if role in roles), None)
        if tag is None:
            missing.append(role)
        else:
            tags.append(tag)

    if len(tags) != len(target_roles):
        raise MissingRole(missing)
    return tags


# Label used in plan events for lift-style calls, which change no counts.
LIFT = "lift"


def _resolve_groups(
    cluster: ClusterSpec,
    resolver: RoleResolver,
    library: Optional[PhaseLibrary],
) -> List[Tuple[ResolvedNodeSpec, NodeGroup]]:
    # work on a private snapshot so the caller cannot change it mid-plan
    cluster = cluster.model_copy(deep=True)
    validate_cluster(cluster, resolver.catalog, warn=False)

    coordinator_tag, jobcontrol_tag = resolve_tags(
        ANCHOR_ROLES, cluster.node_groups, resolver.catalog
    )
    log.debug("anchors: coordinator=%s jobcontrol=%s", coordinator_tag, jobcontrol_tag)

    phase_ctx = PhaseContext(
        ip_mode=cluster.ip_mode,
        coordinator_tag=coordinator_tag,
        jobcontrol_tag=jobcontrol_tag,
    )
    return [
        (
            resolve_node_spec(
                tag, group, cluster, phase_ctx, library=library, catalog=resolver.catalog
            ),
            group,
        )
        for tag, group in cluster.node_groups.items()
    ]


def diff(
    cluster: ClusterSpec,
    action: Action | str,
    *,
    catalog: Optional[RoleCatalog] = None,
    library: Optional[PhaseLibrary] = None,
    bus: Optional[EventBus] = None,
    run_ctx: Optional[dict] = None,
) -> TopologyDiff:
    """
    Resolve every node-group and pair it with its target count: the declared
    count on bring-up, 0 on tear-down.
    Emits PlanComputed / PlanFailed if an EventBus is provided.
    """
    action = Action(action)
    ctx = run_ctx or new_ctx()
    try:
        resolver = RoleResolver(catalog)
        entries = []
        for spec, group in _resolve_groups(cluster, resolver, library):
            target = group.count if action is Action.BRING_UP else 0
            log.debug(
                "%s: roles=%s ports=%s phases=%s target=%d",
                spec.tag, list(spec.roles), list(spec.ports), list(spec.phase_names()), target,
            )
            entries.append((spec, target))

        result = TopologyDiff(action, entries)
        result.check_consistency(resolver.catalog)
        if bus:
            bus.emit(PlanComputed(action=action.value, counts=result.counts(), **ctx))
        return result

    except Exception as e:
        if bus:
            bus.emit(PlanFailed(action=action.value, error=str(e), **ctx))
        raise


def node_set(
    cluster: ClusterSpec,
    *,
    catalog: Optional[RoleCatalog] = None,
    library: Optional[PhaseLibrary] = None,
    bus: Optional[EventBus] = None,
    run_ctx: Optional[dict] = None,
) -> List[ResolvedNodeSpec]:
    """
    Every currently defined node-group, resolved, without any counts.
    Emits PlanComputed(action="lift", counts={}) / PlanFailed if an EventBus
    is provided.
    """
    ctx = run_ctx or new_ctx()
    try:
        resolver = RoleResolver(catalog)
        specs = [spec for spec, _ in _resolve_groups(cluster, resolver, library)]
        TopologyDiff(Action.TEAR_DOWN, [(s, 0) for s in specs]).check_consistency(resolver.catalog)
        if bus:
            bus.emit(PlanComputed(action=LIFT, counts={}, **ctx))
        return specs

    except Exception as e:
        if bus:
            bus.emit(PlanFailed(action=LIFT, error=str(e), **ctx))
        raise
