# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fleetwright/catalog/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Mapping, Tuple

DEFAULT_ROLE = "default"

# Phase names. The driver refers to these when it fixes an ordering.
BOOTSTRAP = "bootstrap"
CONFIGURE = "configure"
REINSTALL = "reinstall"
RECONFIGURE = "reconfigure"
PUBLISH_KEY = "publish-key"
AUTHORIZE_COORDINATOR = "authorize-coordinator"
START_COORDINATOR = "start-coordinator-role"
START_STORAGE = "start-storage-role"
START_JOBCONTROL = "start-jobcontrol-role"
START_WORKER = "start-worker-role"

ALL_PHASES: FrozenSet[str] = frozenset(
    {
        BOOTSTRAP,
        CONFIGURE,
        REINSTALL,
        RECONFIGURE,
        PUBLISH_KEY,
        AUTHORIZE_COORDINATOR,
        START_COORDINATOR,
        START_STORAGE,
        START_JOBCONTROL,
        START_WORKER,
    }
)


@dataclass(frozen=True)
class RoleCatalog:
    """
    Static registry of roles for one fleet flavour.

    - ports:   role -> inbound ports the role needs open
    - phases:  role -> lifecycle phases the role needs
    - aliases: alias -> concrete roles it stands for (expanded one level)
    - masters: singleton roles; at most one node-group may hold each
    """

    ports: Mapping[str, FrozenSet[int]]
    phases: Mapping[str, FrozenSet[str]]
    aliases: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    masters: FrozenSet[str] = frozenset()
    default_role: str = DEFAULT_ROLE
    phase_names: FrozenSet[str] = ALL_PHASES

    @property
    def roles(self) -> FrozenSet[str]:
        """Every concrete role the catalog knows about."""
        return frozenset(self.ports) | frozenset(self.phases)

    def is_known(self, role: str) -> bool:
        return role in self.roles

    @classmethod
    def build(
        cls,
        *,
        ports: Mapping[str, Iterable[int]],
        phases: Mapping[str, Iterable[str]],
        aliases: Mapping[str, Iterable[str]] | None = None,
        masters: Iterable[str] = (),
        default_role: str = DEFAULT_ROLE,
        phase_names: Iterable[str] = ALL_PHASES,
    ) -> "RoleCatalog":
        """Freeze plain collections into a catalog."""
        alias_map: Dict[str, Tuple[str, ...]] = {
            k: tuple(v) for k, v in (aliases or {}).items()
        }
        for alias, expansion in alias_map.items():
            if not expansion:
                raise ValueError(f"Alias '{alias}' must expand to at least one role")
            nested = [r for r in expansion if r in alias_map]
            if nested:
                # expansion is one level deep
                raise ValueError(f"Alias '{alias}' expands to other aliases: {nested}")
        return cls(
            ports={k: frozenset(v) for k, v in ports.items()},
            phases={k: frozenset(v) for k, v in phases.items()},
            aliases=alias_map,
            masters=frozenset(masters),
            default_role=default_role,
            phase_names=frozenset(phase_names),
        )


def default_catalog() -> RoleCatalog:
    """
    The master/worker data-processing fleet.

    `coordinator` owns the storage namespace, `jobcontrol` schedules work,
    `storage` and `worker` run on every slave. `slavenode` is shorthand for
    the pair since they nearly always come together.
    """
    return RoleCatalog.build(
        ports={
            DEFAULT_ROLE: {22, 80},
            "coordinator": {50070, 8020},
            "storage": {50075, 50010, 50020},
            "jobcontrol": {50030, 8021},
            "worker": {50060},
            "secondary": {50090, 50105},
        },
        phases={
            DEFAULT_ROLE: {
                BOOTSTRAP,
                REINSTALL,
                CONFIGURE,
                RECONFIGURE,
                AUTHORIZE_COORDINATOR,
            },
            "coordinator": {START_COORDINATOR},
            "storage": {START_STORAGE},
            "jobcontrol": {PUBLISH_KEY, START_JOBCONTROL},
            "worker": {START_WORKER},
        },
        aliases={"slavenode": ("storage", "worker")},
        masters={"coordinator", "jobcontrol"},
    )
