# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fleetwright/catalog/resolver.py
from __future__ import annotations

import logging
from typing import FrozenSet, Iterable, List, Optional, Tuple

from .models import RoleCatalog, default_catalog

log = logging.getLogger("fleetwright")


class RoleResolver:
    """
    Answers role questions against a single catalog.

    Every lookup expands aliases first, so callers may pass either the roles a
    user declared or roles that are already expanded.

    Unknown roles are tolerated: they contribute no ports and no phases.
    Validation is where a node-group with nothing but unknown roles is
    rejected.
    """

    def __init__(self, catalog: Optional[RoleCatalog] = None):
        self.catalog = catalog or default_catalog()

    def expand(self, roles: Iterable[str]) -> List[str]:
        """
        Append the default role, replace aliases with their expansion and
        drop duplicates, keeping first-seen order.
        """
        out: List[str] = []
        for role in [*roles, self.catalog.default_role]:
            for r in self.catalog.aliases.get(role, (role,)):
                if r not in out:
                    out.append(r)
        return out

    def unknown_roles(self, roles: Iterable[str]) -> List[str]:
        return [r for r in self.expand(roles) if not self.catalog.is_known(r)]

    def known_roles(self, roles: Iterable[str]) -> List[str]:
        """Expanded roles the catalog knows, without the default role."""
        return [
            r
            for r in self.expand(roles)
            if r != self.catalog.default_role and self.catalog.is_known(r)
        ]

    def ports_for(self, roles: Iterable[str]) -> Tuple[int, ...]:
        ports = set()
        for r in self.expand(roles):
            ports |= self.catalog.ports.get(r, frozenset())
        return tuple(sorted(ports))

    def phases_for(self, roles: Iterable[str]) -> FrozenSet[str]:
        phases = set()
        for r in self.expand(roles):
            phases |= self.catalog.phases.get(r, frozenset())
        return frozenset(phases & self.catalog.phase_names)

    def is_master(self, roles: Iterable[str]) -> bool:
        return bool(self.masters_in(roles))

    def masters_in(self, roles: Iterable[str]) -> List[str]:
        return [r for r in self.expand(roles) if r in self.catalog.masters]

    def warn_unknown(self, tag: str, roles: Iterable[str]) -> None:
        unknown = self.unknown_roles(roles)
        if unknown:
            log.warning(
                "node-group '%s' declares unknown role(s) %s; they add no ports or phases",
                tag,
                ", ".join(unknown),
            )
