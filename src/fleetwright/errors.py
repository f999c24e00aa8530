# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fleetwright/errors.py
from __future__ import annotations

from typing import Sequence


class TopologyError(ValueError):
    """Base class for failures detected from the declarative cluster model."""


class InvalidTopology(TopologyError):
    """A node-group has no recognised role, or a singleton group has a bad count."""


class AmbiguousSingleton(TopologyError):
    """More than one node-group claims the same singleton role."""

    def __init__(self, role: str, tags: Sequence[str]):
        self.role = role
        self.tags = list(tags)
        super().__init__(
            f"Singleton role '{role}' is claimed by more than one node-group: "
            f"{', '.join(self.tags)}"
        )


class MissingRole(TopologyError):
    """A role needed for tag resolution is not held by any node-group."""

    def __init__(self, roles: Sequence[str]):
        self.roles = list(roles)
        super().__init__(
            f"No node-group holds required role(s): {', '.join(self.roles)}"
        )
