# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fleetwright/engine/interface.py
from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..spec.builder import ResolvedNodeSpec


class ConvergenceEngine(Protocol):
    """
    The external collaborator that talks to real machines.

    converge: bring each node-group to its target count, then run the given
              phases (in order) on it; no phases means the engine's default.
    lift:     run the given phases, in order, on existing members only.

    Options are whatever the engine understands (concurrency, dry-run, ...);
    they are passed through untouched.
    """

    def converge(
        self,
        node_map: Mapping[ResolvedNodeSpec, int],
        phases: Optional[Sequence[str]] = None,
        **options: Any,
    ) -> Any: ...

    def lift(
        self,
        node_set: Sequence[ResolvedNodeSpec],
        phases: Sequence[str],
        **options: Any,
    ) -> Any: ...
