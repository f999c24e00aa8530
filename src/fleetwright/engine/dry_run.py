# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fleetwright/engine/dry_run.py
from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..spec.builder import ResolvedNodeSpec
from .interface import ConvergenceEngine

log = logging.getLogger("fleetwright")


@dataclass
class EngineCall:
    op: str                                  # "converge" | "lift"
    counts: Dict[str, int]                   # tag -> target; lift uses -1 (unchanged)
    phases: Optional[Tuple[str, ...]]
    options: Dict[str, Any] = field(default_factory=dict)


class DryRunEngine:
    """
    Touches no machine. Records each call and logs what a real engine would
    be asked to do, phase by phase and group by group.
    """

    def __init__(self) -> None:
        self.calls: List[EngineCall] = []

    def converge(
        self,
        node_map: Mapping[ResolvedNodeSpec, int],
        phases: Optional[Sequence[str]] = None,
        **options: Any,
    ) -> EngineCall:
        call = EngineCall(
            op="converge",
            counts={spec.tag: n for spec, n in node_map.items()},
            phases=tuple(phases) if phases is not None else None,
            options=dict(options),
        )
        self.calls.append(call)
        for spec, n in node_map.items():
            log.info("[dry-run] converge %s -> %d instance(s), ports=%s", spec.tag, n, list(spec.ports))
        self._log_phases(node_map, call.phases)
        return call

    def lift(
        self,
        node_set: Sequence[ResolvedNodeSpec],
        phases: Sequence[str],
        **options: Any,
    ) -> EngineCall:
        call = EngineCall(
            op="lift",
            counts={spec.tag: -1 for spec in node_set},
            phases=tuple(phases),
            options=dict(options),
        )
        self.calls.append(call)
        self._log_phases(node_set, call.phases)
        return call

    def _log_phases(self, specs, phases: Optional[Tuple[str, ...]]) -> None:
        if phases is None:
            log.info("[dry-run] no phase filter")
            return
        for name in phases:
            for spec in specs:
                phase = spec.phases.get(name)
                if phase is None:
                    continue
                steps = [s.describe() if hasattr(s, "describe") else repr(s) for s in phase.steps]
                log.info("[dry-run] %s on %s: %s", name, spec.tag, "; ".join(steps))


def load_engine(ref: str) -> ConvergenceEngine:
    """
    Import an engine from "package.module:attr". Classes are instantiated with
    no arguments; anything else is used as-is.
    """
    module_name, sep, attr = ref.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Engine reference must look like 'package.module:attr', got {ref!r}")
    target = getattr(importlib.import_module(module_name), attr)
    return target() if isinstance(target, type) else target
