# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
import time
from typing import Any, Callable, List, Optional, Sequence, Tuple

from ..catalog import models as c
from ..catalog.models import RoleCatalog
from ..config.models import ClusterSpec
from ..engine.interface import ConvergenceEngine
from ..spec.phases import PhaseLibrary
from .planner import Action, diff, node_set

# Observer bits
from ..observers.dispatcher import EventBus
from ..observers.events import (
    new_ctx,
    OrchestrationStarted,
    OrchestrationSucceeded,
    OrchestrationFailed,
)

log = logging.getLogger("fleetwright")

# Configuration must finish, then keys are exchanged, and only then are nodes
# told to trust connections from the job-control host.
BOOT_PHASES: Tuple[str, ...] = (c.CONFIGURE, c.PUBLISH_KEY, c.AUTHORIZE_COORDINATOR)

# Singleton services come up before anything that connects to them.
START_PHASES: Tuple[str, ...] = (
    c.START_COORDINATOR,
    c.START_STORAGE,
    c.START_JOBCONTROL,
    c.START_WORKER,
)


class ClusterDriver:
    """
    boot / kill / lift / start over one convergence engine.

    Each call takes a snapshot of the cluster, computes the complete diff and
    only then calls the engine, once. Topology errors surface before the
    engine is touched; engine errors propagate unchanged.
    """

    def __init__(
        self,
        engine: ConvergenceEngine,
        *,
        catalog: Optional[RoleCatalog] = None,
        library: Optional[PhaseLibrary] = None,
        observers: Optional[List] = None,
        cluster_name: Optional[str] = None,
        run_id: Optional[str] = None,
    ):
        self.engine = engine
        self.catalog = catalog or c.default_catalog()
        self.library = library
        self.bus = EventBus(observers or [])
        self.cluster_name = cluster_name
        self.run_id = run_id

    def _ctx(self) -> dict:
        return new_ctx(cluster=self.cluster_name, run_id=self.run_id)

    def _run(
        self,
        operation: str,
        phases: Optional[Sequence[str]],
        ctx: dict,
        call: Callable[[], Any],
    ) -> Any:
        self.bus.emit(
            OrchestrationStarted(
                operation=operation,
                phases=list(phases) if phases is not None else None,
                **ctx,
            )
        )
        t0 = time.time()
        try:
            result = call()
        except Exception as e:
            self.bus.emit(OrchestrationFailed(operation=operation, error=str(e), **ctx))
            raise
        duration_ms = int((time.time() - t0) * 1000)
        self.bus.emit(OrchestrationSucceeded(operation=operation, duration_ms=duration_ms, **ctx))
        return result

    def converge(
        self,
        cluster: ClusterSpec,
        action: Action | str,
        phases: Optional[Sequence[str]] = None,
        *,
        operation: str = "converge",
        **options: Any,
    ) -> Any:
        ctx = self._ctx()
        node_map = diff(
            cluster, action, catalog=self.catalog, library=self.library, bus=self.bus, run_ctx=ctx
        )
        phases = tuple(phases) if phases is not None else None
        log.info("%s: %s", operation, node_map.counts())
        return self._run(
            operation,
            phases,
            ctx,
            lambda: self.engine.converge(node_map, phases=phases, **options),
        )

    def boot(self, cluster: ClusterSpec, **options: Any) -> Any:
        return self.converge(cluster, Action.BRING_UP, BOOT_PHASES, operation="boot", **options)

    def kill(self, cluster: ClusterSpec, **options: Any) -> Any:
        return self.converge(cluster, Action.TEAR_DOWN, operation="kill", **options)

    def lift(
        self,
        cluster: ClusterSpec,
        phase_sequence: Sequence[str],
        *,
        operation: str = "lift",
        **options: Any,
    ) -> Any:
        ctx = self._ctx()
        members = node_set(
            cluster, catalog=self.catalog, library=self.library, bus=self.bus, run_ctx=ctx
        )
        phases = tuple(phase_sequence)
        log.info("%s: phases=%s on %s", operation, list(phases), [s.tag for s in members])
        return self._run(
            operation,
            phases,
            ctx,
            lambda: self.engine.lift(members, phases=phases, **options),
        )

    def start(self, cluster: ClusterSpec, **options: Any) -> Any:
        return self.lift(cluster, START_PHASES, operation="start", **options)


def boot_cluster(cluster: ClusterSpec, engine: ConvergenceEngine, **options: Any) -> Any:
    return ClusterDriver(engine).boot(cluster, **options)


def kill_cluster(cluster: ClusterSpec, engine: ConvergenceEngine, **options: Any) -> Any:
    return ClusterDriver(engine).kill(cluster, **options)


def lift_cluster(
    cluster: ClusterSpec,
    phase_sequence: Sequence[str],
    engine: ConvergenceEngine,
    **options: Any,
) -> Any:
    return ClusterDriver(engine).lift(cluster, phase_sequence, **options)


def start_cluster(cluster: ClusterSpec, engine: ConvergenceEngine, **options: Any) -> Any:
    return ClusterDriver(engine).start(cluster, **options)
