# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fleetwright/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import List, Dict, Any, Optional
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str           # ISO timestamp
    run_id: str       # correlates all events in a single orchestration call
    cluster: Optional[str]  # cluster label, usually the config file name

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(cluster: Optional[str] = None, run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "run_id": run_id or str(uuid.uuid4()),
        "cluster": cluster,
    }


# ---------------------------------------------------------------------
# Planner
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class PlanComputed(BaseEvent):
    action: str
    counts: Dict[str, int]

@dataclass(frozen=True)
class PlanFailed(BaseEvent):
    action: str
    error: str


# ---------------------------------------------------------------------
# Orchestration (boot / kill / lift / start)
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class OrchestrationStarted(BaseEvent):
    operation: str
    phases: Optional[List[str]] = None

@dataclass(frozen=True)
class OrchestrationSucceeded(BaseEvent):
    operation: str
    duration_ms: int

@dataclass(frozen=True)
class OrchestrationFailed(BaseEvent):
    operation: str
    error: str
