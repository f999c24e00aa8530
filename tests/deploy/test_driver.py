from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import pytest

from fleetwright.config.builders import make_cluster, make_node_group, slave_node
from fleetwright.config.models import ClusterSpec, NodeGroup
from fleetwright.deploy.driver import (
    BOOT_PHASES,
    START_PHASES,
    ClusterDriver,
    boot_cluster,
    kill_cluster,
    lift_cluster,
    start_cluster,
)
from fleetwright.errors import InvalidTopology, MissingRole
from fleetwright.observers.events import (
    OrchestrationFailed,
    OrchestrationStarted,
    OrchestrationSucceeded,
    PlanComputed,
)

# --------- Test doubles ----------

@dataclass
class Call:
    op: str
    counts: Dict[str, Optional[int]]
    phases: Optional[Tuple[str, ...]]
    options: Dict[str, Any]


class FakeEngine:
    """Records what it was asked to do; can be told to blow up."""
    def __init__(self, fail: Optional[Exception] = None):
        self.calls: List[Call] = []
        self.fail = fail
        self.node_maps = []

    def converge(self, node_map, phases=None, **options):
        self.node_maps.append(node_map)
        self.calls.append(Call("converge", node_map.counts(), phases, options))
        if self.fail:
            raise self.fail
        return "converged"

    def lift(self, node_set, phases, **options):
        self.calls.append(Call("lift", {s.tag: None for s in node_set}, phases, options))
        if self.fail:
            raise self.fail
        return "lifted"


class Capture:
    def __init__(self): self.events = []
    def notify(self, ev): self.events.append(ev)


def _cluster(slaves=5):
    return make_cluster(
        "private",
        {
            "master": make_node_group(["coordinator", "jobcontrol"]),
            "slaves": slave_node(slaves),
        },
    )


# --------- Tests ----------

def test_boot_converges_declared_counts_with_fixed_phases():
    engine = FakeEngine()
    assert ClusterDriver(engine).boot(_cluster()) == "converged"
    assert len(engine.calls) == 1
    call = engine.calls[0]
    assert call.op == "converge"
    assert call.counts == {"master": 1, "slaves": 5}
    assert call.phases == ("configure", "publish-key", "authorize-coordinator")
    assert call.phases == BOOT_PHASES


@pytest.mark.parametrize(
    "groups",
    [
        {"all": NodeGroup(roles=["coordinator", "jobcontrol", "slavenode"], count=1)},
        {
            "nn": NodeGroup(roles=["coordinator"], count=1),
            "jt": NodeGroup(roles=["jobcontrol", "secondary"], count=0),
            "w": NodeGroup(roles=["worker"], count=9),
        },
    ],
)
def test_boot_phases_do_not_depend_on_roles(groups):
    engine = FakeEngine()
    ClusterDriver(engine).boot(make_cluster("private", groups))
    assert engine.calls[0].phases == BOOT_PHASES


def test_kill_zeroes_every_count_and_has_no_phase_filter():
    engine = FakeEngine()
    ClusterDriver(engine).kill(_cluster(12))
    call = engine.calls[0]
    assert call.counts == {"master": 0, "slaves": 0}
    assert call.phases is None
    assert set(engine.node_maps[0].values()) == {0}


def test_lift_runs_phases_in_given_order_on_every_group():
    engine = FakeEngine()
    result = ClusterDriver(engine).lift(_cluster(), ["reconfigure", "bootstrap"])
    assert result == "lifted"
    call = engine.calls[0]
    assert call.op == "lift"
    assert list(call.counts) == ["master", "slaves"]
    assert call.phases == ("reconfigure", "bootstrap")


def test_lift_includes_groups_scaled_to_zero():
    cluster = make_cluster(
        "private",
        {"master": make_node_group(["coordinator", "jobcontrol"]), "slaves": slave_node(0)},
    )
    engine = FakeEngine()
    ClusterDriver(engine).lift(cluster, ["reconfigure"])
    assert list(engine.calls[0].counts) == ["master", "slaves"]


def test_start_lifts_start_phases_masters_first():
    engine = FakeEngine()
    ClusterDriver(engine).start(_cluster())
    call = engine.calls[0]
    assert call.op == "lift"
    assert call.phases == (
        "start-coordinator-role",
        "start-storage-role",
        "start-jobcontrol-role",
        "start-worker-role",
    )
    assert call.phases == START_PHASES


def test_options_pass_through_untouched():
    engine = FakeEngine()
    driver = ClusterDriver(engine)
    driver.boot(_cluster(), max_parallel=4, dry_run=True)
    driver.start(_cluster(), dry_run=True)
    assert engine.calls[0].options == {"max_parallel": 4, "dry_run": True}
    assert engine.calls[1].options == {"dry_run": True}


def test_engine_failure_propagates_unchanged_and_emits_event():
    boom = RuntimeError("ssh timed out")
    engine = FakeEngine(fail=boom)
    cap = Capture()
    with pytest.raises(RuntimeError) as exc:
        ClusterDriver(engine, observers=[cap]).boot(_cluster())
    assert exc.value is boom
    assert len(engine.calls) == 1
    failed = next(e for e in cap.events if isinstance(e, OrchestrationFailed))
    assert failed.operation == "boot"
    assert "ssh timed out" in failed.error
    assert not any(isinstance(e, OrchestrationSucceeded) for e in cap.events)


def test_topology_error_never_reaches_engine():
    cluster = ClusterSpec(node_groups={"slaves": NodeGroup(roles=["slavenode"], count=3)})
    engine = FakeEngine()
    cap = Capture()
    with pytest.raises(MissingRole):
        ClusterDriver(engine, observers=[cap]).boot(cluster)
    assert engine.calls == []
    assert not any(isinstance(e, OrchestrationStarted) for e in cap.events)

    bad = ClusterSpec(node_groups={"master": NodeGroup(roles=["coordinator"], count=2)})
    with pytest.raises(InvalidTopology):
        ClusterDriver(engine).kill(bad)
    assert engine.calls == []


def test_events_share_one_run_context():
    cap = Capture()
    ClusterDriver(FakeEngine(), observers=[cap], cluster_name="demo", run_id="run-1").boot(_cluster())
    kinds = [e.__class__.__name__ for e in cap.events]
    assert kinds == ["PlanComputed", "OrchestrationStarted", "OrchestrationSucceeded"]
    assert {e.run_id for e in cap.events} == {"run-1"}
    assert {e.cluster for e in cap.events} == {"demo"}
    started = cap.events[1]
    assert started.operation == "boot"
    assert started.phases == list(BOOT_PHASES)
    plan = cap.events[0]
    assert isinstance(plan, PlanComputed)


def test_module_level_wrappers():
    engine = FakeEngine()
    boot_cluster(_cluster(), engine)
    kill_cluster(_cluster(), engine)
    lift_cluster(_cluster(), ["reinstall"], engine)
    start_cluster(_cluster(), engine)
    assert [c.op for c in engine.calls] == ["converge", "converge", "lift", "lift"]
    assert engine.calls[1].counts == {"master": 0, "slaves": 0}
    assert engine.calls[2].phases == ("reinstall",)


def test_start_events_describe_a_lift_not_a_tear_down():
    cap = Capture()
    ClusterDriver(FakeEngine(), observers=[cap], cluster_name="demo", run_id="run-2").start(_cluster())
    kinds = [e.__class__.__name__ for e in cap.events]
    assert kinds == ["PlanComputed", "OrchestrationStarted", "OrchestrationSucceeded"]
    plan = cap.events[0]
    assert plan.action == "lift"
    assert plan.counts == {}
    assert all(getattr(e, "action", None) != "tear-down" for e in cap.events)
    assert cap.events[1].operation == "start"
    assert cap.events[1].phases == list(START_PHASES)
