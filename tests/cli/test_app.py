import json
import textwrap
from pathlib import Path

from typer.testing import CliRunner

from fleetwright.cli.app import app

runner = CliRunner()

CLUSTER_YAML = textwrap.dedent("""
    ip_mode: private
    base_machine_spec: {os_family: ubuntu}
    node_groups:
      master: {roles: [coordinator, jobcontrol]}
      slaves: {roles: [slavenode], count: 4}
""")


def _write(tmp_path: Path, text: str = CLUSTER_YAML) -> Path:
    f = tmp_path / "demo.yaml"
    f.write_text(text)
    return f


def test_plan_json(tmp_path, monkeypatch):
    monkeypatch.delenv("FLEETWRIGHT_SECRETS_FILE", raising=False)
    result = runner.invoke(app, ["plan", str(_write(tmp_path)), "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["action"] == "bring-up"
    assert data["node_groups"]["slaves"]["count"] == 4
    assert data["node_groups"]["master"]["ports"] == [22, 80, 8020, 8021, 50030, 50070]
    assert "publish-key" in data["node_groups"]["master"]["phases"]


def test_plan_tear_down_text(tmp_path, monkeypatch):
    monkeypatch.delenv("FLEETWRIGHT_SECRETS_FILE", raising=False)
    result = runner.invoke(app, ["plan", str(_write(tmp_path)), "--action", "tear-down"])
    assert result.exit_code == 0, result.output
    assert "action: tear-down" in result.output
    assert "slaves: count=0" in result.output


def test_boot_dry_run_writes_event_log(tmp_path, monkeypatch):
    monkeypatch.delenv("FLEETWRIGHT_SECRETS_FILE", raising=False)
    logs = tmp_path / "logs"
    result = runner.invoke(app, ["boot", str(_write(tmp_path)), "--log-dir", str(logs), "--events"])
    assert result.exit_code == 0, result.output
    assert "OrchestrationSucceeded" in result.output
    jsonl = list(logs.glob("*.jsonl"))
    assert len(jsonl) == 1
    types = [json.loads(l)["type"] for l in jsonl[0].read_text().splitlines()]
    assert types == ["PlanComputed", "OrchestrationStarted", "OrchestrationSucceeded"]


def test_lift_requires_phase(tmp_path, monkeypatch):
    monkeypatch.delenv("FLEETWRIGHT_SECRETS_FILE", raising=False)
    cfg = str(_write(tmp_path))
    result = runner.invoke(app, ["lift", cfg, "--log-dir", str(tmp_path / "logs")])
    assert result.exit_code != 0
    result = runner.invoke(
        app, ["lift", cfg, "-p", "reconfigure", "-p", "bootstrap", "--log-dir", str(tmp_path / "logs")]
    )
    assert result.exit_code == 0, result.output


def test_invalid_cluster_exits_2(tmp_path, monkeypatch):
    monkeypatch.delenv("FLEETWRIGHT_SECRETS_FILE", raising=False)
    cfg = _write(tmp_path, textwrap.dedent("""
        node_groups:
          a: {roles: [coordinator, jobcontrol]}
          b: {roles: [coordinator]}
    """))
    result = runner.invoke(app, ["kill", str(cfg), "--log-dir", str(tmp_path / "logs")])
    assert result.exit_code == 2
    assert "Invalid cluster" in result.output


def test_bad_ip_mode_exits_2(tmp_path, monkeypatch):
    monkeypatch.delenv("FLEETWRIGHT_SECRETS_FILE", raising=False)
    cfg = _write(tmp_path, CLUSTER_YAML.replace("ip_mode: private", "ip_mode: privat"))
    result = runner.invoke(app, ["plan", str(cfg)])
    assert result.exit_code == 2
    assert "Invalid cluster" in result.output


def test_null_group_ports_exit_2(tmp_path, monkeypatch):
    monkeypatch.delenv("FLEETWRIGHT_SECRETS_FILE", raising=False)
    cfg = _write(tmp_path, textwrap.dedent("""
        node_groups:
          master: {roles: [coordinator, jobcontrol]}
          slaves:
            roles: [slavenode]
            count: 2
            spec: {inbound_ports: null}
    """))
    result = runner.invoke(app, ["plan", str(cfg)])
    assert result.exit_code == 2
    assert "Invalid cluster" in result.output


def test_malformed_yaml_exits_2(tmp_path, monkeypatch):
    monkeypatch.delenv("FLEETWRIGHT_SECRETS_FILE", raising=False)
    cfg = _write(tmp_path, "node_groups: {master: [coordinator\n")
    result = runner.invoke(app, ["plan", str(cfg)])
    assert result.exit_code == 2
    assert "Invalid cluster" in result.output
