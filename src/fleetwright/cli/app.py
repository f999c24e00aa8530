# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/fleetwright/cli/app.py
from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer
import yaml
from pydantic import ValidationError

from fleetwright.config.loader import load_cluster
from fleetwright.config.models import ClusterSpec
from fleetwright.deploy.driver import ClusterDriver
from fleetwright.deploy.planner import Action, diff
from fleetwright.engine.dry_run import DryRunEngine, load_engine
from fleetwright.errors import TopologyError
from fleetwright.logging.log import init_logging
from fleetwright.observers.console import ConsoleObserver
from fleetwright.observers.jsonfile import JsonFileObserver
from fleetwright.observers.logger import LoggerObserver


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="fleetwright: resolve and drive role-based cluster topologies")

ConfigArg = typer.Argument(..., exists=True, dir_okay=False, help="Cluster YAML file")
EngineOpt = typer.Option(
    None, "--engine", help="Execution engine as 'package.module:attr' (default: dry run)"
)
DebugOpt = typer.Option(False, "--debug", help="Verbose console logging")
LogDirOpt = typer.Option(None, "--log-dir", help="Where run logs are written")
EventsOpt = typer.Option(False, "--events", help="Echo lifecycle events to the console")


def _load(config: Path) -> ClusterSpec:
    try:
        return load_cluster(config)
    except (TopologyError, ValidationError, yaml.YAMLError) as e:
        typer.secho(f"Invalid cluster: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)


def _driver(config: Path, engine: Optional[str], debug: bool, log_dir: Optional[Path], events: bool) -> ClusterDriver:
    logger, run_id, log_path = init_logging(base_dir=log_dir, verbose=debug)
    observers = [
        LoggerObserver(logger),
        JsonFileObserver(log_path.with_suffix(".jsonl")),
    ]
    if events:
        observers.append(ConsoleObserver())
    return ClusterDriver(
        load_engine(engine) if engine else DryRunEngine(),
        observers=observers,
        cluster_name=config.stem,
        run_id=run_id,
    )


def _orchestrate(fn, *args) -> None:
    try:
        fn(*args)
    except TopologyError as e:
        typer.secho(f"Invalid cluster: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------

@app.command()
def plan(
    config: Path = ConfigArg,
    action: Action = typer.Option(Action.BRING_UP, "--action", help="bring-up or tear-down"),
    as_json: bool = typer.Option(False, "--json", help="Machine readable output"),
):
    """
    Show the topology diff without touching any machine.
    """
    cluster = _load(config)
    try:
        node_map = diff(cluster, action)
    except TopologyError as e:
        typer.secho(f"Invalid cluster: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)

    if as_json:
        out = {
            spec.tag: {
                "count": count,
                "roles": list(spec.roles),
                "ports": list(spec.ports),
                "phases": list(spec.phase_names()),
            }
            for spec, count in node_map.items()
        }
        typer.echo(json.dumps({"action": node_map.action.value, "node_groups": out}, indent=2))
        return

    typer.echo(f"action: {node_map.action.value}")
    for spec, count in node_map.items():
        typer.echo(f"{spec.tag}: count={count}")
        typer.echo(f"  roles:  {', '.join(spec.roles)}")
        typer.echo(f"  ports:  {', '.join(str(p) for p in spec.ports)}")
        typer.echo(f"  phases: {', '.join(spec.phase_names())}")


@app.command()
def boot(
    config: Path = ConfigArg,
    engine: Optional[str] = EngineOpt,
    debug: bool = DebugOpt,
    log_dir: Optional[Path] = LogDirOpt,
    events: bool = EventsOpt,
):
    """Bring every node-group to its declared count and configure it."""
    cluster = _load(config)
    _orchestrate(_driver(config, engine, debug, log_dir, events).boot, cluster)


@app.command()
def kill(
    config: Path = ConfigArg,
    engine: Optional[str] = EngineOpt,
    debug: bool = DebugOpt,
    log_dir: Optional[Path] = LogDirOpt,
    events: bool = EventsOpt,
):
    """Converge every node-group to zero instances."""
    cluster = _load(config)
    _orchestrate(_driver(config, engine, debug, log_dir, events).kill, cluster)


@app.command()
def start(
    config: Path = ConfigArg,
    engine: Optional[str] = EngineOpt,
    debug: bool = DebugOpt,
    log_dir: Optional[Path] = LogDirOpt,
    events: bool = EventsOpt,
):
    """Start role services, masters first."""
    cluster = _load(config)
    _orchestrate(_driver(config, engine, debug, log_dir, events).start, cluster)


@app.command()
def lift(
    config: Path = ConfigArg,
    phase: List[str] = typer.Option(..., "--phase", "-p", help="Phase to run; repeat, order is kept"),
    engine: Optional[str] = EngineOpt,
    debug: bool = DebugOpt,
    log_dir: Optional[Path] = LogDirOpt,
    events: bool = EventsOpt,
):
    """Run the given phases, in order, on every existing node-group."""
    cluster = _load(config)
    _orchestrate(_driver(config, engine, debug, log_dir, events).lift, cluster, phase)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
