# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kuboprov/cli/app.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
import yaml

from kuboprov.config.loader import load_settings, read_swarm_key
from kuboprov.config.models import ProvisioningRequest, ProvisionSettings
from kuboprov.kubo.cli_runner import KuboCliRunner
from kuboprov.kubo.errors import KuboError
from kuboprov.logging.log import init_logging
from kuboprov.observers.jsonfile import JsonFileObserver
from kuboprov.observers.logger import LoggerObserver
from kuboprov.provision.errors import ProvisionError
from kuboprov.provision.pipeline import ProvisionReport, provision
from kuboprov.provision.platform import is_privileged
from kuboprov.provision.swarm_key import require_secret


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="IPFS Kubo private swarm provisioning")


def _load(config: Optional[Path]) -> ProvisionSettings:
    try:
        return load_settings(config)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        typer.secho(f"[config] {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


def _print_summary(report: ProvisionReport) -> None:
    typer.echo("")
    typer.secho("IPFS Setup Complete!", bold=True)
    typer.echo("Configuration Summary:")
    typer.echo("  Bootstrap nodes:")
    for peer in report.bootstrap_peers:
        typer.echo(f"    {peer}")
    typer.echo(f"  Swarm key       : {report.swarm_key_path}")
    typer.echo(f"  Binary          : {report.binary_path}")
    typer.echo("  Private network : Enabled")
    typer.echo("")
    typer.echo("To start IPFS daemon:")
    typer.echo("  ipfs daemon")
    typer.echo("To check connected peers:")
    typer.echo("  kuboprov peers")
    typer.echo("")
    typer.echo("Security Note: Swarm key loaded from IPFS_SWARM_KEY environment variable")


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------

@app.command("provision")
def provision_cmd(
    start_daemon: bool = typer.Option(
        False, "--start-daemon", help="Run `ipfs daemon` in the foreground once provisioning succeeds"
    ),
    config: Optional[Path] = typer.Option(None, "--config", help="Optional settings YAML"),
    debug: bool = typer.Option(False, "--debug"),
):
    # Checked before anything touches disk or network.
    try:
        secret = require_secret(read_swarm_key())
    except ProvisionError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    settings = _load(config)
    logger, run_id, log_path = init_logging(base_dir=settings.resolve_log_dir(), verbose=debug)

    typer.secho("IPFS Kubo Provisioning Started", bold=True)
    typer.echo(f"  Version  : {settings.version}")
    typer.echo(f"  Run ID   : {run_id}")
    typer.echo(f"  Logs     : {log_path}")
    typer.echo("")

    request = ProvisioningRequest.from_settings(
        settings,
        swarm_key=secret,
        privileged=is_privileged(),
        start_daemon=start_daemon,
    )
    observers = [
        LoggerObserver(logger),
        JsonFileObserver(log_path.with_suffix(".jsonl")),
    ]

    try:
        report = provision(request, settings, observers=observers, run_id=run_id)
    except ProvisionError as exc:
        typer.secho(f"Provisioning failed at stage '{exc.stage}': {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        logger.exception("Provisioning aborted outside any stage")
        typer.secho(f"Provisioning failed: {type(exc).__name__}: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    _print_summary(report)

    if request.start_daemon and report.binary_path is not None:
        kubo = KuboCliRunner(report.binary_path, state_dir=settings.resolve_state_dir())
        try:
            rc = kubo.daemon()
        except KuboError as exc:
            typer.secho(f"[daemon] {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1)
        except KeyboardInterrupt:
            rc = 0
        if rc != 0:
            logger.warning("ipfs daemon exited with rc=%s", rc)
            raise typer.Exit(code=1)


@app.command()
def peers(
    config: Optional[Path] = typer.Option(None, "--config", help="Optional settings YAML"),
    binary: str = typer.Option("ipfs", "--binary", help="ipfs executable to use"),
):
    """List peers the provisioned node is connected to (`ipfs swarm peers`)."""
    settings = _load(config)
    kubo = KuboCliRunner(binary, state_dir=settings.resolve_state_dir(), timeout=settings.command_timeout_seconds)
    try:
        connected = kubo.swarm_peers()
    except KuboError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    if not connected:
        typer.echo("No connected peers")
    for peer in connected:
        typer.echo(peer)


if __name__ == "__main__":
    app()
