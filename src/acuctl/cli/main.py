#!/usr/bin/env python3
# SPDX-FileCopyrightText: Copyright (c) 2025 The acuctl Authors. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Command line interface for acuctl.

Usage:
    acuctl add-project --name app --script dist/bundle.js --duration 5min
    acuctl dry-run app                 # Show the registration without submitting
    acuctl deploy app                  # Upload, submit and follow the job
    acuctl deployments app             # List stored deployment records
"""

import argparse
import json
import logging
import sys
import threading
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.syntax import Syntax
from rich.table import Table

from acuctl.core.config import (
    ACURAST_CONFIG_PATH,
    get_acuctl_setting,
    load_chain_client,
    load_environment,
    load_project,
    save_project,
)
from acuctl.core.convert import convert_config_to_job
from acuctl.core.deployments import ACURAST_BASE_PATH, DeploymentStore
from acuctl.core.lifecycle import DeploymentController, LifecycleEvent
from acuctl.core.schema import IntervalExecution, OneTimeExecution, ProjectConfig
from acuctl.core.upload import IpfsUploader
from acuctl.core.utils import parse_duration
from acuctl.errors import ConfigError
from acuctl.logging_utils import WARN, format_status, setup_logging

console = Console()


def get_store() -> DeploymentStore:
    return DeploymentStore(get_acuctl_setting("deploy_dir", ACURAST_BASE_PATH))


def print_event(event: LifecycleEvent) -> None:
    console.print(format_status(event.status, event.describe(), markup=True))


def print_registration(project: ProjectConfig) -> None:
    registration = convert_config_to_job(project)
    content = json.dumps(registration.to_dict(), indent=2)
    console.print(
        Panel(
            "[bold]🔍 DRY-RUN[/] [dim](nothing uploaded or submitted)[/]",
            title=project.project_name,
            border_style="yellow",
        )
    )
    console.print(Panel(Syntax(content, "json", theme="monokai"), title="Job Registration", border_style="cyan"))


def deploy(project: ProjectConfig, yes: bool = False) -> None:
    """Deploy a project and follow it until finalized or interrupted."""
    console.print(f"[bold cyan]🚀 Deploying:[/] {project.project_name} [dim]({project.network})[/]")
    if not yes and not Confirm.ask("Submit this deployment?", default=True, console=console):
        console.print("[dim]Aborted.[/]")
        return

    chain = load_chain_client(rpc_url=get_acuctl_setting("rpc_url"))
    uploader = IpfsUploader.from_env(get_acuctl_setting("ipfs_url"))
    controller = DeploymentController(chain, uploader=uploader, store=get_store())

    cancel = threading.Event()
    events = controller.deploy(project, cancel=cancel)
    try:
        for event in events:
            print_event(event)
    except KeyboardInterrupt:
        cancel.set()
        console.print(f"\n[yellow]{WARN} Stopped following the deployment; the job keeps running on-chain.[/]")
    finally:
        events.close()


def list_deployments(project_name: str | None = None) -> None:
    records = get_store().list_records(project_name)
    if not records:
        console.print("[dim]No deployments found.[/]")
        return

    table = Table(title="Deployments")
    table.add_column("Project", style="green")
    table.add_column("Deployed At")
    table.add_column("Job", style="cyan")
    table.add_column("Status", style="yellow")
    table.add_column("Script", style="dim")
    table.add_column("File", style="dim")

    for path, deployment in records:
        job = str(deployment.deployment_id[1]) if deployment.deployment_id else "-"
        table.add_row(
            deployment.config.project_name,
            deployment.deployed_at,
            job,
            deployment.status,
            deployment.registration.script,
            path.name,
        )
    console.print(table)


def build_project(args: argparse.Namespace) -> ProjectConfig:
    """Build a ProjectConfig from a JSON file or from command line flags."""
    if args.file:
        with open(args.file) as f:
            return ProjectConfig.Schema().load(json.load(f))

    if not args.name or not args.script:
        raise ConfigError("--name and --script are required without -f")

    if args.duration:
        duration = parse_duration(args.duration)
        if not duration:
            raise ConfigError(f"Invalid duration: {args.duration}")
        execution = OneTimeExecution(max_execution_time_in_ms=duration)
    elif args.interval and args.executions:
        interval = parse_duration(args.interval)
        if not interval:
            raise ConfigError(f"Invalid interval: {args.interval}")
        execution = IntervalExecution(interval_in_ms=interval, number_of_executions=args.executions)
    else:
        raise ConfigError("Pass --duration, or --interval together with --executions")

    return ProjectConfig(
        project_name=args.name,
        file_url=args.script,
        execution=execution,
        network=get_acuctl_setting("default_network", "canary"),
        number_of_replicas=args.replicas,
        max_cost_per_execution=args.max_cost,
    )


def main(argv: list[str] | None = None) -> None:
    setup_logging(logging.WARNING)
    load_environment()

    parser = argparse.ArgumentParser(
        description="acuctl - deploy scripts to the Acurast network",
        epilog="""Examples:
  acuctl add-project --name app --script dist/bundle.js --duration 5min
  acuctl add-project --name app --script dist/bundle.js --interval 1h --executions 24
  acuctl dry-run app
  acuctl deploy app -y
  acuctl deployments
""",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", type=Path, default=ACURAST_CONFIG_PATH, help="Path to acurast.json")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    deploy_parser = subparsers.add_parser("deploy", help="Upload, submit and follow a deployment")
    deploy_parser.add_argument("project", nargs="?", help="Project name from acurast.json")
    deploy_parser.add_argument("-y", "--yes", action="store_true", help="Skip confirmation prompts")

    dry_run_parser = subparsers.add_parser("dry-run", help="Show the job registration without submitting")
    dry_run_parser.add_argument("project", nargs="?", help="Project name from acurast.json")

    deployments_parser = subparsers.add_parser("deployments", help="List stored deployment records")
    deployments_parser.add_argument("project", nargs="?", help="Only show this project")

    add_parser = subparsers.add_parser("add-project", help="Add a project to acurast.json")
    add_parser.add_argument("-f", "--file", type=Path, help="Project config JSON file")
    add_parser.add_argument("--name", help="Project name")
    add_parser.add_argument("--script", help="Bundled script to run")
    add_parser.add_argument("--duration", help="One-time run, max duration (eg. 1s, 5min or 2h)")
    add_parser.add_argument("--interval", help="Interval between runs (eg. 1s, 5min or 2h)")
    add_parser.add_argument("--executions", type=int, help="Number of interval runs")
    add_parser.add_argument("--replicas", type=int, help="Number of processors per execution")
    add_parser.add_argument("--max-cost", type=int, help="Max cost per execution (smallest unit)")
    add_parser.add_argument("--overwrite", action="store_true", help="Replace an existing project")

    args = parser.parse_args(argv)
    if args.verbose:
        setup_logging(logging.DEBUG)

    try:
        if args.command == "deploy":
            deploy(load_project(args.project, args.config), yes=args.yes)
        elif args.command == "dry-run":
            print_registration(load_project(args.project, args.config))
        elif args.command == "deployments":
            list_deployments(args.project)
        elif args.command == "add-project":
            project = build_project(args)
            save_project(project, args.config, overwrite=args.overwrite)
            console.print(f"[bold green]✅ Saved {project.project_name} to {args.config}[/]")
            console.print("[dim]You can deploy it using 'acuctl deploy'[/]")
    except Exception as e:
        console.print(f"[bold red]Error:[/] {e}")
        logging.debug("Full traceback:", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
