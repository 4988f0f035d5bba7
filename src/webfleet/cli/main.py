"""CLI entrypoint for webfleet."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

import click
import questionary
from rich.table import Table

from webfleet import engine
from webfleet.bootstrap.script import render_bootstrap_template, substitute_secret_arn
from webfleet.cli.errors import handle_errors
from webfleet.cli.ui import console, report_step, style_status
from webfleet.config.models import WebfleetConfig
from webfleet.config.settings import RuntimeSettings, get_settings
from webfleet.config.store import ConfigError, load_config, save_config
from webfleet.topology.render import write_configuration
from webfleet.topology.stack import LB_DNS_OUTPUT, build_topology
from webfleet.verify import (
    audit_firewall_chain,
    audit_secret,
    check_deployment,
    create_session,
    find_load_balancer_dns,
    get_identity,
    probe_endpoint,
    resource_targets,
    wait_for_healthy,
)

logger = logging.getLogger(__name__)


@dataclass
class CliContext:
    """State shared by every command."""

    settings: RuntimeSettings
    config_path: Path

    def load(self) -> WebfleetConfig:
        return load_config(self.config_path)

    def render(self, config: WebfleetConfig, directory: Path | None = None) -> Path:
        """Render the engine configuration and return the directory it lives in."""
        target = directory or self.settings.work_dir
        topology = build_topology(config)
        for path in write_configuration(topology.graph, config, target):
            report_step(f"Rendered {path}")
        return target


pass_cli_context = click.make_pass_decorator(CliContext)


@click.group()
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Fleet configuration JSON file.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, config_file: Path | None, verbose: bool) -> None:
    """Declare, render and verify a load-balanced container fleet.

    Args:
        ctx: Click context for the command invocation.
        config_file: Optional configuration file override.
        verbose: Whether to log at debug level.
    """
    settings = get_settings()
    level = logging.DEBUG if verbose else settings.log_level.upper()
    logging.basicConfig(level=level)
    ctx.obj = CliContext(settings=settings, config_path=config_file or settings.config_path)
    logger.debug(f"Using configuration {ctx.obj.config_path}")


@cli.group("config")
def config_group() -> None:
    """Manage the fleet configuration file."""


@config_group.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing configuration file.")
@pass_cli_context
@handle_errors
def config_init(state: CliContext, force: bool) -> None:
    """Write the default configuration file."""
    if state.config_path.exists() and not force:
        raise ConfigError(f"{state.config_path} already exists. Use --force to overwrite it.")
    path = save_config(WebfleetConfig(), state.config_path)
    console.print(f"[green]Saved configuration to {path}[/green]")


@config_group.command("show")
@pass_cli_context
@handle_errors
def config_show(state: CliContext) -> None:
    """Print the effective configuration."""
    config = state.load()
    console.print_json(json.dumps(config.model_dump(mode="json")))


@cli.command()
@click.option(
    "--out",
    "out_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory to write the engine configuration into.",
)
@pass_cli_context
@handle_errors
def render(state: CliContext, out_dir: Path | None) -> None:
    """Render the engine configuration and bootstrap template."""
    directory = state.render(state.load(), out_dir)
    console.print(f"[green]Engine configuration ready in {directory}[/green]")


@cli.command()
@click.option("--secret-arn", required=True, help="Secret ARN to substitute into the script.")
@pass_cli_context
@handle_errors
def bootstrap(state: CliContext, secret_arn: str) -> None:
    """Print the bootstrap script an instance would run."""
    config = state.load()
    template = render_bootstrap_template(config.app, config.bootstrap.region)
    click.echo(substitute_secret_arn(template, secret_arn), nl=False)


@cli.command()
@pass_cli_context
@handle_errors
def graph(state: CliContext) -> None:
    """Show the order the engine must respect when applying."""
    topology = build_topology(state.load())

    table = Table(title="Apply order", show_header=True, header_style="bold cyan")
    table.add_column("Layer", style="white", no_wrap=True)
    table.add_column("Declarations", style="bright_white")
    for index, layer in enumerate(topology.graph.apply_order()):
        table.add_row(str(index), "\n".join(layer))
    console.print(table)

    for dependent, dependency in topology.graph.explicit_edges():
        console.print(f"[bold]explicit:[/bold] {dependent} after {dependency}")


@cli.command()
@click.option("--check", is_flag=True, help="Exit with code 2 when changes are pending.")
@pass_cli_context
@click.pass_context
@handle_errors
def plan(ctx: click.Context, state: CliContext, check: bool) -> None:
    """Show what applying the current configuration would change."""
    directory = state.render(state.load())
    binary = state.settings.terraform_bin
    engine.init(directory, report_step, binary)
    if engine.plan_has_changes(directory, report_step, binary):
        console.print("[yellow]Changes pending.[/yellow]")
        if check:
            ctx.exit(engine.terraform.PLAN_CHANGES_PRESENT)
        return
    console.print("[green]No changes. Live resources match the declaration.[/green]")


@cli.command()
@click.option("--yes", is_flag=True, help="Apply without an interactive approval.")
@pass_cli_context
@handle_errors
def apply(state: CliContext, yes: bool) -> None:
    """Render and apply the topology."""
    directory = state.render(state.load())
    binary = state.settings.terraform_bin
    engine.init(directory, report_step, binary)
    engine.apply(directory, report_step, binary, auto_approve=yes)
    outputs = engine.read_outputs(directory, report_step, binary)
    dns_name = outputs.get(LB_DNS_OUTPUT)
    if dns_name:
        console.print(f"[green]Load balancer: http://{dns_name}[/green]")


@cli.command()
@click.option("--yes", is_flag=True, help="Destroy without confirmation.")
@pass_cli_context
@handle_errors
def destroy(state: CliContext, yes: bool) -> None:
    """Tear down every resource in the topology."""
    config = state.load()
    if not yes:
        confirmed = questionary.confirm(
            f"Destroy every resource for {config.project_name}?",
            default=False,
        ).ask()
        if not confirmed:
            console.print("Destroy cancelled.")
            return

    directory = state.render(config)
    binary = state.settings.terraform_bin
    engine.init(directory, report_step, binary)
    engine.destroy(directory, report_step, binary, auto_approve=True)
    console.print("[green]Resources destroyed.[/green]")


@cli.command()
@pass_cli_context
@handle_errors
def outputs(state: CliContext) -> None:
    """Print values exposed by the last apply."""
    values = engine.read_outputs(state.settings.work_dir, report_step, state.settings.terraform_bin)
    if not values:
        console.print("[dim]No outputs recorded yet.[/dim]")
        return
    for name, value in values.items():
        console.print(f"{name} = {value}")


@cli.command()
@pass_cli_context
@handle_errors
def status(state: CliContext) -> None:
    """Check which fleet resources exist in AWS."""
    config = state.load()
    session = create_session(config.aws)
    identity = get_identity(session)
    report_step(f"Using AWS account {identity['Account']} ({identity['Arn']})")

    results = check_deployment(session, config)
    targets = resource_targets(config)
    table = Table(title="Fleet resources", show_header=True, header_style="bold cyan")
    table.add_column("Resource", style="white", no_wrap=True)
    table.add_column("Name/ID", style="bright_white")
    table.add_column("Status", style="white", no_wrap=True)
    for name, value in results.items():
        table.add_row(name, targets.get(name, "-"), style_status(value))
    console.print(table)


@cli.command()
@pass_cli_context
@click.pass_context
@handle_errors
def audit(ctx: click.Context, state: CliContext) -> None:
    """Audit the live firewall chain and the stored credentials."""
    config = state.load()
    session = create_session(config.aws)

    report_step("Auditing firewall chain")
    problems = audit_firewall_chain(session, config)
    report_step("Auditing database secret")
    problems.extend(audit_secret(session, config))

    if problems:
        for problem in problems:
            console.print(f"[red]✗ {problem}[/red]")
        ctx.exit(1)
    console.print("[green]Firewall chain and secret record are sound.[/green]")


@cli.command()
@click.option("--timeout", default=300, show_default=True, help="Seconds to wait.")
@click.option("--interval", default=15, show_default=True, help="Seconds between polls.")
@pass_cli_context
@click.pass_context
@handle_errors
def wait(ctx: click.Context, state: CliContext, timeout: int, interval: int) -> None:
    """Wait for healthy targets, then probe the health path through the load balancer."""
    config = state.load()
    session = create_session(config.aws)

    healthy, message = wait_for_healthy(
        session,
        config,
        report_step,
        timeout_seconds=timeout,
        poll_interval_seconds=interval,
    )
    if not healthy:
        console.print(f"[red]{message}[/red]")
        ctx.exit(1)
    report_step(message)

    dns_name = find_load_balancer_dns(session, config)
    status_code = probe_endpoint(dns_name, config.health_check.path)
    if not config.health_check.accepts(status_code):
        console.print(
            f"[red]GET {config.health_check.path} returned {status_code}, "
            f"expected {config.health_check.matcher}[/red]"
        )
        ctx.exit(1)
    url = f"http://{dns_name}{config.health_check.path}"
    console.print(f"[green]{url} returned {status_code}[/green]")


def main() -> None:
    """Run the CLI."""
    cli()
