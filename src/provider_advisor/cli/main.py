"""Main CLI entry point."""

import json
import sys
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from provider_advisor import __version__
from provider_advisor.agentic.tasks import CANONICAL_TASKS
from provider_advisor.config.models import AdvisorConfig
from provider_advisor.config.parser import ConfigValidationError, load_config
from provider_advisor.inventory.collector import collect_from_state, resolve_execution_dir
from provider_advisor.orchestrator.cycle import run_advisory_cycle
from provider_advisor.report.emitter import DiagnosticPayload
from provider_advisor.utils.errors import AdvisorError, ConfigurationError, ExecutionDirError
from provider_advisor.utils.logging import get_logger, setup_logging

console = Console()
logger = get_logger(__name__)

LLM_PROVIDERS = ['openai', 'anthropic', 'bedrock', 'local']


@click.group()
@click.version_option(__version__, prog_name='advisor')
@click.option('--log-level', default='info', type=click.Choice(['debug', 'info', 'warning', 'error']))
@click.option('--log-dir', default='.advisor/logs', help='Directory for JSON log files ("" to disable)')
def cli(log_level, log_dir):
    """Advisory best-practice checks for provider configurations."""
    # Setup logging
    setup_logging(log_level, log_dir or None)


def load_settings(
    config_path: str,
    execution_dir: Optional[str] = None,
    concurrent: Optional[bool] = None,
    render_html: Optional[bool] = None,
    llm_provider: Optional[str] = None,
    llm_model: Optional[str] = None
) -> AdvisorConfig:
    """Load configuration and apply command-line overrides, exiting on error."""
    try:
        settings = load_config(
            config_path,
            execution_dir=execution_dir,
            concurrent=concurrent,
            render_html=render_html,
        )
        agent_updates = {
            key: value
            for key, value in (('provider', llm_provider), ('model', llm_model))
            if value is not None
        }
        if agent_updates:
            settings = settings.model_copy(update={'agent': settings.agent.model_copy(update=agent_updates)})
        return settings
    except ConfigValidationError as e:
        console.print("[red]Configuration validation failed:[/red]\n")
        console.print(str(e))
        sys.exit(1)


@cli.command()
@click.option('--config', 'config_path', default='advisor.yaml', help='Path to configuration file')
@click.option('--execution-dir', help='Directory holding the state snapshot and configuration files')
@click.option('--sequential/--concurrent', default=None, help='Run advisory tasks one at a time or all at once')
@click.option('--render/--no-render', default=None, help='Render the report as an HTML document')
@click.option('--llm-provider', type=click.Choice(LLM_PROVIDERS), help='LLM provider')
@click.option('--llm-model', help='LLM model name')
def run(config_path, execution_dir, sequential, render, llm_provider, llm_model):
    """Run one advisory cycle and print the suggestions."""
    settings = load_settings(
        config_path,
        execution_dir=execution_dir,
        concurrent=None if sequential is None else not sequential,
        render_html=render,
        llm_provider=llm_provider,
        llm_model=llm_model,
    )

    try:
        with console.status("[cyan]Running advisory tasks..."):
            payload = run_advisory_cycle(settings)
    except (ExecutionDirError, ConfigurationError) as e:
        console.print(f"[red]Error:[/red] {e.to_user_message()}")
        sys.exit(1)

    print_payload(payload)


def print_payload(payload: DiagnosticPayload) -> None:
    """Print a diagnostic payload."""
    title = f"[yellow]{payload.severity.value.upper()}[/yellow]: {payload.summary}"
    console.print(Panel(payload.detail or "[dim]No suggestions[/dim]", title=title, border_style="yellow"))

    if payload.failed_tasks:
        console.print(
            f"\n[yellow]Warning:[/yellow] {len(payload.failed_tasks)} task(s) produced no output: "
            f"{', '.join(payload.failed_tasks)}"
        )
        console.print("[dim]See the advisor log for details.[/dim]")


@cli.command()
@click.option('--config', 'config_path', default='advisor.yaml', help='Path to configuration file')
@click.option('--execution-dir', help='Directory holding the state snapshot')
@click.option('--format', 'output_format', default='table', type=click.Choice(['table', 'json']))
def inventory(config_path, execution_dir, output_format):
    """Show resources declared in the state snapshot."""
    settings = load_settings(config_path, execution_dir=execution_dir)

    try:
        directory = resolve_execution_dir(settings.execution_dir)
    except AdvisorError as e:
        console.print(f"[red]Error:[/red] {e.to_user_message()}")
        sys.exit(1)

    resources = collect_from_state(directory / settings.state_file)

    if output_format == 'json':
        click.echo(json.dumps([r.to_prompt_dict() for r in resources], indent=2))
        return

    if not resources:
        console.print(f"[yellow]No resources declared in {directory / settings.state_file}[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Type", style="magenta")
    table.add_column("ID", style="cyan")
    for resource in resources:
        table.add_row(resource.type, resource.id)

    console.print(table)
    console.print(f"\n[dim]{len(resources)} declared resource(s)[/dim]")


@cli.command()
def tasks():
    """List the available advisory tasks."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Task", style="cyan")
    table.add_column("Remote listing", style="magenta")
    table.add_column("Description", style="white")

    for task in CANONICAL_TASKS:
        table.add_row(task.name, "yes" if task.tool_augmented else "no", task.description)

    console.print(table)


if __name__ == '__main__':
    cli()
