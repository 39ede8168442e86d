"""CLI commands for commitsmith."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.spinner import Spinner
from rich.table import Table

from commitsmith.config import Config, load_config
from commitsmith.errors import GenerationError
from commitsmith.git_ops import GitRepository
from commitsmith.log_config import configure_logging
from commitsmith.models import (
    Committed,
    ConfirmationRequired,
    Failed,
    Outcome,
    SamplingReply,
    Style,
    ValidationRejected,
)
from commitsmith.presets import BodyPolicy, PresetCatalog
from commitsmith.sampling import GeminiRequester, SamplingParams
from commitsmith.server import build_orchestrator, build_registry, load_validators
from commitsmith.server import main as serve_main

app = typer.Typer(
    name="commitsmith",
    help="AI-assisted Conventional Commits - generate, validate and commit",
    no_args_is_help=True,
)
console = Console()


class _NoGenerator:
    """Stands in for a generator when only validating an existing message."""

    async def request(self, system_prompt: str, user_prompt: str, params: SamplingParams) -> SamplingReply:
        raise GenerationError("No generator configured for validation-only runs")


def _print_error(message: str) -> None:
    """Print an error message and exit."""
    console.print(f"[red]✗[/red] {message}")
    raise typer.Exit(1)


def _print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def _setup() -> Config:
    configure_logging()
    config = load_config()
    configure_logging(config.log_level)
    return config


async def _run_commit(config: Config, args: dict, requester) -> Outcome:
    registry = build_registry(config)
    await load_validators(registry)
    orchestrator = build_orchestrator(config, GitRepository(Path.cwd()), registry, requester)
    return await orchestrator.propose_commit(args)


async def _run_validate(config: Config, args: dict) -> Outcome:
    registry = build_registry(config)
    await load_validators(registry)
    orchestrator = build_orchestrator(config, GitRepository(Path.cwd()), registry, _NoGenerator())
    return await orchestrator.apply_message(args)


def _report(outcome: Outcome, json_output: bool) -> None:
    """Print an outcome and exit non-zero on failures and rejections."""
    if json_output:
        print(json.dumps(outcome.to_payload(), indent=2))
        if isinstance(outcome, (Failed, ValidationRejected)):
            raise typer.Exit(1)
        return

    if isinstance(outcome, Failed):
        _print_error(outcome.error.message)
    elif isinstance(outcome, ConfirmationRequired):
        console.print(f"[yellow]Found {len(outcome.unstaged_files)} unstaged files:[/yellow]")
        for path in outcome.unstaged_files:
            console.print(f"      └─ {path}")
        console.print("[dim]Run again without --no-stage to stage them automatically.[/dim]")
    elif isinstance(outcome, ValidationRejected):
        console.print(Panel(outcome.candidate, title="Rejected message", border_style="red"))
        console.print(outcome.formatted_errors)
        raise typer.Exit(1)
    elif isinstance(outcome, Committed):
        console.print(Panel(outcome.commit_message, title="Commit message", border_style="blue"))
        for warning in outcome.validation.warnings:
            console.print(f"[yellow]⚠[/yellow] {warning.message} [dim]\\[{warning.rule}][/dim]")
        if outcome.files_staged:
            _print_success(f"Staged {outcome.files_staged} files")
        if outcome.auto_committed:
            _print_success(f"Committed ([cyan]{outcome.commit_sha}[/cyan])")
        else:
            _print_success("Message written to .git/COMMIT_EDITMSG, review and commit manually")


@app.command()
def commit(
    request: str = typer.Argument(..., help="What this commit is about, in your own words"),
    style: Optional[Style] = typer.Option(None, "--style", "-s", help="Message style preset"),
    no_commit: bool = typer.Option(False, "--no-commit", help="Only prepare the message"),
    no_stage: bool = typer.Option(False, "--no-stage", help="Do not stage unstaged files"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Override default model"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Generate a commit message from the staged diff, validate it and commit."""
    config = _setup()
    if not config.api_key:
        _print_error(
            "GOOGLE_API_KEY not set. Please set it in your environment or config file.\n"
            "  export GOOGLE_API_KEY='your-api-key'"
        )
        return

    args = {
        "request": request,
        "style": (style or config.preset).value,
        "auto_commit": not no_commit,
        "auto_stage": not no_stage,
    }
    requester = GeminiRequester(config.api_key, model or config.model)

    if json_output:
        outcome = asyncio.run(_run_commit(config, args, requester))
    else:
        with Live(
            Spinner("dots", text="[cyan]Generating commit message...[/cyan]"),
            console=console,
            transient=True,
        ):
            outcome = asyncio.run(_run_commit(config, args, requester))
    _report(outcome, json_output)


@app.command()
def validate(
    message: str = typer.Argument(..., help="The commit message to validate"),
    no_commit: bool = typer.Option(False, "--no-commit", help="Only prepare the message"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Validate a commit message and commit it."""
    config = _setup()
    outcome = asyncio.run(_run_validate(config, {"message": message, "auto_commit": not no_commit}))
    _report(outcome, json_output)


@app.command()
def presets() -> None:
    """List the available message styles."""
    table = Table(title="Message Styles")
    table.add_column("Style", style="cyan")
    table.add_column("Subject", justify="right")
    table.add_column("Body")
    table.add_column("Behavior", style="dim")

    body_labels = {
        BodyPolicy.OPTIONAL: "optional",
        BodyPolicy.REQUIRED: "[green]required[/green]",
        BodyPolicy.FORBIDDEN: "[red]forbidden[/red]",
    }
    for preset in PresetCatalog().all():
        table.add_row(
            preset.style.value,
            str(preset.rules.subject_max_length),
            body_labels[preset.rules.body_policy],
            preset.instructions.behavior,
        )
    console.print(table)


@app.command()
def serve() -> None:
    """Run the MCP server over stdio."""
    serve_main()


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
