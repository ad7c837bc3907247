"""Gladiator CLI entry point."""

import json

import typer
from rich.markup import escape

from gladiator_mcp.config import load_config
from gladiator_mcp.errors import ConfigurationError, ObservationValidationError
from gladiator_mcp.operations import LearningLoop

from . import __version__
from .console import (
    action_label,
    console,
    create_table,
    print_error,
    print_info,
    print_panel,
    print_success,
    print_table,
    print_warning,
)

app = typer.Typer(
    name="gladiator",
    help="Gladiator - continuous learning for your AI coding assistant",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"gladiator version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Gladiator - continuous learning for your AI coding assistant."""
    pass


def _get_loop() -> LearningLoop:
    """Build the learning loop from configuration, exiting on config errors."""
    try:
        return LearningLoop.from_config(load_config())
    except ConfigurationError as e:
        print_error(f"Configuration error: {escape(str(e))}")
        raise typer.Exit(1)


@app.command(name="observe")
def observe_command(
    summary: str = typer.Argument(..., help="What happened (at least 20 characters)"),
    tags: list[str] | None = typer.Option(
        None, "--tag", "-t", help="Tag for clustering (repeatable)"
    ),
    before: str | None = typer.Option(None, "--before", help="What was tried first"),
    after: str | None = typer.Option(None, "--after", help="What actually worked"),
    error: str | None = typer.Option(None, "--error", help="Exact error message"),
    tool: str | None = typer.Option(None, "--tool", help="Tool that triggered this"),
    recommendation: str | None = typer.Option(
        None, "--recommendation", "-r", help="What to do about it"
    ),
    artifact_type: str | None = typer.Option(
        None, "--type", help="rule, skill, hook or agent (auto-classified if omitted)"
    ),
    source: str | None = typer.Option(
        None, "--source", help="manual, hook, conversation or session"
    ),
    session_ref: str | None = typer.Option(
        None, "--session-ref", help="Session transcript reference"
    ),
) -> None:
    """Record an observation worth learning from."""
    loop = _get_loop()

    context = {"tool": tool, "before": before, "after": after, "error": error}
    context = {k: v for k, v in context.items() if v is not None} or None

    try:
        result = loop.observe(
            summary,
            context=context,
            tags=tags or [],
            recommendation=recommendation,
            artifact_type=artifact_type,
            source=source,
            session_ref=session_ref,
        )
    except ObservationValidationError as e:
        print_error(escape(str(e)))
        raise typer.Exit(1)

    data = result.to_dict()
    if not result.recorded:
        print_warning(f"Skipped: {data['message']}")
        return

    print_success(f"Recorded {data['id']}")
    console.print(
        f"  Recommend ({data['artifact_type']}): {escape(data['recommendation'])}"
    )
    if data["tags"]:
        console.print(f"  Tags: {escape(', '.join(data['tags']))}")
    backlog = data["backlog"]
    console.print(
        f"  [dim]Backlog: {backlog['unprocessed']} unprocessed of {backlog['total']} total[/dim]"
    )


@app.command(name="reflect")
def reflect_command(
    query: str | None = typer.Option(
        None, "--query", "-q", help="Search observations instead of clustering"
    ),
    limit: int | None = typer.Option(
        None, "--limit", "-n", help="Maximum observations to analyze (default 50)"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the raw JSON result"),
) -> None:
    """Cluster unprocessed observations into update/create recommendations.

    With no unprocessed observations, shows statistics. With --query, searches
    all observations without marking anything processed.
    """
    loop = _get_loop()

    try:
        data = loop.reflect(query=query, limit=limit).to_dict()
    except ObservationValidationError as e:
        print_error(escape(str(e)))
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps(data))
        return

    if data["mode"] == "query":
        _print_query(data)
    elif data["mode"] == "stats":
        _print_stats(data)
    else:
        _print_groups(data)


def _print_query(data: dict) -> None:
    if not data["observations"]:
        console.print(f"[dim]No observations match '{escape(data['query'])}'.[/dim]")
        return

    table = create_table(f"Observations matching '{escape(data['query'])}'")
    table.add_column("When", style="dim")
    table.add_column("Type", style="blue")
    table.add_column("Summary", style="green")
    table.add_column("Processed", justify="center")
    for obs in data["observations"]:
        table.add_row(
            obs["ts"][:19],
            obs["artifact_type"],
            escape(obs["summary"]),
            "✓" if obs["processed"] else "",
        )
    print_table(table)


def _print_stats(data: dict) -> None:
    print_info(
        f"{data['total_observations']} observations, nothing unprocessed. "
        "Record more with 'gladiator observe'."
    )
    if not data["by_artifact_type"]:
        return

    table = create_table("Observations by artifact type")
    table.add_column("Type", style="blue")
    table.add_column("Count", style="cyan", justify="right")
    for artifact_type, count in data["by_artifact_type"].items():
        table.add_row(artifact_type, str(count))
    print_table(table)


def _print_groups(data: dict) -> None:
    table = create_table(
        f"{data['observations_analyzed']} observations → {data['groups_found']} groups "
        f"({data['existing_artifacts_scanned']} artifacts scanned)"
    )
    table.add_column("Action", style="magenta")
    table.add_column("Name", style="green")
    table.add_column("Type", style="blue")
    table.add_column("Obs", style="cyan", justify="right")
    table.add_column("Target", style="dim")

    for group in data["groups"]:
        targets = group["update_targets"]
        target = targets[0]["path"] if targets else ""
        if len(target) > 40:
            target = "..." + target[-37:]
        table.add_row(
            action_label(group["action"]),
            escape(group["suggested_name"]),
            group["artifact_type"],
            str(len(group["observations"])),
            escape(target),
        )
    print_table(table)

    print_panel("Guidance", "\n".join(f"• {line}" for line in data["actions"]))


@app.command(name="artifacts")
def artifacts_command() -> None:
    """List existing rules, hooks and skills that reflection matches against."""
    loop = _get_loop()
    artifacts, index = loop.discover_artifacts()

    if not artifacts:
        console.print("[dim]No existing artifacts found.[/dim]")
        return

    table = create_table("Existing artifacts")
    table.add_column("Type", style="blue")
    table.add_column("Name", style="green")
    table.add_column("Keywords", style="cyan", justify="right")
    table.add_column("Path", style="dim")
    for artifact in artifacts:
        table.add_row(
            artifact.type,
            escape(artifact.name),
            str(len(artifact.keywords)),
            escape(str(artifact.path)),
        )
    print_table(table)

    summary = loop.scanner.get_scan_summary(artifacts)
    counts = ", ".join(f"{count} {kind}" for kind, count in summary["by_type"].items())
    print_info(f"{summary['total']} artifacts ({counts})")

    generic = index.generic_keywords()
    print_info(
        f"Keywords in more than {index.threshold:g} artifacts are generic "
        f"({len(generic)} keyword(s))"
    )


if __name__ == "__main__":
    app()
