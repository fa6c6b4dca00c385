"""Command-line interface for retrotrace."""

import logging
from pathlib import Path
from typing import Optional

import structlog
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from retrotrace.extraction import CommitHistoryScanner, ExecPool, group_commits_by_month
from retrotrace.models import ReconstructionConfig
from retrotrace.reconstruction import ReconstructionOrchestrator

app = typer.Typer(
    name="retrotrace",
    help="Reconstruct a plausible engineering history from a Git commit log",
    add_completion=False,
)
console = Console()


def configure_logging(level: str) -> None:
    """Set the structlog threshold from a level name (e.g. INFO)."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(numeric))


def load_config(**overrides) -> ReconstructionConfig:
    """Build settings from the environment plus explicit CLI overrides."""
    return ReconstructionConfig(**{k: v for k, v in overrides.items() if v is not None})


@app.command()
def reconstruct(
    repo_path: Path = typer.Argument(..., help="Path to Git repository"),
    max_commits: Optional[int] = typer.Option(None, "--max-commits", "-n", help="Maximum commits to scan"),
    include_merges: bool = typer.Option(False, "--include-merges", help="Keep merge commits in the scan"),
    force: bool = typer.Option(False, "--force", "-f", help="Reconstruct even if observed events exist"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level (DEBUG, INFO, WARNING)"),
) -> None:
    """Reconstruct synthetic events and patterns from commit history."""
    try:
        config = load_config(
            max_commits=max_commits,
            skip_merges=False if include_merges else None,
            log_level=log_level,
        )
    except ValidationError as e:
        console.print(f"[bold red]Invalid configuration:[/bold red] {e}")
        raise typer.Exit(1)

    configure_logging(config.log_level)
    orchestrator = ReconstructionOrchestrator(repo_path, config)

    if not force and not orchestrator.should_reconstruct():
        console.print("[yellow]Observed events already exist. Nothing to reconstruct.[/yellow]")
        console.print("[dim]Use --force to reconstruct anyway.[/dim]")
        return

    console.print(f"[bold green]Reconstructing history for:[/bold green] {repo_path}")
    with console.status("Scanning Git history..."):
        result = orchestrator.reconstruct()

    console.print(f"\n{result.summary}")
    for warning in result.warnings:
        console.print(f"[yellow]⚠ {warning}[/yellow]")

    metrics = orchestrator.exec_pool.metrics()
    console.print(
        f"[dim]git calls: {metrics.total} "
        f"({metrics.failed} failed, {metrics.timed_out} timed out, p90 {metrics.latency.p90:.0f} ms)[/dim]"
    )


@app.command()
def scan(
    repo_path: Path = typer.Argument(..., help="Path to Git repository"),
    max_commits: int = typer.Option(20, "--max-commits", "-n", help="Maximum commits to show"),
) -> None:
    """List scanned commits with their file and line counts."""
    try:
        config = load_config(max_commits=max_commits)
    except ValidationError as e:
        console.print(f"[bold red]Invalid configuration:[/bold red] {e}")
        raise typer.Exit(1)

    configure_logging(config.log_level)
    pool = ExecPool(config.exec_pool_size, config.exec_timeout)
    scanner = CommitHistoryScanner(repo_path, config.scan_config(), pool, log_timeout=config.log_timeout)
    commits = scanner.scan_history()

    if not commits:
        console.print("[yellow]No commits found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Hash", style="cyan", width=10)
    table.add_column("Author", style="green")
    table.add_column("Date", style="blue")
    table.add_column("Message", style="white")
    table.add_column("Files", justify="right", style="yellow")
    table.add_column("+/-", justify="right", style="yellow")

    for commit in commits:
        table.add_row(
            commit.short_hash,
            commit.author[:20],
            commit.timestamp.strftime("%Y-%m-%d %H:%M"),
            commit.message[:60],
            str(len(commit.files)),
            f"+{commit.insertions}/-{commit.deletions}",
        )
    console.print(table)

    console.print("\n[bold]Commits per month[/bold]")
    for month, month_commits in group_commits_by_month(commits).items():
        console.print(f"  {month[:7]}: {len(month_commits)}")


@app.command()
def status(
    repo_path: Path = typer.Argument(..., help="Path to Git repository"),
) -> None:
    """Show whether a reconstruction would run for this workspace."""
    try:
        config = load_config()
    except ValidationError as e:
        console.print(f"[bold red]Invalid configuration:[/bold red] {e}")
        raise typer.Exit(1)

    orchestrator = ReconstructionOrchestrator(repo_path, config)
    store = orchestrator.store

    console.print("\n[bold]Trace Store Status[/bold]")
    console.print(f"[cyan]Store:[/cyan] {store.reasoning_dir}")
    console.print(f"[cyan]Day buckets:[/cyan] {len(store.list_day_files())}")

    if orchestrator.should_reconstruct():
        console.print("\n[yellow]No observed events yet. Reconstruction would run.[/yellow]")
        console.print("[dim]Run 'retrotrace reconstruct <repo>' to reconstruct history.[/dim]")
    else:
        console.print("\n[green]✓ Observed events present - reconstruction not needed[/green]")


@app.command()
def version() -> None:
    """Show version information."""
    from retrotrace import __version__

    console.print(f"[bold]retrotrace[/bold] version {__version__}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
