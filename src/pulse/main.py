"""
Pulse - CLI Entry Point.

Usage:
    pulse show                   Show the stored preference profile
    pulse validate -c sports     Check whether a selection may advance
    pulse follow-ups news        Generate AI follow-up questions for a category
    pulse taxonomy               Print the interest taxonomy
    pulse serve                  Start the HTTP API
    pulse health                 Check configuration
    pulse --help                 Show help
"""

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.spinner import Spinner
from rich.table import Table
from rich.tree import Tree

app = typer.Typer(
    name="pulse",
    help="Pulse - Personalised update preferences.",
    add_completion=False,
)
console = Console()

_DIR_OPTION = typer.Option(None, "--dir", "-d", help="Preferences directory (defaults to PREFERENCES_DIR)")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level"),
) -> None:
    from pulse.config import settings
    from pulse.llm.prompt_logger import enable_prompt_logging

    logging.basicConfig(
        level="DEBUG" if verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if settings.pulse_log_prompts:
        enable_prompt_logging(True)


@app.command()
def health() -> None:
    """Check configuration and the built-in taxonomy."""
    from pulse.config import get_settings
    from pulse.llm import get_model
    from pulse.llm.prompt_logger import is_prompt_logging_enabled
    from interests.errors import TaxonomyError
    from interests.taxonomy import load_taxonomy

    console.print("\n[bold]Pulse Health Check[/bold]\n")

    try:
        settings = get_settings()
        console.print("✅ Configuration loaded")
        console.print(f"   Environment: {settings.pulse_env}")
        console.print(f"   Log level: {settings.log_level}")
        console.print(f"   Preferences: {settings.preferences_dir / (settings.profile_key + '.json')}")

        if settings.has_llm_backend:
            console.print("✅ OpenAI API key configured")
            console.print(f"   Follow-up model: {settings.follow_up_model or get_model('medium')}")
        else:
            console.print("ℹ️  OpenAI API key not set (follow-up questions use placeholders)")

        if is_prompt_logging_enabled():
            console.print("📝 Prompt logging enabled (prompt_logs/)")

        taxonomy = load_taxonomy()
        console.print(f"✅ Taxonomy loaded ({len(taxonomy.categories)} categories)")

        console.print("\n[green]All checks passed![/green]")

    except TaxonomyError as e:
        console.print(f"\n[red]❌ Taxonomy error: {e}[/red]")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"\n[red]❌ Configuration error: {e}[/red]")
        console.print("[dim]Check your .env file.[/dim]")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    from pulse import __version__

    console.print(f"Pulse version {__version__}")


@app.command()
def show(directory: Path | None = _DIR_OPTION) -> None:
    """Show the stored preference profile."""
    from interests.taxonomy import get_taxonomy

    store = _load_store(directory)
    profile = store.profile
    taxonomy = get_taxonomy()

    table = Table(title=f"Preferences (version {profile.version})")
    table.add_column("Category", style="bold")
    table.add_column("Interests")
    table.add_column("Instructions")
    table.add_column("AI questions", justify="right")

    for category in taxonomy.selectable_categories():
        prefs = profile.category(category.key)
        interests = taxonomy.tag_labels(category.key, prefs.selected_tags)
        if prefs.has_other_text:
            interests.append(f"Other: {prefs.other_text.strip()}")
        answered = sum(1 for q in prefs.ai_follow_up_questions if q.answer.strip())
        table.add_row(
            category.label,
            escape(", ".join(interests)) or "[dim]-[/dim]",
            escape(", ".join(prefs.instruction_tags)) or "[dim]-[/dim]",
            f"{answered}/{len(prefs.ai_follow_up_questions)}",
        )

    console.print(table)

    schedule = profile.frequency.value
    if profile.custom_frequency_time:
        schedule += f" at {profile.custom_frequency_time}"
    console.print(f"Frequency: {schedule}")
    console.print(f"Custom interests: {escape(', '.join(profile.custom_interest_tags)) or '-'}")
    if profile.alerts_paused:
        console.print("[yellow]Updates are paused[/yellow]")


@app.command()
def validate(
    category: str = typer.Option(None, "--category", "-c", help="Category id to treat as active"),
    sub_category: str = typer.Option(None, "--sub-category", "-s", help="Sub-category id to treat as active"),
    directory: Path | None = _DIR_OPTION,
) -> None:
    """Check whether the stored selection may advance to the frequency step."""
    from interests.errors import TaxonomyError
    from interests.frequency import validate_frequency
    from interests.taxonomy import get_taxonomy
    from interests.validation import SelectionState, validate_selection

    store = _load_store(directory)
    selection = SelectionState(active_category=category, active_sub_category=sub_category)
    try:
        errors = validate_selection(store.profile, selection, get_taxonomy())
    except TaxonomyError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)
    errors += validate_frequency(store.profile)

    if not errors:
        console.print("[green]✅ Selection is complete[/green]")
        return

    for message in errors:
        console.print(f"[red]•[/red] {message}")
    raise typer.Exit(1)


@app.command("follow-ups")
def follow_ups(
    category: str = typer.Argument(..., help="Category key (sports, moviesTV, news, youtube)"),
    log_prompts: bool = typer.Option(False, "--log-prompts", "-l", help="Log LLM prompts to prompt_logs/"),
    directory: Path | None = _DIR_OPTION,
) -> None:
    """Generate AI follow-up questions for a category's selected tags."""
    from interests.engine import SelectionEngine
    from interests.errors import InterestsError
    from pulse.llm.prompt_logger import enable_prompt_logging

    if log_prompts:
        enable_prompt_logging(True)
        console.print("[dim]📝 Prompt logging enabled. Check prompt_logs/ afterwards.[/dim]")

    engine = SelectionEngine(_load_store(directory))

    try:
        with Live(Spinner("dots", text="Thinking..."), console=console, transient=True):
            profile = asyncio.run(engine.fetch_ai_follow_ups(category))
    except (InterestsError, ValueError) as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)

    error = engine.ai_error(category)
    if error is not None:
        console.print(f"[yellow]⚠️  {error}[/yellow]")
        raise typer.Exit(1)

    questions = profile.category(category).ai_follow_up_questions
    console.print(
        Panel.fit(
            "\n".join(f"{i}. {escape(q.question)}" for i, q in enumerate(questions, 1)),
            title=f"Follow-up questions ({engine.taxonomy.category(category).label})",
            border_style="green",
        )
    )


@app.command()
def taxonomy() -> None:
    """Print the interest taxonomy."""
    from interests.taxonomy import get_taxonomy

    root = Tree("[bold]Interests[/bold]")
    for category in get_taxonomy().categories:
        node = root.add(f"{category.icon or ''} [bold]{category.label}[/bold] [dim]({category.id})[/dim]")
        for tag in category.tags:
            node.add(f"{tag.label} [dim]({tag.id})[/dim]")
        for sub in category.sub_categories:
            suffix = " [dim]exclusive[/dim]" if sub.exclusive else ""
            if sub.is_other_placeholder:
                suffix = " [dim]free text[/dim]"
            sub_node = node.add(f"{sub.label}{suffix}")
            for tag in sub.tags:
                sub_node.add(f"{tag.label} [dim]({tag.id})[/dim]")
        for question in category.follow_up_questions:
            node.add(f"[cyan]? {question.text}[/cyan]")

    console.print(root)


@app.command()
def reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    directory: Path | None = _DIR_OPTION,
) -> None:
    """Delete the stored profile."""
    store = _load_store(directory)
    if not yes and not typer.confirm(f"Delete stored preferences '{store.key}'?"):
        raise typer.Exit(0)

    store.reset()
    console.print("[green]Preferences reset[/green]")


@app.command()
def serve(
    port: int = typer.Option(8000, "--port", "-p", help="Port to run on"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload for development"),
) -> None:
    """Start the HTTP API."""
    import os

    import uvicorn

    actual_port = int(os.environ.get("PORT", port))

    console.print("\n[bold green]Pulse API[/bold green]")
    console.print(f"Starting server on http://localhost:{actual_port}")
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")

    uvicorn.run(
        "pulse.web.app:app",
        host="0.0.0.0",
        port=actual_port,
        reload=reload,
    )


def _load_store(directory: Path | None):
    from interests.errors import PersistenceError
    from interests.store import create_store

    try:
        return create_store(directory)
    except PersistenceError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
