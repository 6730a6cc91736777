"""CLI commands for the study tracker.

Commands:
- serve: Run the Web API
- config: Show the effective configuration
- timer: Run a focus/break countdown in the terminal
- stats: Show study statistics for an account
- export: Save an account's study data as JSON
"""

import asyncio
import json
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.live import Live
from rich.table import Table

from studytrack.backend.base import BackendError
from studytrack.backend.factory import create_backend
from studytrack.config.app_config import ConfigError, load_app_config
from studytrack.core.models import TimerSettings, User, utc_now
from studytrack.core.stats import format_study_time
from studytrack.core.timer import FocusTimer, TimerMode, format_clock
from studytrack.logging_config import configure_logging, get_uvicorn_log_config
from studytrack.services.auth import AuthService
from studytrack.services.study import StudyService, export_filename

app = typer.Typer(
    name="studytrack",
    help="Study tracker: subjects, topic checklists, focus timer and analytics.",
    no_args_is_help=True,
)

console = Console()


def _load_config_or_exit():
    try:
        config = load_app_config()
        config.backend.validate()
    except ConfigError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)
    return config


@app.command()
def serve(
    host: str = typer.Option(None, "--host", help="Bind address (default from config)"),
    port: int = typer.Option(None, "--port", "-p", help="Port (default from config)"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the Web API server."""
    import uvicorn

    config = _load_config_or_exit()
    configure_logging(config.server.log_level, config.server.json_logs)

    host = host or config.server.host
    port = port or config.server.port
    console.print(
        f"[bold]Study Tracker API[/bold] on http://{host}:{port} "
        f"[dim](backend: {config.backend.provider})[/dim]"
    )

    uvicorn.run(
        "studytrack.web.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_config=get_uvicorn_log_config(config.server.log_level),
    )


@app.command(name="config")
def show_config(
    as_json: bool = typer.Option(False, "--json", help="Print as JSON"),
) -> None:
    """Show the effective configuration (key values are never printed)."""
    config = load_app_config()
    data = config.to_dict()

    if as_json:
        console.print_json(json.dumps(data))
        return

    for section, values in data.items():
        console.print(f"\n[bold]{section}[/bold]")
        for key, value in values.items():
            console.print(f"  [dim]{key}:[/dim] {value}")


def _timer_table(timer: FocusTimer) -> Table:
    table = Table(show_header=False, box=None)
    table.add_column("key", style="dim")
    table.add_column("value")
    table.add_row("mode", f"[bold]{timer.label}[/bold]")
    table.add_row("time", f"[bold cyan]{format_clock(timer.time_left)}[/bold cyan]")
    table.add_row("progress", f"{timer.progress:.0f}%")
    if timer.auto_start_pending:
        table.add_row("next", "[yellow]starting next session...[/yellow]")
    return table


@app.command()
def timer(
    mode: TimerMode = typer.Option(TimerMode.FOCUS, "--mode", "-m", help="focus, short or long"),
    focus: int = typer.Option(25, "--focus", help="Focus length in minutes"),
    short: int = typer.Option(5, "--short", help="Short break length in minutes"),
    long: int = typer.Option(15, "--long", help="Long break length in minutes"),
    auto_start: bool = typer.Option(False, "--auto-start", help="Chain focus and breaks"),
    cycles: int = typer.Option(1, "--cycles", "-n", help="Sessions to run before exiting"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="No bell on completion"),
) -> None:
    """Run a countdown in the terminal. Ctrl+C stops it."""
    settings = TimerSettings(
        focus_time=focus,
        short_break=short,
        long_break=long,
        auto_start=auto_start,
        sound_enabled=not quiet,
    )
    config = load_app_config()
    countdown = FocusTimer(settings, auto_start_delay=config.timer.auto_start_delay)
    countdown.set_mode(mode)
    countdown.start()

    completed = 0
    try:
        with Live(_timer_table(countdown), console=console, refresh_per_second=4) as live:
            while completed < cycles:
                time.sleep(1)
                result = countdown.tick()
                if result.completed_session is not None:
                    completed += 1
                    if result.play_sound:
                        console.bell()
                    live.console.print(
                        f"[green]✓ {result.completed_session.duration} min "
                        f"{result.completed_session.type} session completed[/green]"
                    )
                    if not settings.auto_start:
                        break
                live.update(_timer_table(countdown))
    except KeyboardInterrupt:
        console.print("\n[yellow]Timer stopped[/yellow]")
        raise typer.Exit(code=0)


async def _load_study(email: str, password: str) -> tuple[User, StudyService] | None:
    config = load_app_config()
    backend = create_backend(config.backend)
    try:
        auth = AuthService(backend)
        result = await auth.sign_in(email, password)
        if not result.ok:
            console.print(f"[red]✗ {result.error}[/red]")
            return None

        session = result.session
        study = StudyService(backend, session.user.id, session.access_token)
        if not await study.refresh():
            console.print("[red]✗ Could not load study data[/red]")
            return None
        await auth.sign_out(session.access_token)
        return session.user, study
    finally:
        await backend.aclose()


def _load_study_or_exit(email: str, password: str) -> tuple[User, StudyService]:
    config = _load_config_or_exit()
    if config.backend.provider == "memory":
        console.print("[yellow]The memory backend starts empty; configure supabase to see real data[/yellow]")

    try:
        loaded = asyncio.run(_load_study(email, password))
    except BackendError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)
    if loaded is None:
        raise typer.Exit(code=1)
    return loaded


@app.command()
def stats(
    email: str = typer.Option(..., "--email", "-e", help="Account e-mail"),
    password: str = typer.Option(
        ..., "--password", prompt=True, hide_input=True, help="Account password"
    ),
) -> None:
    """Show study statistics and per-subject progress."""
    _, study = _load_study_or_exit(email, password)

    user_stats = study.stats
    console.print("\n[bold]Study statistics[/bold]")
    console.print(f"  [dim]study time:[/dim]       {format_study_time(user_stats.total_study_time)}")
    console.print(f"  [dim]sessions:[/dim]         {user_stats.sessions_completed}")
    console.print(f"  [dim]streak:[/dim]           {user_stats.streak_days} days")
    console.print(f"  [dim]subjects done:[/dim]    {user_stats.subjects_completed}")
    console.print(
        f"  [dim]average session:[/dim]  {user_stats.average_session_length:.0f} min"
    )

    if not study.subjects:
        console.print("\n[yellow]No subjects yet[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Subject")
    table.add_column("Topics", justify="right")
    table.add_column("Progress", justify="right")
    for subject in study.subjects:
        color = "green" if subject.progress == 100 else "white"
        table.add_row(
            subject.name,
            f"{subject.completed_topics}/{len(subject.topics)}",
            f"[{color}]{subject.progress:.0f}%[/{color}]",
        )
    console.print()
    console.print(table)


@app.command()
def export(
    email: str = typer.Option(..., "--email", "-e", help="Account e-mail"),
    password: str = typer.Option(
        ..., "--password", prompt=True, hide_input=True, help="Account password"
    ),
    output: Path = typer.Option(
        None, "--output", "-o", help="Destination file (default: studytrack-data-<date>.json)"
    ),
) -> None:
    """Save profile, subjects, sessions and stats to a JSON file."""
    user, study = _load_study_or_exit(email, password)

    exported_at = utc_now()
    output = output or Path(export_filename(exported_at))
    data = study.export_data(user, exported_at)
    output.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")

    console.print(
        f"[green]✓ Exported {len(data['subjects'])} subjects and "
        f"{len(data['timer_sessions'])} sessions to {output}[/green]"
    )


if __name__ == "__main__":
    app()
