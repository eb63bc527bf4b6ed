"""
Krav Trainer CLI.

Commands:
    kravtrainer run         - Start (or resume) a timed training session
    kravtrainer resume      - Continue an interrupted session
    kravtrainer status      - Show the saved session snapshot
    kravtrainer clear       - Discard the saved session snapshot
    kravtrainer strategies  - List technique selection strategies
    kravtrainer techniques  - List the technique catalog
"""
from __future__ import annotations

import asyncio
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table
from rich.text import Text

from kravtrainer.config import Settings, get_settings
from kravtrainer.core.constants import (
    MSG_NO_TECHNIQUES_SELECTED,
    MSG_SESSION_COMPLETED,
    MSG_SESSION_STARTED,
)
from kravtrainer.core.errors import CatalogError, SessionEngineError
from kravtrainer.core.models import (
    FightList,
    SessionConfig,
    Technique,
    clamp_delay,
    clamp_duration,
    clamp_volume,
)
from kravtrainer.delivery.audio import AudioPlayer, CommandAudioPlayer, SilentAudioPlayer
from kravtrainer.delivery.catalog import TechniqueCatalog, load_fight_list
from kravtrainer.delivery.notifier import ConsoleNotifier
from kravtrainer.delivery.store import JsonFileStore
from kravtrainer.session.engine import SessionEngine
from kravtrainer.session.persistence import SessionPersistence, SessionSnapshot
from kravtrainer.session.strategies import StrategyType, available_strategies
from kravtrainer.session.timers import AsyncioTimerService

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="kravtrainer",
    help="Krav Maga shadow fighting trainer - timed technique announcements",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

REFRESH_SECONDS = 0.25


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )


@app.callback()
def main(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
) -> None:
    """
    Krav Maga shadow fighting trainer.

    \b
    Quick Start:
      kravtrainer run                  # 5 minutes, technique every 3 seconds
      kravtrainer run -d 10 -s 2       # 10 minutes, every 2 seconds
      kravtrainer run --strategy roundRobin
      kravtrainer resume               # pick up an interrupted session
    """
    settings = get_settings()
    _configure_logging("DEBUG" if verbose else settings.log_level)


# =============================================================================
# Wiring helpers
# =============================================================================


def _fail(message: str) -> NoReturn:
    rprint(f"[red]Error:[/red] {message}")
    raise typer.Exit(code=1)


def _load_catalog(settings: Settings, catalog: Path | None) -> TechniqueCatalog:
    try:
        return TechniqueCatalog.load(catalog or settings.catalog_path)
    except CatalogError as e:
        _fail(str(e))


def _build_config(
    settings: Settings,
    catalog: TechniqueCatalog,
    duration: int | None,
    delay: int | None,
    volume: int | None,
) -> SessionConfig:
    return SessionConfig.from_catalog(
        catalog.techniques,
        duration=clamp_duration(duration if duration is not None else settings.default_duration_minutes),
        delay=clamp_delay(delay if delay is not None else settings.default_delay_seconds),
        volume=clamp_volume(volume if volume is not None else settings.default_volume),
    )


def _build_audio(settings: Settings, audio_dir: Path | None, volume: int) -> AudioPlayer:
    directory = audio_dir or settings.audio_dir
    player: AudioPlayer
    if directory is None:
        player = SilentAudioPlayer()
    else:
        player = CommandAudioPlayer(directory, command=settings.audio_command)
    player.set_volume(volume)
    return player


def _build_persistence(settings: Settings) -> SessionPersistence:
    return SessionPersistence(
        JsonFileStore(settings.resolved_state_file),
        restore_window_seconds=settings.restore_window_seconds,
    )


def _build_engine(
    settings: Settings,
    audio: AudioPlayer,
    strategy: StrategyType,
    on_announce: Callable[[Technique], None],
) -> SessionEngine:
    return SessionEngine(
        audio=audio,
        notifier=ConsoleNotifier(console),
        store=JsonFileStore(settings.resolved_state_file),
        timers=AsyncioTimerService(),
        strategy=strategy,
        restore_window_seconds=settings.restore_window_seconds,
        save_interval_seconds=settings.save_interval_seconds,
        max_consecutive_audio_failures=settings.max_consecutive_audio_failures,
        on_announce=on_announce,
    )


def _announce_line(technique: Technique) -> None:
    console.print(
        f"[bold yellow]>> {technique.name}[/]  "
        f"[dim]{technique.category.value} / {technique.target_level.value} / {technique.side.value}[/]"
    )


# =============================================================================
# Rendering
# =============================================================================


def _progress_bar(percent: float, width: int = 30) -> str:
    filled = int(percent / 100 * width)
    return "#" * filled + "-" * (width - filled)


def _session_panel(engine: SessionEngine) -> Panel:
    status = engine.get_status()
    content = Text()
    content.append(f"{engine.format_time(status.remaining_seconds)}", style="bold cyan")
    content.append(f" / {engine.format_time(status.total_seconds)}")
    if status.is_paused:
        content.append("  [PAUSED]", style="yellow")
    content.append("\n")
    content.append(f"{_progress_bar(engine.progress_percent())} {engine.progress_percent():.0f}%\n")
    current = status.current_technique.name if status.current_technique else "-"
    content.append("Current: ", style="dim")
    content.append(f"{current}\n", style="bold")
    content.append(f"Announced: {status.techniques_announced}", style="dim")
    return Panel(
        content,
        title="[bold]Training Session[/bold]",
        subtitle=status.strategy_name,
        border_style="blue",
    )


def _summary_table(engine: SessionEngine) -> Table:
    stats = engine.get_status().stats
    table = Table(title="Session Summary", show_header=True)
    table.add_column("Category", style="cyan")
    table.add_column("Count", justify="right")
    for category, count in stats.techniques_by_category.items():
        if count:
            table.add_row(category.value, str(count))
    table.add_row("[bold]Total[/bold]", f"[bold]{stats.total_techniques}[/bold]")
    table.caption = f"Duration {engine.format_time(stats.session_duration)}"
    return table


async def _drive(engine: SessionEngine, begin: Callable[[], None]) -> bool:
    """
    Run ``begin`` inside the event loop and render until the session ends.

    Returns True when the session completed naturally.
    """
    completed = asyncio.Event()
    engine.on_complete = completed.set
    timers = engine.timers
    try:
        begin()
        with Live(_session_panel(engine), console=console, refresh_per_second=4) as live:
            while engine.is_active:
                live.update(_session_panel(engine))
                await asyncio.sleep(REFRESH_SECONDS)
        return completed.is_set()
    finally:
        if engine.is_active:
            # Interrupted: keep the latest position for `kravtrainer resume`
            engine.persistence.snapshot(engine.state)
        if isinstance(timers, AsyncioTimerService):
            timers.close()


def _run_to_end(engine: SessionEngine, begin: Callable[[], None]) -> None:
    try:
        finished = asyncio.run(_drive(engine, begin))
    except KeyboardInterrupt:
        rprint("\n[yellow]Session interrupted.[/yellow] Run [bold]kravtrainer resume[/bold] to continue.")
        raise typer.Exit(code=130)
    except (SessionEngineError, ValueError) as e:
        _fail(str(e))

    if finished:
        rprint(f"[green][OK][/green] {MSG_SESSION_COMPLETED}")
    if finished or engine.get_status().stats.total_techniques:
        console.print(_summary_table(engine))


# =============================================================================
# Session Commands
# =============================================================================


@app.command()
def run(
    duration: Annotated[
        int | None, typer.Option("--duration", "-d", help="Session length in minutes (1-30)")
    ] = None,
    delay: Annotated[
        int | None, typer.Option("--delay", "-s", help="Seconds between techniques (1-10)")
    ] = None,
    volume: Annotated[
        int | None, typer.Option("--volume", help="Playback volume (0-100)")
    ] = None,
    strategy: Annotated[
        StrategyType | None, typer.Option("--strategy", help="Technique selection strategy")
    ] = None,
    catalog: Annotated[
        Path | None, typer.Option("--catalog", "-c", help="Technique catalog JSON")
    ] = None,
    fight_list: Annotated[
        Path | None, typer.Option("--fight-list", "-f", help="Fight list JSON to train from")
    ] = None,
    audio_dir: Annotated[
        Path | None, typer.Option("--audio-dir", help="Directory with technique audio files")
    ] = None,
    fresh: Annotated[
        bool, typer.Option("--fresh", help="Ignore any interrupted session")
    ] = False,
) -> None:
    """
    Start a training session.

    Examples:
        kravtrainer run                      # Defaults from settings
        kravtrainer run -d 10 -s 2           # 10 minutes, every 2 seconds
        kravtrainer run -f my_list.json      # Train a fight list
    """
    settings = get_settings()
    techniques = _load_catalog(settings, catalog)
    config = _build_config(settings, techniques, duration, delay, volume)

    selected_list = _load_fight_list(fight_list)

    persistence = _build_persistence(settings)
    if not fresh:
        snapshot = persistence.load_restorable()
        if snapshot is not None and Confirm.ask(
            f"Resume interrupted session ({SessionEngine.format_time(snapshot.remaining_seconds)} left)?",
            default=True,
        ):
            config = _resume_config(config, snapshot, selected_list)
            _resume_session(settings, config, strategy or settings.default_strategy, audio_dir)
            return
    persistence.clear()

    if selected_list is None and not SessionEngine.is_ready_to_start(config):
        _fail(MSG_NO_TECHNIQUES_SELECTED)

    audio = _build_audio(settings, audio_dir, config.volume)
    engine = _build_engine(settings, audio, strategy or settings.default_strategy, _announce_line)

    def begin() -> None:
        if selected_list is not None:
            engine.start_with_fight_list(config, selected_list)
        else:
            engine.start(config)
        rprint(f"[green][OK][/green] {MSG_SESSION_STARTED}")

    _run_to_end(engine, begin)


def _load_fight_list(path: Path | None) -> FightList | None:
    if path is None:
        return None
    try:
        return load_fight_list(path)
    except CatalogError as e:
        _fail(str(e))


def _resume_config(
    config: SessionConfig, snapshot: SessionSnapshot, fight_list: FightList | None
) -> SessionConfig:
    """Rebuild the fight list pool of a session that was started from one."""
    list_id = snapshot.associated_list_id
    if list_id is None:
        return config
    if fight_list is not None and fight_list.id == list_id:
        return SessionEngine.fight_list_config(config, fight_list)
    rprint(
        f"[yellow]Session was started from fight list '{list_id}'; "
        f"pass --fight-list to train it again. Using the full catalog.[/yellow]"
    )
    return config


def _resume_session(
    settings: Settings,
    config: SessionConfig,
    strategy: StrategyType,
    audio_dir: Path | None,
) -> None:
    audio = _build_audio(settings, audio_dir, config.volume)
    engine = _build_engine(settings, audio, strategy, _announce_line)

    def begin() -> None:
        result = engine.restore(config)
        if not result.restored:
            rprint("[yellow]No session to resume.[/yellow]")
            return
        if result.was_paused:
            engine.resume(config)
        else:
            engine.resume_announcements(config)

    _run_to_end(engine, begin)


@app.command()
def resume(
    delay: Annotated[
        int | None, typer.Option("--delay", "-s", help="Seconds between techniques (1-10)")
    ] = None,
    strategy: Annotated[
        StrategyType | None, typer.Option("--strategy", help="Technique selection strategy")
    ] = None,
    catalog: Annotated[
        Path | None, typer.Option("--catalog", "-c", help="Technique catalog JSON")
    ] = None,
    fight_list: Annotated[
        Path | None,
        typer.Option("--fight-list", "-f", help="Fight list JSON the session was started from"),
    ] = None,
    audio_dir: Annotated[
        Path | None, typer.Option("--audio-dir", help="Directory with technique audio files")
    ] = None,
) -> None:
    """
    Continue a session interrupted less than five minutes ago.

    A session started from a fight list needs the same --fight-list again to
    keep its techniques and priorities; otherwise the full catalog is used.
    """
    settings = get_settings()
    snapshot = _build_persistence(settings).load_restorable()
    if snapshot is None:
        rprint("[yellow]No session to resume.[/yellow]")
        return
    techniques = _load_catalog(settings, catalog)
    config = _build_config(settings, techniques, None, delay, None)
    config = _resume_config(config, snapshot, _load_fight_list(fight_list))
    _resume_session(settings, config, strategy or settings.default_strategy, audio_dir)


@app.command()
def status() -> None:
    """Show the saved session snapshot."""
    settings = get_settings()
    persistence = _build_persistence(settings)
    snapshot = persistence.peek()
    if snapshot is None:
        rprint("[dim]No saved session.[/dim]")
        return

    age = snapshot.age_seconds(persistence.clock())
    table = Table(title="Saved Session", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Active", "yes" if snapshot.is_active else "no")
    table.add_row("Paused", "yes" if snapshot.is_paused else "no")
    table.add_row(
        "Remaining",
        f"{SessionEngine.format_time(snapshot.remaining_seconds)} / "
        f"{SessionEngine.format_time(snapshot.total_seconds)}",
    )
    table.add_row("Announced", str(snapshot.techniques_announced))
    if snapshot.associated_list_id:
        table.add_row("Fight list", snapshot.associated_list_id)
    table.add_row("Saved", f"{age:.0f}s ago")
    restorable = persistence.is_restorable(snapshot)
    table.add_row("Restorable", "[green]yes[/green]" if restorable else "[red]no[/red]")
    console.print(table)


@app.command()
def clear() -> None:
    """Discard the saved session snapshot."""
    _build_persistence(get_settings()).clear()
    rprint("[green][OK][/green] Saved session cleared")


# =============================================================================
# Catalog Commands
# =============================================================================


@app.command()
def strategies() -> None:
    """List technique selection strategies."""
    table = Table(title="Selection Strategies")
    table.add_column("Type", style="cyan")
    table.add_column("Name")
    for kind, name in available_strategies():
        table.add_row(kind.value, name)
    console.print(table)


@app.command()
def techniques(
    catalog: Annotated[
        Path | None, typer.Option("--catalog", "-c", help="Technique catalog JSON")
    ] = None,
) -> None:
    """List the technique catalog."""
    settings = get_settings()
    loaded = _load_catalog(settings, catalog)

    table = Table(title=f"Techniques ({len(loaded.get_selected_techniques())}/{len(loaded)} selected)")
    table.add_column("Name", style="cyan")
    table.add_column("Category")
    table.add_column("Priority")
    table.add_column("Weight", justify="right")
    table.add_column("Target")
    table.add_column("Side")
    table.add_column("Sel", justify="center")
    for t in loaded.techniques:
        table.add_row(
            t.name,
            t.category.value,
            t.priority.value,
            f"{t.weight:g}",
            t.target_level.value,
            t.side.value,
            "[green]x[/green]" if t.selected else "",
        )
    console.print(table)


def run_cli() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run_cli()
