"""Courtside CLI - Live Trial State Engine."""

import json
import signal
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .. import __version__
from ..config import Settings, configure
from ..exceptions import ConfigError, CourtsideError
from ..models import ActionPriority, TrialAction, TrialState
from ..utils.logging import setup_logging

app = typer.Typer(
    name="courtside",
    help="Incremental trial-state engine for live testimony streams.",
    no_args_is_help=True,
)

console = Console()

PRIORITY_STYLES = {
    ActionPriority.P0: "bold red",
    ActionPriority.P1: "yellow",
    ActionPriority.P2: "cyan",
}


def _load_settings(
    config: Optional[Path],
    state_dir: Optional[Path],
) -> Settings:
    """Build settings from the environment, a policy file and CLI overrides."""
    try:
        settings = Settings.from_env()
        if config is not None:
            settings = Settings.from_yaml(config, base=settings)
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if state_dir is not None:
        settings.state_dir = state_dir

    configure(settings)
    setup_logging(level=settings.log_level, log_file=settings.log_file)
    return settings


def _open_session(source: Path, trial_id: str, settings: Settings, on_actions=None):
    from ..engine import TrialEngine
    from ..session import TrialSession
    from ..stream import EventSource, StateStore

    try:
        engine = TrialEngine.from_settings(settings)
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    return TrialSession(
        source=EventSource(source),
        store=StateStore(settings.state_dir),
        trial_id=trial_id,
        engine=engine,
        persistence=settings.persistence,
        on_actions=on_actions,
    )


def _print_actions(actions: list[TrialAction], title: str = "New Actions") -> None:
    if not actions:
        return

    table = Table(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("Priority")
    table.add_column("Type")
    table.add_column("Target")
    table.add_column("Suggested Language", max_width=50)
    table.add_column("Confidence", justify="right")

    for action in actions:
        style = PRIORITY_STYLES.get(action.priority, "")
        table.add_row(
            action.id,
            f"[{style}]{action.priority.value}[/{style}]",
            action.type.value,
            action.target,
            action.suggested_language,
            f"{action.confidence:.0%}",
        )

    console.print(table)


def _write_actions(path: Path, actions: list[TrialAction]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps([a.to_dict() for a in actions], indent=2))


def _print_summary(state: TrialState) -> None:
    console.print(
        f"Events processed: {state.events_processed}  |  "
        f"Momentum: [bold]{state.momentum_score}[/bold] ({state.momentum_trend.value})  |  "
        f"Pending actions: {len(state.pending_actions)}"
    )


def _print_strategy(strategy) -> None:
    console.print("\n[bold]End-of-Day Strategy[/bold]")

    for label, admissions in (("Key wins", strategy.key_wins), ("Key losses", strategy.key_losses)):
        if admissions:
            console.print(f"  {label}:")
            for k in admissions:
                console.print(f"    #{k.event_index} {k.speaker_name} ({k.momentum_delta:+d}): {escape(k.excerpt)}")

    for witness in strategy.witnesses:
        console.print(f"  {witness.name}: {witness.outlook} (credibility {witness.credibility})")

    if strategy.impeachment_points:
        ids = ", ".join(c.id for c in strategy.impeachment_points)
        console.print(f"  Impeachment points: {ids}")

    console.print("  Recommendations:")
    for recommendation in strategy.recommendations:
        console.print(f"    - {recommendation}")


@app.command()
def run(
    source: Path = typer.Argument(..., help="Path to testimony JSONL stream"),
    trial_id: str = typer.Option("trial", "--trial-id", "-t", help="Trial identifier"),
    state_dir: Optional[Path] = typer.Option(
        None,
        "--state-dir", "-s",
        help="State directory (default: COURTSIDE_STATE_DIR or ./trial_state)",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="YAML policy file",
    ),
    actions_out: Optional[Path] = typer.Option(
        None,
        "--actions-out", "-o",
        help="Write the actions produced by this pass to a JSON file",
    ),
):
    """
    Process every new event in a testimony stream once.

    Resumes from the persisted cursor, so re-running on a grown stream
    only processes the appended events.
    """
    settings = _load_settings(config, state_dir)

    if not source.exists():
        console.print(f"[red]Error: File not found: {source}[/red]")
        raise typer.Exit(1)

    session = _open_session(source, trial_id, settings)

    try:
        session.start()
        result = session.poll_once()
    except CourtsideError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold]Courtside - {trial_id}[/bold]\n")
    console.print(f"Processed {result.processed} new event(s)")
    if session.warning_count:
        console.print(f"[yellow]Skipped {session.warning_count} malformed record(s)[/yellow]")

    for change in result.changes:
        console.print(f"  {change}")

    _print_actions(result.actions)
    _print_summary(session.state)

    if actions_out:
        _write_actions(actions_out, result.actions)
        console.print(f"\nActions written to: {actions_out}")


@app.command()
def watch(
    source: Path = typer.Argument(..., help="Path to testimony JSONL stream"),
    trial_id: str = typer.Option("trial", "--trial-id", "-t", help="Trial identifier"),
    state_dir: Optional[Path] = typer.Option(
        None,
        "--state-dir", "-s",
        help="State directory (default: COURTSIDE_STATE_DIR or ./trial_state)",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="YAML policy file",
    ),
    interval: Optional[float] = typer.Option(
        None,
        "--interval", "-i",
        help="Seconds between polls (default: COURTSIDE_POLL_INTERVAL or 2.0)",
    ),
    actions_out: Optional[Path] = typer.Option(
        None,
        "--actions-out", "-o",
        help="Write each pass's new actions to a JSON file",
    ),
):
    """
    Watch a testimony stream and update state as events arrive.

    Runs until interrupted (Ctrl+C or SIGTERM); state is flushed on exit.
    """
    from ..session import TrialWatcher

    settings = _load_settings(config, state_dir)
    poll_interval = interval if interval is not None else settings.watch.poll_interval

    session = _open_session(
        source,
        trial_id,
        settings,
        on_actions=lambda actions, state: _print_actions(actions),
    )

    def on_pass(result) -> None:
        for change in result.changes:
            console.print(f"  {change}")
        if actions_out and result.actions:
            _write_actions(actions_out, result.actions)

    watcher = TrialWatcher(session, poll_interval=poll_interval, on_pass=on_pass)

    def handle_signal(signum, frame):
        console.print("\n[yellow]Stopping watcher...[/yellow]")
        watcher.stop()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    console.print(f"\n[bold]Watching {source}[/bold] (every {poll_interval:.1f}s)")
    console.print("Press Ctrl+C to stop\n")

    try:
        watcher.run()
    except CourtsideError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    _print_summary(session.state)


@app.command()
def status(
    trial_id: str = typer.Option("trial", "--trial-id", "-t", help="Trial identifier"),
    state_dir: Optional[Path] = typer.Option(
        None,
        "--state-dir", "-s",
        help="State directory (default: COURTSIDE_STATE_DIR or ./trial_state)",
    ),
):
    """
    Show the persisted state of a trial.
    """
    from ..engine import compute_scores, end_of_day_strategy
    from ..stream import StateStore

    settings = _load_settings(None, state_dir)
    store = StateStore(settings.state_dir)

    try:
        state = store.load(trial_id)
    except CourtsideError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if state is None:
        console.print(f"[red]Error: No saved state for trial '{trial_id}' in {settings.state_dir}[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold]Trial {trial_id}[/bold] (session {state.session_id})\n")
    _print_summary(state)
    if state.current_witness:
        phase = state.current_phase.value if state.current_phase else "unknown"
        console.print(f"Current witness: {state.current_witness} ({phase})")

    if state.witness_credibility:
        table = Table(title="Witness Credibility")
        table.add_column("Witness", style="cyan")
        table.add_column("Score", justify="right")
        table.add_column("Contradictions", justify="right")

        for witness, score in sorted(state.witness_credibility.items()):
            count = len(state.contradictions_against(witness, include_exploited=False))
            table.add_row(witness, str(score), str(count))

        console.print(table)

    if state.contradictions:
        table = Table(title="Contradictions")
        table.add_column("ID", style="cyan")
        table.add_column("Witness")
        table.add_column("Topic")
        table.add_column("Phases")
        table.add_column("Value")
        table.add_column("Exploited")

        for c in state.contradictions:
            table.add_row(
                c.id,
                c.witness,
                c.topic,
                c.phase_span,
                c.impeachment_value.value,
                "yes" if c.exploited else "",
            )

        console.print(table)

    _print_actions(state.pending_actions, title="Pending Actions")

    table = Table(title="Derived Scores")
    table.add_column("Score")
    table.add_column("Value", justify="right")
    table.add_column("Interpretation")

    scores = compute_scores(state)
    for score in scores.as_list():
        table.add_row(score.name, f"{score.value:.0f}", score.interpretation)

    console.print(table)

    _print_strategy(end_of_day_strategy(state, scores))


@app.command()
def exploit(
    contradiction_id: str = typer.Argument(..., help="Contradiction ID (e.g., CTR-0001)"),
    trial_id: str = typer.Option("trial", "--trial-id", "-t", help="Trial identifier"),
    state_dir: Optional[Path] = typer.Option(
        None,
        "--state-dir", "-s",
        help="State directory",
    ),
):
    """
    Mark a contradiction as used in examination.
    """
    from ..stream import StateStore

    settings = _load_settings(None, state_dir)
    store = StateStore(settings.state_dir)

    try:
        state = store.load(trial_id)
        if state is None:
            console.print(f"[red]Error: No saved state for trial '{trial_id}'[/red]")
            raise typer.Exit(1)

        contradiction = state.mark_contradiction_exploited(contradiction_id)
        if contradiction is None:
            console.print(f"[red]Error: Contradiction not found: {contradiction_id}[/red]")
            raise typer.Exit(1)

        store.save(state, trial_id)
    except CourtsideError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Marked {contradiction.id} exploited[/green] ({contradiction.witness}, {contradiction.topic})")


@app.command()
def resolve(
    action_id: str = typer.Argument(..., help="Action ID (e.g., ACT-0003)"),
    trial_id: str = typer.Option("trial", "--trial-id", "-t", help="Trial identifier"),
    state_dir: Optional[Path] = typer.Option(
        None,
        "--state-dir", "-s",
        help="State directory",
    ),
):
    """
    Remove a pending action once it has been handled.
    """
    from ..stream import StateStore

    settings = _load_settings(None, state_dir)
    store = StateStore(settings.state_dir)

    try:
        state = store.load(trial_id)
        if state is None:
            console.print(f"[red]Error: No saved state for trial '{trial_id}'[/red]")
            raise typer.Exit(1)

        action = state.resolve_action(action_id)
        if action is None:
            console.print(f"[red]Error: Pending action not found: {action_id}[/red]")
            raise typer.Exit(1)

        store.save(state, trial_id)
    except CourtsideError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Resolved {action.id}[/green] ({action.type.value}: {action.target})")


@app.command()
def reset(
    trial_id: str = typer.Option("trial", "--trial-id", "-t", help="Trial identifier"),
    state_dir: Optional[Path] = typer.Option(
        None,
        "--state-dir", "-s",
        help="State directory",
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """
    Delete the persisted state of a trial.
    """
    from ..stream import StateStore

    settings = _load_settings(None, state_dir)
    store = StateStore(settings.state_dir)

    if not store.exists(trial_id):
        console.print(f"[yellow]No saved state for trial '{trial_id}'[/yellow]")
        return

    if not yes and not typer.confirm(f"Delete saved state for trial '{trial_id}'?"):
        console.print("Cancelled")
        raise typer.Exit(1)

    store.delete(trial_id)
    console.print(f"[green]Deleted state for trial '{trial_id}'[/green]")


@app.command()
def version():
    """Show version information."""
    console.print(f"Courtside v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
