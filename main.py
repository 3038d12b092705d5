"""Entry point for the prophecy stage.

Replays a chat transcript through the stage, one turn per line:

    user: I found a rusted iron key near the wall
    char: Rhysand turns the key over in his hand...

Usage:
    python main.py transcript.txt              # Replay and persist state
    python main.py transcript.txt --dry-run    # Replay without saving
    python main.py transcript.txt --reset      # Ignore the saved state
    python main.py transcript.txt --history    # Also print recorded transitions/turns
    python main.py transcript.txt --verbose    # Debug logging

Settings come from ./config/settings.yaml unless --config-dir is given;
relative storage paths are resolved against that directory's parent.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click

from stage.config import ConfigNotFoundError, load_config, storage_path
from stage.core import PhaseStage
from stage.memory import HistoryDB, StateManager

_PROTAGONIST_ROLES = {"user", "protagonist"}
_NARRATOR_ROLES = {"char", "bot", "narrator"}


def _setup_logging(verbose: bool = False, log_file: str | None = None) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    fmt = "%(asctime)s — %(name)s — %(levelname)s — %(message)s"

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=level, format=fmt, handlers=handlers, force=True)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def read_transcript(text: str) -> list[tuple[bool, str]]:
    """Parse ``role: content`` lines into (is_protagonist, content) turns."""
    turns: list[tuple[bool, str]] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        role, sep, content = stripped.partition(":")
        role = role.strip().lower()
        if sep and role in _PROTAGONIST_ROLES:
            turns.append((True, content.strip()))
        elif sep and role in _NARRATOR_ROLES:
            turns.append((False, content.strip()))
        else:
            raise click.UsageError(f"Line {lineno}: expected 'user:' or 'char:' prefix, got {stripped[:40]!r}")
    return turns


async def _replay(
    stage: PhaseStage,
    turns: list[tuple[bool, str]],
    db: HistoryDB | None,
) -> None:
    for is_protagonist, content in turns:
        before = stage.state.current_phase
        if is_protagonist:
            response = stage.before_prompt(content)
        else:
            response = stage.after_response(content)
        after = stage.state

        if db is not None:
            await db.log_turn(
                role="protagonist" if is_protagonist else "narrator",
                phase=after.current_phase,
                turns_in_phase=after.turns_in_phase,
                status=response.status,
                content=content,
            )
            if after.current_phase != before:
                journal = after.journal_entries[-1].content if after.journal_entries else ""
                await db.log_transition(before, after.current_phase, journal)

        if after.current_phase != before:
            click.echo(f"  >> Phase {before} -> {after.current_phase}")
        if response.stage_directions:
            click.echo(f"\n{response.stage_directions}\n")


def _echo_summary(stage: PhaseStage) -> None:
    state = stage.state
    phase = stage.catalog.definition_at(state.current_phase)

    click.echo("Journal:")
    if not state.journal_entries:
        click.echo("  Your story begins...")
    for entry in state.journal_entries:
        click.echo(f"  {entry.content}")

    click.echo(
        f"\nNow in {phase.name} (phase {state.current_phase} of {len(stage.catalog)}, "
        f"{state.turns_in_phase} turns in; furthest {stage.session.furthest_phase})"
    )
    click.echo("Objectives:")
    for objective in phase.objectives:
        click.echo(f"  - {objective}")
    if phase.keywords:
        click.echo(f"Transition keywords: {', '.join(phase.keywords)}")

    recent = state.recent_discoveries()
    if recent:
        click.echo("Recent discoveries:")
        for discovery in recent:
            click.echo(f"  [{discovery.type.upper()}] {discovery.content} (P{discovery.phase})")


async def _echo_history(db: HistoryDB, limit: int = 20) -> None:
    click.echo("\nPhase transitions:")
    transitions = await db.get_transitions()
    if not transitions:
        click.echo("  (none)")
    for row in transitions:
        click.echo(f"  {row['from_phase']} -> {row['to_phase']}: {row['journal']}")

    click.echo(f"Recent turns (last {limit}):")
    for row in reversed(await db.get_recent_turns(limit=limit)):
        click.echo(f"  [{row['role']}] phase {row['phase']} #{row['turns_in_phase']} {row['status']}: {row['excerpt'][:60]}")


@click.command()
@click.argument("transcript", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--dry-run", is_flag=True, help="Do not persist state or history")
@click.option("--reset", is_flag=True, help="Ignore the saved state and start at phase 1")
@click.option("--history", is_flag=True, help="Print recorded phase transitions and recent turns")
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.option("--config-dir", type=click.Path(), default=None, help="Config directory (default: ./config)")
def main(
    transcript: Path,
    dry_run: bool,
    reset: bool,
    history: bool,
    verbose: bool,
    config_dir: str | None,
) -> None:
    """Replay a transcript through the phase engine."""

    try:
        cfg = load_config(config_dir)
    except ConfigNotFoundError as e:
        raise click.UsageError(f"{e}. Pass --config-dir or run from a directory with config/.") from e

    storage = cfg.get("storage", {}) or {}
    _setup_logging(verbose=verbose, log_file=storage.get("log_file") or None)

    turns = read_transcript(transcript.read_text(encoding="utf-8"))

    state_mgr = StateManager(storage_path(cfg, "state_file", "data/state.json"))
    progression, session = (None, None) if reset else state_mgr.load()
    stage = PhaseStage.from_config(
        cfg,
        message_state=progression.to_dict() if progression else None,
        chat_state=session.to_dict() if session else None,
    )

    if dry_run:
        click.echo("DRY RUN — state and history will not be saved.\n")
        asyncio.run(_replay(stage, turns, None))
    else:

        async def _run() -> None:
            async with HistoryDB(storage_path(cfg, "history_db", "data/history.db")) as db:
                await _replay(stage, turns, db)

        asyncio.run(_run())
        state_mgr.save(stage.state, stage.session)

    _echo_summary(stage)

    if history:
        if dry_run:
            click.echo("\nHistory is not recorded in dry-run mode.")
        else:

            async def _show() -> None:
                async with HistoryDB(storage_path(cfg, "history_db", "data/history.db")) as db:
                    await _echo_history(db)

            asyncio.run(_show())


if __name__ == "__main__":
    main()
