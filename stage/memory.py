"""State persistence and turn history for the stage host.

State = message/chat state (JSON file, loaded each run)
History = append-only log of turns and phase transitions (SQLite database)
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite

from narrative import ProgressionState, SessionState

logger = logging.getLogger(__name__)

# ── Stage State (JSON) ──────────────────────────────────────────


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class StateManager:
    """Load / save the host-opaque message and chat state to a JSON file."""

    def __init__(self, state_path: str | Path):
        self._path = Path(state_path)

    def load(self) -> tuple[ProgressionState, SessionState]:
        if not self._path.exists():
            logger.info("No state file at %s, starting fresh", self._path)
            return ProgressionState(), SessionState()

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Unreadable state file %s (%s), starting fresh", self._path, e)
            return ProgressionState(), SessionState()

        if not isinstance(raw, dict):
            raw = {}
        progression = ProgressionState.from_dict(raw.get("message_state"))
        session = SessionState.from_dict(raw.get("chat_state"))
        logger.debug(
            "Loaded state: phase=%d turns=%d furthest=%d",
            progression.current_phase,
            progression.turns_in_phase,
            session.furthest_phase,
        )
        return progression, session

    def save(self, progression: ProgressionState, session: SessionState) -> None:
        payload = {
            "message_state": progression.to_dict(),
            "chat_state": session.to_dict(),
            "saved_at": _now_iso(),
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        logger.debug("Saved state to %s", self._path)


# ── History Database (SQLite) ───────────────────────────────────

_SCHEMA = """
CREATE TABLE IF NOT EXISTS turns (
    id TEXT PRIMARY KEY,
    role TEXT,                -- "protagonist" | "narrator"
    phase INTEGER,
    turns_in_phase INTEGER,
    status TEXT,              -- "advanced" | "updated" | "unchanged"
    excerpt TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS phase_transitions (
    id TEXT PRIMARY KEY,
    from_phase INTEGER,
    to_phase INTEGER,
    journal TEXT,
    created_at TEXT
);
"""


class HistoryDB:
    """Append-only history of processed turns."""

    def __init__(self, db_path: str | Path):
        self._path = Path(db_path)
        self._db: aiosqlite.Connection | None = None

    async def open(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(str(self._path))
        await self._db.executescript(_SCHEMA)
        await self._db.commit()
        logger.debug("History DB ready at %s", self._path)

    async def close(self) -> None:
        if self._db:
            await self._db.close()

    async def __aenter__(self) -> HistoryDB:
        await self.open()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def log_turn(
        self,
        role: str,
        phase: int,
        turns_in_phase: int,
        status: str,
        content: str = "",
    ) -> str:
        row_id = str(uuid.uuid4())
        await self._db.execute(
            "INSERT INTO turns (id, role, phase, turns_in_phase, status, excerpt, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (row_id, role, phase, turns_in_phase, status, content[:200], _now_iso()),
        )
        await self._db.commit()
        return row_id

    async def log_transition(self, from_phase: int, to_phase: int, journal: str = "") -> str:
        row_id = str(uuid.uuid4())
        await self._db.execute(
            "INSERT INTO phase_transitions (id, from_phase, to_phase, journal, created_at) "
            "VALUES (?, ?, ?, ?, ?)",
            (row_id, from_phase, to_phase, journal, _now_iso()),
        )
        await self._db.commit()
        return row_id

    # ── Queries ─────────────────────────────────────────────────

    async def get_recent_turns(self, limit: int = 20, role: str = "") -> list[dict]:
        query = "SELECT * FROM turns"
        params: list[Any] = []
        if role:
            query += " WHERE role = ?"
            params.append(role)
        query += " ORDER BY rowid DESC LIMIT ?"
        params.append(limit)

        cursor = await self._db.execute(query, tuple(params))
        cols = [d[0] for d in cursor.description]
        rows = await cursor.fetchall()
        return [dict(zip(cols, row)) for row in rows]

    async def get_transitions(self) -> list[dict]:
        cursor = await self._db.execute("SELECT * FROM phase_transitions ORDER BY from_phase ASC")
        cols = [d[0] for d in cursor.description]
        rows = await cursor.fetchall()
        return [dict(zip(cols, row)) for row in rows]
