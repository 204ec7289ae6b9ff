"""SQLite database layer — habit store and completion store.

Lightweight schema. Tables are created automatically on first run.
The (habit_id, date) unique index is the authoritative guard against
duplicate completions; callers still pre-check, but a lost race surfaces
here as an IntegrityError and is reported as "already completed".
"""

import json
import sqlite3
import logging
from datetime import datetime

from habitcore.clock import TZ
from habitcore.config import DB_PATH
from habitcore.errors import NotFound, Unauthorized
from habitcore.models import Habit, Completion, Progress, FREQUENCIES, DAILY

logger = logging.getLogger(__name__)

# Fields a user may edit directly. Progress is owned by the orchestrator.
_EDITABLE_FIELDS = (
    "name", "description", "cue", "routine", "reward", "target_frequency",
    "custom_frequency_count", "custom_frequency_period", "active",
)


def _connect() -> sqlite3.Connection:
    """Return a connection with row_factory set."""
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(DB_PATH))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    return conn


def init_db() -> None:
    """Create tables if they don't exist."""
    conn = _connect()
    conn.executescript("""
        -- Habits (defined by user, progress snapshot embedded as JSON)
        CREATE TABLE IF NOT EXISTS habits (
            id                      INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id                 INTEGER NOT NULL,
            name                    TEXT    NOT NULL,
            description             TEXT    NOT NULL DEFAULT '',
            cue                     TEXT    NOT NULL DEFAULT '',
            routine                 TEXT    NOT NULL DEFAULT '',
            reward                  TEXT    NOT NULL DEFAULT '',
            target_frequency        TEXT    NOT NULL DEFAULT 'daily',
            custom_frequency_count  INTEGER,
            custom_frequency_period TEXT,
            active                  INTEGER NOT NULL DEFAULT 1,
            progress                TEXT    NOT NULL DEFAULT '{}',
            ai_notes                TEXT    NOT NULL DEFAULT '',
            last_analyzed_at        TEXT,
            created_at              TEXT    NOT NULL,
            updated_at              TEXT    NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_habits_user
            ON habits(user_id, created_at);

        -- Completions (one per habit per calendar day)
        CREATE TABLE IF NOT EXISTS habit_completions (
            id           INTEGER PRIMARY KEY AUTOINCREMENT,
            habit_id     INTEGER NOT NULL REFERENCES habits(id),
            user_id      INTEGER NOT NULL,
            completed_at TEXT    NOT NULL,
            date         TEXT    NOT NULL,
            created_at   TEXT    NOT NULL
        );
        CREATE UNIQUE INDEX IF NOT EXISTS idx_completions_habit_date
            ON habit_completions(habit_id, date);
        CREATE INDEX IF NOT EXISTS idx_completions_user
            ON habit_completions(habit_id, user_id, completed_at);
    """)
    conn.close()
    logger.info("Database initialized at %s", DB_PATH)


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _row_to_habit(row: sqlite3.Row) -> Habit:
    return Habit(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        description=row["description"],
        cue=row["cue"],
        routine=row["routine"],
        reward=row["reward"],
        target_frequency=row["target_frequency"],
        custom_frequency_count=row["custom_frequency_count"],
        custom_frequency_period=row["custom_frequency_period"],
        active=bool(row["active"]),
        progress=Progress.from_dict(json.loads(row["progress"] or "{}")),
        ai_notes=row["ai_notes"],
        last_analyzed_at=_parse_ts(row["last_analyzed_at"]),
        created_at=_parse_ts(row["created_at"]),
        updated_at=_parse_ts(row["updated_at"]),
    )


def _row_to_completion(row: sqlite3.Row) -> Completion:
    return Completion(
        id=row["id"],
        habit_id=row["habit_id"],
        user_id=row["user_id"],
        completed_at=datetime.fromisoformat(row["completed_at"]),
        date=row["date"],
        created_at=_parse_ts(row["created_at"]),
    )


# ═══════════════════════════════════════════════════════════════════════════
# Habits
# ═══════════════════════════════════════════════════════════════════════════

def create_habit(user_id: int, name: str, description: str = "",
                 cue: str = "", routine: str = "", reward: str = "",
                 target_frequency: str = DAILY,
                 custom_frequency_count: int | None = None,
                 custom_frequency_period: str | None = None) -> int:
    """Create a new habit with an empty progress snapshot. Returns habit id."""
    if not name:
        raise ValueError("Habit name is required")
    if target_frequency not in FREQUENCIES:
        raise ValueError(f"Unknown target frequency: {target_frequency!r}")
    now = datetime.now(TZ).isoformat()
    conn = _connect()
    cur = conn.execute(
        """INSERT INTO habits (user_id, name, description, cue, routine, reward,
                               target_frequency, custom_frequency_count,
                               custom_frequency_period, progress, created_at, updated_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (user_id, name, description, cue, routine, reward, target_frequency,
         custom_frequency_count, custom_frequency_period,
         json.dumps(Progress().to_dict()), now, now),
    )
    conn.commit()
    hid = cur.lastrowid
    conn.close()
    logger.info("Habit #%d created for user %d", hid, user_id)
    return hid


def get_habit(habit_id: int, user_id: int) -> Habit:
    """Fetch a habit, enforcing ownership.

    Raises NotFound if it doesn't exist, Unauthorized if another user owns it.
    """
    conn = _connect()
    row = conn.execute("SELECT * FROM habits WHERE id = ?", (habit_id,)).fetchone()
    conn.close()
    if not row:
        raise NotFound(habit_id)
    if row["user_id"] != user_id:
        raise Unauthorized(habit_id, user_id)
    return _row_to_habit(row)


def list_habits(user_id: int, active_only: bool = False) -> list[Habit]:
    """All habits for a user, newest first."""
    conn = _connect()
    sql = "SELECT * FROM habits WHERE user_id = ?"
    if active_only:
        sql += " AND active = 1"
    sql += " ORDER BY created_at DESC, id DESC"
    rows = conn.execute(sql, (user_id,)).fetchall()
    conn.close()
    return [_row_to_habit(r) for r in rows]


def list_active_habit_refs() -> list[tuple[int, int]]:
    """(habit_id, user_id) for every active habit, across all users."""
    conn = _connect()
    rows = conn.execute(
        "SELECT id, user_id FROM habits WHERE active = 1 ORDER BY id"
    ).fetchall()
    conn.close()
    return [(r["id"], r["user_id"]) for r in rows]


def update_habit(habit_id: int, user_id: int, **fields) -> Habit:
    """Apply user edits to a habit. Only user-editable fields are accepted."""
    unknown = set(fields) - set(_EDITABLE_FIELDS)
    if unknown:
        raise ValueError(f"Fields not editable: {sorted(unknown)}")
    if "name" in fields and not fields["name"]:
        raise ValueError("Habit name is required")
    if "target_frequency" in fields and fields["target_frequency"] not in FREQUENCIES:
        raise ValueError(f"Unknown target frequency: {fields['target_frequency']!r}")

    habit = get_habit(habit_id, user_id)
    if not fields:
        return habit

    if "active" in fields:
        fields["active"] = int(bool(fields["active"]))
    assignments = ", ".join(f"{k} = ?" for k in fields)
    params = list(fields.values()) + [datetime.now(TZ).isoformat(), habit_id]

    conn = _connect()
    conn.execute(f"UPDATE habits SET {assignments}, updated_at = ? WHERE id = ?", params)
    conn.commit()
    conn.close()
    return get_habit(habit_id, user_id)


def delete_habit(habit_id: int, user_id: int) -> None:
    """Delete a habit and all its completions."""
    get_habit(habit_id, user_id)
    conn = _connect()
    with conn:
        conn.execute("DELETE FROM habit_completions WHERE habit_id = ?", (habit_id,))
        conn.execute("DELETE FROM habits WHERE id = ?", (habit_id,))
    conn.close()
    logger.info("Habit #%d and its completions deleted", habit_id)


def replace_progress(habit_id: int, progress: Progress) -> None:
    """Overwrite the habit's progress snapshot in a single statement."""
    conn = _connect()
    conn.execute(
        "UPDATE habits SET progress = ?, updated_at = ? WHERE id = ?",
        (json.dumps(progress.to_dict()), datetime.now(TZ).isoformat(), habit_id),
    )
    conn.commit()
    conn.close()


def set_ai_notes(habit_id: int, notes: str) -> None:
    """Store generated insight text on the habit as-is."""
    now = datetime.now(TZ).isoformat()
    conn = _connect()
    conn.execute(
        "UPDATE habits SET ai_notes = ?, last_analyzed_at = ?, updated_at = ? WHERE id = ?",
        (notes, now, now, habit_id),
    )
    conn.commit()
    conn.close()


# ═══════════════════════════════════════════════════════════════════════════
# Completions
# ═══════════════════════════════════════════════════════════════════════════

def list_completions(habit_id: int, user_id: int, limit: int | None = None) -> list[Completion]:
    """Completions of a habit owned by user_id, newest first."""
    conn = _connect()
    sql = ("SELECT * FROM habit_completions WHERE habit_id = ? AND user_id = ? "
           "ORDER BY completed_at DESC, id DESC")
    params: list = [habit_id, user_id]
    if limit:
        sql += " LIMIT ?"
        params.append(limit)
    rows = conn.execute(sql, params).fetchall()
    conn.close()
    return [_row_to_completion(r) for r in rows]


def find_completion(habit_id: int, date_str: str) -> Completion | None:
    conn = _connect()
    row = conn.execute(
        "SELECT * FROM habit_completions WHERE habit_id = ? AND date = ? LIMIT 1",
        (habit_id, date_str),
    ).fetchone()
    conn.close()
    return _row_to_completion(row) if row else None


def insert_completion(habit_id: int, user_id: int, date_str: str,
                      completed_at: datetime) -> int | None:
    """Insert a completion. Returns its id, or None if that day is already logged."""
    now = datetime.now(TZ).isoformat()
    conn = _connect()
    try:
        cur = conn.execute(
            """INSERT INTO habit_completions (habit_id, user_id, completed_at, date, created_at)
               VALUES (?, ?, ?, ?, ?)""",
            (habit_id, user_id, completed_at.isoformat(), date_str, now),
        )
        conn.commit()
        return cur.lastrowid
    except sqlite3.IntegrityError:
        logger.info("Completion for habit #%d on %s already exists", habit_id, date_str)
        return None
    finally:
        conn.close()


def delete_completions(habit_id: int, date_str: str) -> int:
    """Delete every completion of a habit on a date. Returns rows removed."""
    conn = _connect()
    cur = conn.execute(
        "DELETE FROM habit_completions WHERE habit_id = ? AND date = ?",
        (habit_id, date_str),
    )
    conn.commit()
    removed = cur.rowcount
    conn.close()
    return removed
