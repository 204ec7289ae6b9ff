"""Progress orchestrator — keeps each habit's snapshot in step with its log.

Every completion mutation goes through here and is followed, synchronously,
by a full recomputation:

    log/remove completion -> re-read all completions -> streaks + rate
                          -> replace the habit's progress snapshot

Pattern analysis (best day / best hour) is on demand only.

Usage:
    from habitcore import progress
    result = progress.log_completion(habit_id, user_id)
    if result.already_completed: ...
"""

import logging
from datetime import date, datetime

from habitcore import clock, db
from habitcore.completion_rate import completion_rate
from habitcore.models import Completion, HabitStats, LogResult, Progress
from habitcore.patterns import aggregate
from habitcore.streaks import current_streak, longest_streak

log = logging.getLogger(__name__)


def compute_progress(completions: list[Completion], today: date) -> Progress:
    """Derive a snapshot from a habit's completions. Pure."""
    if not completions:
        return Progress()

    moments = [c.completed_at for c in completions]
    return Progress(
        current_streak=current_streak(moments, today),
        longest_streak=longest_streak(moments),
        total_completions=len(completions),
        completion_rate=completion_rate(moments, today),
        last_completed_at=max(moments, key=clock.to_local),
    )


def recompute_progress(habit_id: int, user_id: int, now: datetime | None = None) -> Progress:
    """Re-read every completion, recompute, and overwrite the stored snapshot.

    Raises NotFound / Unauthorized before anything is read. If computation
    fails the previous snapshot is left untouched.
    """
    db.get_habit(habit_id, user_id)
    today = clock.local_date(now or clock.now())

    completions = db.list_completions(habit_id, user_id)
    snapshot = compute_progress(completions, today)
    db.replace_progress(habit_id, snapshot)

    log.info("Habit #%d progress: streak=%d longest=%d total=%d rate=%d%%",
             habit_id, snapshot.current_streak, snapshot.longest_streak,
             snapshot.total_completions, snapshot.completion_rate)
    return snapshot


def log_completion(habit_id: int, user_id: int, completed_at: datetime | None = None,
                   now: datetime | None = None) -> LogResult:
    """Record that the habit was done at `completed_at` (default: now).

    A second log for the same calendar day is a no-op reported as
    already_completed, whether caught by the pre-check or by the store's
    unique index. Completions dated after today are rejected.
    """
    now = now or clock.now()
    completed_at = clock.to_local(completed_at or now)
    if clock.local_date(completed_at) > clock.local_date(now):
        raise ValueError("Cannot log a completion in the future")

    habit = db.get_habit(habit_id, user_id)
    date_str = clock.date_key(completed_at)

    if db.find_completion(habit_id, date_str) is not None:
        return _already_completed(habit_id, date_str, habit.progress)

    if db.insert_completion(habit_id, user_id, date_str, completed_at) is None:
        return _already_completed(habit_id, date_str, habit.progress)

    snapshot = recompute_progress(habit_id, user_id, now=now)
    log.info("Habit #%d completion logged for %s", habit_id, date_str)
    return LogResult(success=True, message="Habit completed!", progress=snapshot)


def _already_completed(habit_id: int, date_str: str, current: Progress) -> LogResult:
    log.info("Habit #%d already completed for %s", habit_id, date_str)
    return LogResult(
        success=False,
        message="Habit already completed for this date",
        already_completed=True,
        progress=current,
    )


def remove_completion(habit_id: int, user_id: int, date_str: str,
                      now: datetime | None = None) -> LogResult:
    """Delete every completion of the habit on `date_str` (YYYY-MM-DD)."""
    date.fromisoformat(date_str)  # ValueError on a malformed key
    db.get_habit(habit_id, user_id)

    removed = db.delete_completions(habit_id, date_str)
    snapshot = recompute_progress(habit_id, user_id, now=now)

    if removed > 1:
        log.warning("Habit #%d had %d completions for %s", habit_id, removed, date_str)
    if not removed:
        return LogResult(success=False, message="No completion for this date", progress=snapshot)
    log.info("Habit #%d completion removed for %s", habit_id, date_str)
    return LogResult(success=True, message="Completion removed", progress=snapshot)


def get_habit_stats(habit_id: int, user_id: int) -> HabitStats:
    """On-demand pattern analysis: weekday / hour histograms and their peaks."""
    habit = db.get_habit(habit_id, user_id)
    completions = db.list_completions(habit_id, user_id)
    patterns = aggregate(c.completed_at for c in completions)
    return HabitStats(habit=habit, completions=completions, **patterns)


def get_habits_overview(user_id: int, now: datetime | None = None) -> list[dict]:
    """Active habits with their stored streak and whether they're done today.

    Each item: {id, name, streak_days, completion_rate, last_completed, logged_today}
    """
    today = clock.local_date(now or clock.now())
    result = []
    for habit in db.list_habits(user_id, active_only=True):
        last = habit.progress.last_completed_at
        result.append({
            "id": habit.id,
            "name": habit.name,
            "streak_days": habit.progress.current_streak,
            "completion_rate": habit.progress.completion_rate,
            "last_completed": clock.date_key(last) if last else None,
            "logged_today": db.find_completion(habit.id, today.isoformat()) is not None,
        })
    return result


def recompute_all(now: datetime | None = None) -> int:
    """Recompute the snapshot of every active habit. Returns how many succeeded.

    A failure on one habit is logged and the sweep moves on.
    """
    now = now or clock.now()
    done = 0
    for habit_id, user_id in db.list_active_habit_refs():
        try:
            recompute_progress(habit_id, user_id, now=now)
            done += 1
        except Exception as e:
            log.error("Recompute failed for habit #%d: %s", habit_id, e, exc_info=True)
    log.info("Recompute sweep: %d habits refreshed", done)
    return done
