"""Insight generator integration — turns pre-computed stats into coaching text.

The engine computes every number; the LLM only writes prose around them.
Replies are stored as opaque strings, except for habit suggestions, which
must be a JSON array and degrade to [] when they aren't.
"""

import json
import logging
import re
from datetime import datetime, timedelta

from habitcore import clock, db, progress
from habitcore.config import (
    ANALYSIS_MAX_TOKENS, WEEKLY_MAX_TOKENS, SUGGESTION_MAX_TOKENS,
    ENCOURAGEMENT_MAX_TOKENS, INSIGHT_TEMPERATURE, SUGGESTION_TEMPERATURE,
    ENCOURAGEMENT_TEMPERATURE,
)
from habitcore.errors import MalformedInsightResponse
from habitcore.llm import LLMProvider, get_client
from habitcore.models import FREQUENCIES, DAILY, Habit, HabitStats, HabitSuggestion
from habitcore.prompt_loader import get_system_prompt, render_prompt

log = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"
FALLBACK_ENCOURAGEMENT = "Keep up the great work! Every day counts. 🌟"


def build_stats_payload(stats: HabitStats) -> dict:
    """The structured statistics handed to the insight generator."""
    habit = stats.habit
    p = habit.progress
    return {
        "habit_name": habit.name,
        "cue": habit.cue,
        "routine": habit.routine,
        "target_frequency": habit.target_frequency,
        "current_streak": p.current_streak,
        "longest_streak": p.longest_streak,
        "completion_rate": p.completion_rate,
        "total_completions": p.total_completions,
        "last_completed_at": p.last_completed_at.isoformat() if p.last_completed_at else None,
        "best_day": stats.best_day,
        "best_hour": stats.best_hour,
    }


def _messages(system_section: str, prompt: str) -> list[dict]:
    messages = []
    system = get_system_prompt(system_section)
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})
    return messages


def _fmt_hour(hour: int | None) -> str:
    return f"{hour}:00" if hour is not None else NOT_AVAILABLE


# ═══════════════════════════════════════════════════════════════════════════
# Single-habit analysis
# ═══════════════════════════════════════════════════════════════════════════

def analyze_habit(habit_id: int, user_id: int, client: LLMProvider | None = None,
                  now: datetime | None = None) -> dict:
    """Generate coaching notes for one habit and store them in ai_notes."""
    stats = progress.get_habit_stats(habit_id, user_id)
    payload = build_stats_payload(stats)
    habit = stats.habit

    last = habit.progress.last_completed_at
    week_ago = clock.to_local(now or clock.now()) - timedelta(days=7)
    recent = sum(1 for c in stats.completions if clock.to_local(c.completed_at) >= week_ago)

    prompt = render_prompt(
        "habit_analysis",
        habit_name=habit.name,
        description=habit.description or NOT_AVAILABLE,
        cue=habit.cue or "Not specified",
        routine=habit.routine or "Not specified",
        target_frequency=habit.target_frequency,
        current_streak=payload["current_streak"],
        longest_streak=payload["longest_streak"],
        total_completions=payload["total_completions"],
        completion_rate=payload["completion_rate"],
        last_completed_at=clock.date_key(last) if last else "Never",
        best_day=stats.best_day or NOT_AVAILABLE,
        best_day_count=stats.day_of_week_stats.get(stats.best_day, 0),
        best_hour=_fmt_hour(stats.best_hour),
        recent_count=recent,
    )

    response = (client or get_client()).chat(
        _messages("Coach", prompt),
        temperature=INSIGHT_TEMPERATURE,
        max_tokens=ANALYSIS_MAX_TOKENS,
    )
    db.set_ai_notes(habit_id, response.content)
    log.info("Habit #%d analyzed (%d tokens)", habit_id, response.total_tokens)

    return {
        "habit_id": habit_id,
        "habit_name": habit.name,
        "insights": response.content,
        "stats": payload,
    }


# ═══════════════════════════════════════════════════════════════════════════
# Weekly summary
# ═══════════════════════════════════════════════════════════════════════════

def average_completion_rate(habits: list[Habit]) -> int:
    if not habits:
        return 0
    return int(sum(h.progress.completion_rate for h in habits) / len(habits) + 0.5)


def analyze_weekly_habits(user_id: int, client: LLMProvider | None = None,
                          now: datetime | None = None) -> dict:
    """Summarize all of a user's habits for the week."""
    habits = db.list_habits(user_id)
    if not habits:
        return {
            "summary": "No habits tracked yet. Start building positive habits today!",
            "total_habits": 0,
            "active_habits": 0,
            "avg_completion_rate": 0,
            "generated_at": now or clock.now(),
        }

    lines = []
    for i, habit in enumerate(habits, 1):
        stats = progress.get_habit_stats(habit.id, user_id)
        lines.append(
            f"{i}. **{habit.name}**\n"
            f"   - Target: {habit.target_frequency}\n"
            f"   - Current Streak: {habit.progress.current_streak} days\n"
            f"   - Completion Rate: {habit.progress.completion_rate}%\n"
            f"   - Best Day: {stats.best_day or NOT_AVAILABLE}"
        )

    prompt = render_prompt(
        "weekly_summary",
        habit_summaries="\n".join(lines),
        total_habits=len(habits),
    )
    response = (client or get_client()).chat(
        _messages("Coach", prompt),
        temperature=INSIGHT_TEMPERATURE,
        max_tokens=WEEKLY_MAX_TOKENS,
    )
    log.info("Weekly analysis for user %d: %d habits", user_id, len(habits))

    return {
        "summary": response.content,
        "total_habits": len(habits),
        "active_habits": sum(1 for h in habits if h.active),
        "avg_completion_rate": average_completion_rate(habits),
        "generated_at": now or clock.now(),
    }


# ═══════════════════════════════════════════════════════════════════════════
# Suggestions
# ═══════════════════════════════════════════════════════════════════════════

def parse_habit_suggestions(text: str) -> list[HabitSuggestion]:
    """Parse a JSON array of suggestions out of a model reply.

    Tolerates markdown code fences and prose around the array. Entries
    without a name and description are dropped.
    Raises MalformedInsightResponse when no JSON array can be read.
    """
    cleaned = re.sub(r"```(?:json)?\s*", "", (text or "").strip())
    match = re.search(r"\[.*\]", cleaned, re.DOTALL)
    if match:
        cleaned = match.group(0)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise MalformedInsightResponse(f"Suggestions are not valid JSON: {e}", raw=text) from e
    if not isinstance(data, list):
        raise MalformedInsightResponse("Suggestions are not a JSON array", raw=text)

    suggestions = []
    for item in data:
        if not isinstance(item, dict) or not item.get("name") or not item.get("description"):
            continue
        frequency = item.get("frequency", DAILY)
        suggestions.append(HabitSuggestion(
            name=str(item["name"]),
            description=str(item["description"]),
            cue=str(item.get("cue", "")),
            routine=str(item.get("routine", "")),
            reward=str(item.get("reward", "")),
            frequency=frequency if frequency in FREQUENCIES else DAILY,
        ))
    return suggestions


def suggest_habits(user_id: int, client: LLMProvider | None = None) -> list[HabitSuggestion]:
    """Ask for 3-5 new habits that complement the user's existing ones."""
    existing = ", ".join(h.name for h in db.list_habits(user_id)) or "None"
    prompt = render_prompt("habit_suggestions", existing_habits=existing)

    response = (client or get_client()).chat(
        _messages("Suggest", prompt),
        temperature=SUGGESTION_TEMPERATURE,
        max_tokens=SUGGESTION_MAX_TOKENS,
    )
    try:
        suggestions = parse_habit_suggestions(response.content)
    except MalformedInsightResponse as e:
        log.warning("Could not parse habit suggestions: %s", e)
        log.debug("Raw suggestion reply: %s", e.raw)
        return []
    log.info("Got %d habit suggestions for user %d", len(suggestions), user_id)
    return suggestions


# ═══════════════════════════════════════════════════════════════════════════
# Encouragement
# ═══════════════════════════════════════════════════════════════════════════

def generate_encouragement(habit_id: int, user_id: int,
                           client: LLMProvider | None = None) -> str:
    """A 1-2 sentence nudge. Falls back to a fixed message if generation fails."""
    habit = db.get_habit(habit_id, user_id)
    prompt = render_prompt(
        "encouragement",
        habit_name=habit.name,
        current_streak=habit.progress.current_streak,
        completion_rate=habit.progress.completion_rate,
    )
    try:
        response = (client or get_client()).chat(
            [{"role": "user", "content": prompt}],
            temperature=ENCOURAGEMENT_TEMPERATURE,
            max_tokens=ENCOURAGEMENT_MAX_TOKENS,
        )
    except Exception as e:
        log.warning("Encouragement generation failed for habit #%d: %s", habit_id, e)
        return FALLBACK_ENCOURAGEMENT
    return response.content.strip() or FALLBACK_ENCOURAGEMENT
