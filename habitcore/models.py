"""Data model — habits, completions and the derived progress snapshot."""

from dataclasses import dataclass, field, asdict
from datetime import datetime

# Target frequencies
DAILY = "daily"
WEEKLY = "weekly"
CUSTOM = "custom"
FREQUENCIES = (DAILY, WEEKLY, CUSTOM)


@dataclass
class Progress:
    """Derived summary of a habit's completions.

    Replaced wholesale after every completion mutation; never hand-edited.
    """
    current_streak: int = 0
    longest_streak: int = 0
    total_completions: int = 0
    completion_rate: int = 0           # 0–100, trailing window
    last_completed_at: datetime | None = None

    def to_dict(self) -> dict:
        d = asdict(self)
        d["last_completed_at"] = (
            self.last_completed_at.isoformat() if self.last_completed_at else None
        )
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "Progress":
        last = data.get("last_completed_at")
        return cls(
            current_streak=int(data.get("current_streak", 0)),
            longest_streak=int(data.get("longest_streak", 0)),
            total_completions=int(data.get("total_completions", 0)),
            completion_rate=int(data.get("completion_rate", 0)),
            last_completed_at=datetime.fromisoformat(last) if last else None,
        )


@dataclass
class Habit:
    """A habit owned by exactly one user."""
    id: int
    user_id: int
    name: str
    description: str = ""
    cue: str = ""                      # trigger, e.g. "after morning coffee"
    routine: str = ""                  # the action itself
    reward: str = ""                   # what the user gets out of it
    target_frequency: str = DAILY
    custom_frequency_count: int | None = None    # e.g. 3 for "3 times per week"
    custom_frequency_period: str | None = None   # e.g. "week"
    active: bool = True
    progress: Progress = field(default_factory=Progress)
    ai_notes: str = ""
    last_analyzed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class Completion:
    """Habit `habit_id` was performed on calendar day `date` (YYYY-MM-DD).

    `date` is the uniqueness key: at most one completion per (habit_id, date).
    """
    id: int
    habit_id: int
    user_id: int
    completed_at: datetime
    date: str
    created_at: datetime | None = None


@dataclass
class LogResult:
    """Outcome of logging a completion.

    Logging twice on the same day is an expected user action, so it is
    reported here rather than raised.
    """
    success: bool
    message: str = ""
    already_completed: bool = False
    progress: Progress | None = None


@dataclass
class HabitStats:
    """On-demand pattern analysis for one habit."""
    habit: Habit
    completions: list[Completion] = field(default_factory=list)
    day_of_week_stats: dict[str, int] = field(default_factory=dict)
    hour_of_day_stats: dict[int, int] = field(default_factory=dict)
    best_day: str | None = None        # None = not available
    best_hour: int | None = None

    @property
    def total_days(self) -> int:
        return len(self.completions)


@dataclass
class HabitSuggestion:
    """A new habit proposed by the insight generator."""
    name: str
    description: str
    cue: str = ""
    routine: str = ""
    reward: str = ""
    frequency: str = DAILY
