"""Error types raised by the habit engine.

Store-layer failures (sqlite3, LLM SDK errors) are not wrapped — they
propagate to the caller unchanged.
"""


class HabitError(Exception):
    """Base class for habit engine errors."""


class NotFound(HabitError):
    """The habit (or a referenced completion) does not exist."""

    def __init__(self, habit_id: int):
        super().__init__(f"Habit not found: {habit_id}")
        self.habit_id = habit_id


class Unauthorized(HabitError):
    """The caller does not own the habit."""

    def __init__(self, habit_id: int, user_id: int):
        super().__init__(f"User {user_id} does not own habit {habit_id}")
        self.habit_id = habit_id
        self.user_id = user_id


class MalformedInsightResponse(HabitError):
    """The insight generator returned content that could not be parsed.

    Always recovered locally; never surfaced to the user.
    """

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw
