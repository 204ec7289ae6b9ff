"""Tests for the database layer."""

from datetime import datetime

import pytest

from habitcore.clock import TZ
from habitcore.db import (
    init_db,
    create_habit,
    get_habit,
    list_habits,
    list_active_habit_refs,
    update_habit,
    delete_habit,
    replace_progress,
    set_ai_notes,
    list_completions,
    find_completion,
    insert_completion,
    delete_completions,
)
from habitcore.errors import NotFound, Unauthorized
from habitcore.models import Progress, WEEKLY


@pytest.fixture(autouse=True)
def fresh_db(tmp_path, monkeypatch):
    """Ensure a fresh database for each test."""
    db_path = tmp_path / "test.db"
    import habitcore.db as db_module
    monkeypatch.setattr(db_module, "DB_PATH", db_path)
    init_db()
    yield db_path


def at(day: int, hour: int = 9) -> datetime:
    return datetime(2026, 3, day, hour, tzinfo=TZ)


class TestHabits:
    def test_create_and_get(self):
        hid = create_habit(1, "Meditate", cue="After coffee", routine="10 min sit")
        habit = get_habit(hid, 1)
        assert habit.name == "Meditate"
        assert habit.cue == "After coffee"
        assert habit.active is True
        assert habit.progress == Progress()

    def test_missing_habit(self):
        with pytest.raises(NotFound):
            get_habit(999, 1)

    def test_other_users_habit(self):
        hid = create_habit(1, "Run")
        with pytest.raises(Unauthorized):
            get_habit(hid, 2)

    def test_rejects_unknown_frequency(self):
        with pytest.raises(ValueError):
            create_habit(1, "Run", target_frequency="hourly")

    def test_rejects_empty_name(self):
        with pytest.raises(ValueError):
            create_habit(1, "")

    def test_list_newest_first(self):
        a = create_habit(1, "A")
        b = create_habit(1, "B")
        create_habit(2, "Other user")
        assert [h.id for h in list_habits(1)] == [b, a]

    def test_list_active_only(self):
        a = create_habit(1, "A")
        b = create_habit(1, "B")
        update_habit(b, 1, active=False)
        assert [h.id for h in list_habits(1, active_only=True)] == [a]
        assert list_active_habit_refs() == [(a, 1)]

    def test_update(self):
        hid = create_habit(1, "Read")
        habit = update_habit(hid, 1, name="Read 20 pages", target_frequency=WEEKLY)
        assert habit.name == "Read 20 pages"
        assert habit.target_frequency == WEEKLY

    def test_update_cannot_touch_progress(self):
        hid = create_habit(1, "Read")
        with pytest.raises(ValueError):
            update_habit(hid, 1, progress="{}")

    def test_update_rejects_blank_name(self):
        hid = create_habit(1, "Read")
        with pytest.raises(ValueError):
            update_habit(hid, 1, name="")
        with pytest.raises(ValueError):
            update_habit(hid, 1, name=None)
        assert get_habit(hid, 1).name == "Read"

    def test_timestamps_use_local_zone(self):
        hid = create_habit(1, "Read")
        assert get_habit(hid, 1).created_at.utcoffset() == TZ.utcoffset(None)

    def test_update_checks_owner(self):
        hid = create_habit(1, "Read")
        with pytest.raises(Unauthorized):
            update_habit(hid, 2, name="mine now")

    def test_delete_cascades(self):
        hid = create_habit(1, "Stretch")
        insert_completion(hid, 1, "2026-03-02", at(2))
        delete_habit(hid, 1)
        with pytest.raises(NotFound):
            get_habit(hid, 1)
        assert find_completion(hid, "2026-03-02") is None

    def test_replace_progress(self):
        hid = create_habit(1, "Walk")
        snap = Progress(current_streak=2, longest_streak=5, total_completions=9,
                        completion_rate=30, last_completed_at=at(4))
        replace_progress(hid, snap)
        assert get_habit(hid, 1).progress == snap

    def test_ai_notes(self):
        hid = create_habit(1, "Walk")
        set_ai_notes(hid, "You walk most on Mondays.")
        habit = get_habit(hid, 1)
        assert habit.ai_notes == "You walk most on Mondays."
        assert habit.last_analyzed_at is not None


class TestCompletions:
    def test_insert_and_find(self):
        hid = create_habit(1, "Floss")
        cid = insert_completion(hid, 1, "2026-03-02", at(2))
        assert cid > 0
        found = find_completion(hid, "2026-03-02")
        assert found.id == cid
        assert found.completed_at == at(2)

    def test_unique_per_day(self):
        hid = create_habit(1, "Floss")
        assert insert_completion(hid, 1, "2026-03-02", at(2, 8)) is not None
        assert insert_completion(hid, 1, "2026-03-02", at(2, 21)) is None
        assert len(list_completions(hid, 1)) == 1

    def test_list_newest_first(self):
        hid = create_habit(1, "Floss")
        for day in (3, 1, 2):
            insert_completion(hid, 1, f"2026-03-0{day}", at(day))
        assert [c.date for c in list_completions(hid, 1)] == [
            "2026-03-03", "2026-03-02", "2026-03-01",
        ]

    def test_list_limit(self):
        hid = create_habit(1, "Floss")
        for day in (1, 2, 3):
            insert_completion(hid, 1, f"2026-03-0{day}", at(day))
        assert len(list_completions(hid, 1, limit=2)) == 2

    def test_list_scoped_to_owner(self):
        hid = create_habit(1, "Floss")
        insert_completion(hid, 1, "2026-03-02", at(2))
        assert list_completions(hid, 2) == []

    def test_delete(self):
        hid = create_habit(1, "Floss")
        insert_completion(hid, 1, "2026-03-02", at(2))
        assert delete_completions(hid, "2026-03-02") == 1
        assert delete_completions(hid, "2026-03-02") == 0
        assert find_completion(hid, "2026-03-02") is None
