"""Tests for prompt_loader — section extraction and template rendering."""

from habitcore.prompt_loader import (
    _extract_section, get_prompt, get_system_prompt, list_prompts, render_prompt,
)


class TestExtractSection:
    def test_extract_first(self):
        text = "## Coach\nYou are warm.\n\n## Suggest\nYou answer in JSON."
        assert _extract_section(text, "Coach") == "You are warm."

    def test_extract_last(self):
        text = "## Coach\nYou are warm.\n\n## Suggest\nYou answer in JSON.\nBe brief."
        result = _extract_section(text, "Suggest")
        assert "JSON" in result
        assert "Be brief." in result

    def test_missing_section(self):
        assert _extract_section("## Coach\nHello", "Suggest") == ""

    def test_empty_text(self):
        assert _extract_section("", "Coach") == ""


class TestSystemPrompts:
    def test_coach(self):
        assert "habit" in get_system_prompt("Coach").lower()

    def test_suggest(self):
        assert "JSON" in get_system_prompt("Suggest")

    def test_nonexistent_section(self):
        assert get_system_prompt("Nonexistent") == ""


class TestTemplates:
    def test_all_flows_present(self):
        names = list_prompts()
        for name in ("personality", "habit_analysis", "weekly_summary",
                     "habit_suggestions", "encouragement"):
            assert name in names

    def test_missing_prompt(self):
        assert get_prompt("does_not_exist") == ""

    def test_render_fills_fields(self):
        text = render_prompt("encouragement", habit_name="Run",
                             current_streak=4, completion_rate=60)
        assert "Run" in text
        assert "4 days" in text
        assert "60%" in text

    def test_render_keeps_json_braces(self):
        text = render_prompt("habit_suggestions", existing_habits="Run")
        assert '"name": "Habit name"' in text
        assert "Run" in text

    def test_render_leaves_unknown_fields(self):
        text = render_prompt("encouragement", habit_name="Run")
        assert "$current_streak" in text
