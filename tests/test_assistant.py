"""
Tests for the assistant: prompts, options, fallbacks and suggestion parsing.
"""

import pytest

from conftest import FakeGenerator
from opsdesk.assistant import (
    ANALYSIS_FAILED, NO_INSIGHTS, SUGGESTION_SCHEMA, DeskAssistant, parse_suggestions,
)
from opsdesk.generator import GenerationError


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# parse_suggestions
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_parse_plain_array():
    raw = '[{"title": "Audit SKUs", "description": "All 40", "priority": "High"}]'
    assert parse_suggestions(raw) == [{"title": "Audit SKUs", "description": "All 40", "priority": "High"}]


def test_parse_strips_code_fence():
    raw = '```json\n[{"title": "Call suppliers", "description": "", "priority": "low"}]\n```'
    assert parse_suggestions(raw)[0]["priority"] == "Low"


def test_parse_extracts_array_from_prose():
    raw = 'Here you go:\n[{"title": "A", "description": "b", "priority": "Medium"}]\nGood luck!'
    assert [s["title"] for s in parse_suggestions(raw)] == ["A"]


def test_parse_drops_untitled_and_normalizes_priority():
    raw = '[{"title": "", "priority": "High"}, {"description": "no title"}, {"title": "Keep", "priority": "urgent"}, "junk"]'
    assert parse_suggestions(raw) == [{"title": "Keep", "description": "", "priority": "Medium"}]


@pytest.mark.parametrize("raw", ["", "no json here", '{"title": "object not array"}'])
def test_parse_rejects_non_arrays(raw):
    with pytest.raises(ValueError):
        parse_suggestions(raw)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# DeskAssistant
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestAnalyze:

    def test_summary_uses_context_and_options(self, workspace, generator):
        entity = workspace.registry.get_entity("c2")
        projects = workspace.store.list_projects("c2")
        tasks = workspace.store.tasks_for_project("p2")
        assert workspace.assistant.analyze(entity, projects, tasks) == "Executive summary: keep shipping."

        prompt, options = generator.calls[-1]
        assert "Company: DE" in prompt
        assert "DE Lead Generation Phase 1" in prompt
        assert "Dispatch: 2000 Units Lumbar Support" in prompt
        assert options == {"temperature": 0.7, "top_p": 0.8}

    def test_empty_text_gives_placeholder(self, workspace):
        assistant = DeskAssistant(FakeGenerator(""))
        assert assistant.analyze(workspace.registry.get_entity("c1"), [], []) == NO_INSIGHTS

    def test_failure_gives_fixed_message(self, workspace):
        assistant = DeskAssistant(FakeGenerator(error=GenerationError("HTTP 500")))
        assert assistant.analyze(workspace.registry.get_entity("c1"), [], []) == ANALYSIS_FAILED

    def test_no_generator_configured(self, workspace):
        assert DeskAssistant(None).analyze(workspace.registry.get_entity("c1"), [], []) == ANALYSIS_FAILED


class TestDraftSop:

    def test_draft_prompt_and_temperature(self):
        gen = FakeGenerator("Purpose: ...")
        assert DeskAssistant(gen).draft_sop("Mold changeover", "Swap dies safely") == "Purpose: ..."
        prompt, options = gen.calls[0]
        assert '"Mold changeover"' in prompt and '"Swap dies safely"' in prompt
        assert options == {"temperature": 0.5}

    def test_failure_returns_none(self):
        assert DeskAssistant(FakeGenerator(error=GenerationError("boom"))).draft_sop("x", "y") is None


class TestSuggestTasks:

    def test_requests_json_array(self):
        gen = FakeGenerator('[{"title": "T", "description": "D", "priority": "High"}]')
        assert DeskAssistant(gen).suggest_tasks("Amazon B2C Scaling", "Go global") == [
            {"title": "T", "description": "D", "priority": "High"},
        ]
        _, options = gen.calls[0]
        assert options["response_mime_type"] == "application/json"
        assert options["response_schema"] == SUGGESTION_SCHEMA

    def test_garbled_response_gives_empty_list(self):
        assert DeskAssistant(FakeGenerator("Sorry, I can't.")).suggest_tasks("p", "d") == []

    def test_call_failure_gives_empty_list(self):
        assert DeskAssistant(FakeGenerator(error=GenerationError("timeout"))).suggest_tasks("p", "d") == []
