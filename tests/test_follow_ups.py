"""
Tests for the LLM-backed follow-up question provider.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from conftest import run

from interests.follow_ups import (
    SYSTEM_PROMPT,
    FollowUpQuestionSet,
    FollowUpResult,
    FollowUpStatus,
    LlmFollowUpProvider,
    build_user_prompt,
    fallback_questions,
    placeholder_questions,
)


@pytest.fixture
def configured():
    """Pretend an OpenAI key is configured."""
    with patch("interests.follow_ups.settings", MagicMock(has_llm_backend=True)):
        yield


class TestPrompts:

    def test_user_prompt_lists_tags(self):
        prompt = build_user_prompt("Sports", ["IPL", "Premier League"])
        assert '"Sports"' in prompt
        assert "IPL, Premier League" in prompt

    def test_user_prompt_without_tags(self):
        prompt = build_user_prompt("News", [])
        assert "not selected any specific topics" in prompt

    def test_system_prompt_asks_for_questions(self):
        assert "questions" in SYSTEM_PROMPT


class TestFixedSets:

    def test_fallback_references_category_and_tags(self):
        questions = fallback_questions("Sports", ["Cricket", "Football"])
        assert len(questions) == 2
        assert "Sports" in questions[0].question
        assert "Cricket, Football" in questions[0].question
        assert all("Sports" in q.question for q in questions)

    def test_placeholder_is_labelled(self):
        questions = placeholder_questions("News", ["Elections"])
        assert all(q.question.startswith("[Placeholder]") for q in questions)

    def test_ids_unique_within_and_across_calls(self):
        first = fallback_questions("News", [])
        second = fallback_questions("News", [])
        ids = [q.id for q in first + second]
        assert len(set(ids)) == len(ids)


class TestResult:

    def test_empty_status(self):
        assert FollowUpResult.from_questions([]).status is FollowUpStatus.EMPTY

    def test_failed(self):
        result = FollowUpResult.failed("bad json")
        assert result.status is FollowUpStatus.FAILED
        assert result.questions == ()
        assert result.error == "bad json"


class TestProvider:

    def test_unconfigured_backend_returns_placeholders(self):
        llm_call = AsyncMock()
        with patch("interests.follow_ups.settings", MagicMock(has_llm_backend=False)):
            result = run(LlmFollowUpProvider(llm_call=llm_call)("News", ["Elections"]))

        assert result.status is FollowUpStatus.OK
        assert result.placeholder
        assert len(result.questions) == 2
        llm_call.assert_not_called()

    def test_success(self, configured):
        llm_call = AsyncMock(return_value=FollowUpQuestionSet(questions=[
            "  Which elections matter most to you? ",
            "Do you want results or analysis?",
        ]))
        result = run(LlmFollowUpProvider(llm_call=llm_call)("News", ["Elections"]))

        assert result.status is FollowUpStatus.OK
        assert [q.question for q in result.questions] == [
            "Which elections matter most to you?",
            "Do you want results or analysis?",
        ]
        assert not result.fallback

        kwargs = llm_call.call_args.kwargs
        assert kwargs["response_model"] is FollowUpQuestionSet
        assert kwargs["node"] == "follow_ups"
        assert "Elections" in kwargs["user_prompt"]

    def test_blank_questions_dropped(self, configured):
        llm_call = AsyncMock(return_value=FollowUpQuestionSet(questions=["   "]))
        result = run(LlmFollowUpProvider(llm_call=llm_call)("News", ["Elections"]))
        assert result.status is FollowUpStatus.EMPTY

    def test_error_falls_back(self, configured):
        llm_call = AsyncMock(side_effect=RuntimeError("rate limited"))
        result = run(LlmFollowUpProvider(llm_call=llm_call)("Sports", ["Cricket", "Football"]))

        assert result.status is FollowUpStatus.OK
        assert result.fallback
        assert result.error == "rate limited"
        assert all("Sports" in q.question for q in result.questions)

    def test_error_without_fallback_fails(self, configured):
        llm_call = AsyncMock(side_effect=RuntimeError("rate limited"))
        provider = LlmFollowUpProvider(llm_call=llm_call, fallback_on_error=False)
        result = run(provider("Sports", ["Cricket"]))

        assert result.status is FollowUpStatus.FAILED
        assert result.questions == ()


class TestResponseModel:

    def test_requires_at_least_one_question(self):
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            FollowUpQuestionSet(questions=[])
