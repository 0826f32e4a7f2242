"""
AI Follow-up Questions.

Generates 2-3 open-ended clarifying questions for a category from the tags
the user picked, so later updates can match how deeply they follow a topic.

Provider contract (what the selection engine relies on):
- Input: category label + ordered tag labels (already resolved from ids)
- Output: one awaitable `FollowUpResult` per call - `ok`, `empty` or `failed`
- Question ids are unique within a result
- No automatic retries; the user asks again

`LlmFollowUpProvider` is the production implementation:
- No API key configured → a clearly labelled placeholder pair
- Any LLM error → a fixed fallback pair that still references the category
  and tags, so the user always gets something to answer
"""

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

from pydantic import BaseModel, Field

from pulse.config import settings
from pulse.llm.client import call_llm

logger = logging.getLogger(__name__)


# =============================================================================
# Result Types
# =============================================================================


class FollowUpStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class GeneratedQuestion:
    id: str
    question: str


@dataclass(frozen=True)
class FollowUpResult:
    """Outcome of one follow-up request."""
    status: FollowUpStatus
    questions: tuple[GeneratedQuestion, ...] = ()
    error: str | None = None
    placeholder: bool = False  # Generated without a configured backend
    fallback: bool = False  # Fixed questions substituted after a provider error

    @classmethod
    def from_questions(cls, questions: list[GeneratedQuestion], **kwargs) -> "FollowUpResult":
        status = FollowUpStatus.OK if questions else FollowUpStatus.EMPTY
        return cls(status=status, questions=tuple(questions), **kwargs)

    @classmethod
    def failed(cls, error: str) -> "FollowUpResult":
        return cls(status=FollowUpStatus.FAILED, error=error)


# (category_label, tag_labels) -> result
FollowUpProvider = Callable[[str, list[str]], Awaitable[FollowUpResult]]


# =============================================================================
# Response Model
# =============================================================================


class FollowUpQuestionSet(BaseModel):
    """Questions generated by the LLM."""
    questions: list[str] = Field(
        description="2-3 short, open-ended follow-up questions, one per item",
        min_length=1,
        max_length=5,
    )


# =============================================================================
# Prompts
# =============================================================================

SYSTEM_PROMPT = """You are an assistant helping a user personalise their update feed.

## Your Role

The user is choosing what they want regular updates about. For one interest
category you get the specific topics they picked. Ask a few quick questions
whose answers will shape what their updates contain.

## Success Criteria

Good questions clarify:
1. **Depth of interest** - casual interest vs. avid follower, which aspects they care about
2. **Content type** - just scores vs. detailed analysis, news vs. interviews, official announcements vs. rumours

Bad: "Do you like football?" (already known, yes/no)
Good: "When Arsenal play, do you want live score alerts or a wrap-up after the final whistle?"

## Output Contract

Return a JSON object with:
- questions: array of exactly 2-3 short, open-ended questions (strings, no numbering)
"""

USER_PROMPT = """The user selected the main interest category: "{category_label}".
{tag_part}

Generate 2-3 follow-up questions for this category.
If no specific topics are provided, ask generic clarifying questions for the category."""


def build_user_prompt(category_label: str, tag_labels: list[str]) -> str:
    if tag_labels:
        tag_part = (
            "They have also expressed interest in these specific topics within this category: "
            f"{', '.join(tag_labels)}."
        )
    else:
        tag_part = "They have not selected any specific topics yet for this category."
    return USER_PROMPT.format(category_label=category_label, tag_part=tag_part)


# =============================================================================
# Fixed Question Sets
# =============================================================================


def _with_ids(texts: list[str], suffix: str) -> list[GeneratedQuestion]:
    """Attach ids that are unique per call."""
    batch = uuid.uuid4().hex[:8]
    return [
        GeneratedQuestion(id=f"{batch}_{index}_{suffix}", question=text)
        for index, text in enumerate(texts)
    ]


def placeholder_questions(category_label: str, tag_labels: list[str]) -> list[GeneratedQuestion]:
    """Questions used when no LLM backend is configured."""
    tags = ", ".join(tag_labels) if tag_labels else "your picks"
    return _with_ids(
        [
            f"[Placeholder] For {category_label} and topics like '{tags}', what specific aspect interests you most?",
            f"[Placeholder] How often do you want updates about these {category_label} topics?",
        ],
        "placeholder",
    )


def fallback_questions(category_label: str, tag_labels: list[str]) -> list[GeneratedQuestion]:
    """Questions used when the LLM call fails."""
    related = f" (related to {', '.join(tag_labels)})" if tag_labels else ""
    return _with_ids(
        [
            f"What specific aspects of {category_label}{related} are you most interested in?",
            f"Any particular type of news or update style you prefer for {category_label}?",
        ],
        "fallback",
    )


# =============================================================================
# Provider
# =============================================================================


class LlmFollowUpProvider:
    """
    Follow-up provider backed by the structured LLM client.

    Args:
        llm_call: Structured call function (defaults to `pulse.llm.call_llm`)
        fallback_on_error: Substitute fixed questions on error instead of
            reporting a failed result
    """

    def __init__(
        self,
        *,
        llm_call: Callable[..., Awaitable[FollowUpQuestionSet]] | None = None,
        fallback_on_error: bool = True,
    ):
        self._llm_call = llm_call or call_llm
        self.fallback_on_error = fallback_on_error

    async def __call__(self, category_label: str, tag_labels: list[str]) -> FollowUpResult:
        if not settings.has_llm_backend:
            logger.warning("OPENAI_API_KEY not set, returning placeholder follow-up questions")
            return FollowUpResult.from_questions(
                placeholder_questions(category_label, tag_labels),
                placeholder=True,
            )

        try:
            response = await self._llm_call(
                response_model=FollowUpQuestionSet,
                system_prompt=SYSTEM_PROMPT,
                user_prompt=build_user_prompt(category_label, tag_labels),
                node="follow_ups",
                complexity="medium",
            )
        except Exception as e:
            logger.error(f"Error generating follow-up questions for {category_label}: {e}")
            if not self.fallback_on_error:
                return FollowUpResult.failed(str(e))
            return FollowUpResult.from_questions(
                fallback_questions(category_label, tag_labels),
                fallback=True,
                error=str(e),
            )

        texts = [q.strip() for q in response.questions if q and q.strip()]
        return FollowUpResult.from_questions(_with_ids(texts, "ai"))
