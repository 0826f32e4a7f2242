"""
Preference Profile State.

The profile is the document the configurator builds and downstream steps
(frequency settings, review, delivery) read. Every dataclass here is frozen:
a change produces a new snapshot via `dataclasses.replace`, and snapshots
compare by value.

Persisted as one JSON document (whole-document overwrite on every change).
"""

import json
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping

from .taxonomy import CategoryKey

logger = logging.getLogger(__name__)


class UpdateFrequency(Enum):
    """How often updates are delivered."""
    REAL_TIME = "Real-time"
    MORNING_DIGEST = "Morning Digest"
    EVENING_SUMMARY = "Evening Summary"
    CUSTOM = "Custom"


@dataclass(frozen=True)
class FollowUpAnswer:
    """Answer to a fixed follow-up question."""
    selected_predefined_tags: tuple[str, ...] = ()  # Labels, not ids
    custom_answer_via_other: str = ""

    @property
    def has_content(self) -> bool:
        return bool(self.selected_predefined_tags) or bool(self.custom_answer_via_other.strip())

    def to_dict(self) -> dict:
        return {
            "selected_predefined_tags": list(self.selected_predefined_tags),
            "custom_answer_via_other": self.custom_answer_via_other,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FollowUpAnswer":
        data = _mapping(data, "follow-up answer")
        return cls(
            selected_predefined_tags=_unique(data.get("selected_predefined_tags")),
            custom_answer_via_other=str(data.get("custom_answer_via_other") or ""),
        )


@dataclass(frozen=True)
class AiFollowUpQuestion:
    """AI-generated clarifying question and the user's answer."""
    id: str
    question: str
    answer: str = ""

    def to_dict(self) -> dict:
        return {"id": self.id, "question": self.question, "answer": self.answer}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AiFollowUpQuestion":
        data = _mapping(data, "AI follow-up question")
        return cls(
            id=str(data["id"]),
            question=str(data.get("question", "")),
            answer=str(data.get("answer") or ""),
        )


@dataclass(frozen=True)
class CategoryPreferences:
    """Preferences for one selectable category."""
    selected_tags: tuple[str, ...] = ()
    follow_up_answers: Mapping[str, FollowUpAnswer] = field(default_factory=dict)
    instruction_tags: tuple[str, ...] = ()
    ai_follow_up_questions: tuple[AiFollowUpQuestion, ...] = ()
    # Set once an AI fetch has been issued for this category, whatever its outcome
    ai_fetch_attempted: bool = False
    # Free-text override (e.g. the "other sport" name)
    other_text: str = ""

    @property
    def has_other_text(self) -> bool:
        return bool(self.other_text.strip())

    @property
    def is_engaged(self) -> bool:
        """The user has started expressing interest in this category."""
        return bool(self.selected_tags) or self.has_other_text

    def answer_for(self, question_id: str) -> FollowUpAnswer:
        return self.follow_up_answers.get(question_id, FollowUpAnswer())

    def to_dict(self) -> dict:
        return {
            "selected_tags": list(self.selected_tags),
            "follow_up_answers": {
                qid: answer.to_dict() for qid, answer in self.follow_up_answers.items()
            },
            "instruction_tags": list(self.instruction_tags),
            "ai_follow_up_questions": [q.to_dict() for q in self.ai_follow_up_questions],
            "ai_fetch_attempted": self.ai_fetch_attempted,
            "other_text": self.other_text,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "CategoryPreferences":
        """Deserialize, filling every collection with an empty default when absent."""
        data = _mapping(data, "category preferences")
        answers = _mapping(data.get("follow_up_answers"), "follow_up_answers")
        return cls(
            selected_tags=_unique(data.get("selected_tags")),
            follow_up_answers={
                str(qid): FollowUpAnswer.from_dict(answer)
                for qid, answer in answers.items()
            },
            instruction_tags=_unique(data.get("instruction_tags")),
            ai_follow_up_questions=tuple(
                AiFollowUpQuestion.from_dict(q) for q in data.get("ai_follow_up_questions") or []
            ),
            ai_fetch_attempted=bool(data.get("ai_fetch_attempted", False)),
            other_text=str(data.get("other_text") or ""),
        )


def default_categories() -> dict[CategoryKey, CategoryPreferences]:
    return {key: CategoryPreferences() for key in CategoryKey}


@dataclass(frozen=True)
class Profile:
    """
    The complete user preference document.

    `version` is bumped by the store on every committed change; it is part of
    the persisted document so a reload reproduces the exact snapshot.
    """
    categories: Mapping[CategoryKey, CategoryPreferences] = field(default_factory=default_categories)
    custom_interest_tags: tuple[str, ...] = ()
    frequency: UpdateFrequency = UpdateFrequency.MORNING_DIGEST
    custom_frequency_time: str | None = None
    alerts_paused: bool = False
    version: int = 0

    def __post_init__(self):
        """Make sure every selectable category is present, in key order."""
        filled = {
            key: self.categories.get(key) or CategoryPreferences()
            for key in CategoryKey
        }
        object.__setattr__(self, "categories", filled)

    def category(self, key: CategoryKey | str) -> CategoryPreferences:
        return self.categories[CategoryKey(key)]

    def with_category(self, key: CategoryKey | str, prefs: CategoryPreferences) -> "Profile":
        """New snapshot with one category's preferences replaced."""
        categories = dict(self.categories)
        categories[CategoryKey(key)] = prefs
        return replace(self, categories=categories)

    def to_dict(self) -> dict:
        """Serialize profile to dict for JSON storage."""
        return {
            "version": self.version,
            "categories": {key.value: prefs.to_dict() for key, prefs in self.categories.items()},
            "custom_interest_tags": list(self.custom_interest_tags),
            "frequency": self.frequency.value,
            "custom_frequency_time": self.custom_frequency_time,
            "alerts_paused": self.alerts_paused,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Profile":
        """Deserialize profile from dict; missing fields take their defaults."""
        data = _mapping(data, "profile")
        raw_categories = _mapping(data.get("categories"), "categories")
        categories = {}
        for key in CategoryKey:
            categories[key] = CategoryPreferences.from_dict(raw_categories.get(key.value))
        unknown = set(raw_categories) - {key.value for key in CategoryKey}
        if unknown:
            logger.warning(f"Ignoring unknown categories in stored profile: {sorted(unknown)}")

        frequency = UpdateFrequency.MORNING_DIGEST
        if data.get("frequency"):
            try:
                frequency = UpdateFrequency(data["frequency"])
            except ValueError:
                logger.warning(f"Unknown frequency in stored profile (using default): {data['frequency']}")

        return cls(
            categories=categories,
            custom_interest_tags=_unique(data.get("custom_interest_tags")),
            frequency=frequency,
            custom_frequency_time=data.get("custom_frequency_time") or None,
            alerts_paused=bool(data.get("alerts_paused", False)),
            version=int(data.get("version", 0)),
        )

    def to_json(self) -> str:
        """Serialize profile to JSON string."""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> "Profile":
        """Deserialize profile from JSON string."""
        return cls.from_dict(json.loads(json_str))


def _mapping(value: Any, what: str) -> Mapping[str, Any]:
    """Stored mapping, or an empty one when absent; other shapes are rejected."""
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise TypeError(f"Stored {what} must be an object, got {type(value).__name__}")
    return value


def _unique(values: Any) -> tuple[str, ...]:
    """Order-preserving de-duplication of a stored list."""
    if not values:
        return ()
    return tuple(dict.fromkeys(str(v) for v in values))
