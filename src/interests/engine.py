"""
Selection Engine.

Single source of truth for the interest step: which category, sub-category
and "other" input currently have focus, and how each user action turns the
stored profile into its next snapshot.

Navigation focus lives on the engine and is never persisted. Profile changes
go through the store, which versions, persists and broadcasts them; each
operation returns the snapshot it committed (or the unchanged current one).

AI follow-up fetches are the only suspending operation. Each request carries
a sequence number and a snapshot of the category's tag set. A response is
applied only if the tag set still matches and no newer response for the
category has been applied; anything else is dropped.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, replace

from .errors import ProviderError, TaxonomyError, ValidationError
from .follow_ups import FollowUpProvider, FollowUpStatus, LlmFollowUpProvider
from .state import AiFollowUpQuestion, CategoryPreferences, FollowUpAnswer, Profile
from .store import PreferenceStore
from .taxonomy import (
    GLOBAL_SCOPE,
    Category,
    CategoryKey,
    FollowUpQuestion,
    Tag,
    Taxonomy,
    get_taxonomy,
)
from .validation import SelectionState, validate_selection

logger = logging.getLogger(__name__)

AI_FETCH_FAILED_MESSAGE = "Sorry, we couldn't fetch clarifying questions. Please try again."
AI_FETCH_EMPTY_MESSAGE = "No clarifying questions came back this time. Please try again."


@dataclass(frozen=True)
class OtherInputSlot:
    """The one free-text "other" answer input that is currently open."""
    category: CategoryKey
    question_id: str

    @property
    def input_id(self) -> str:
        return f"{self.category.value}-{self.question_id}-other"


class SelectionEngine:
    """
    Interest selection state machine.

    Args:
        store: Owner of the profile snapshots
        taxonomy: Category hierarchy (defaults to the built-in catalog)
        provider: AI follow-up provider (defaults to the LLM-backed one)
    """

    def __init__(
        self,
        store: PreferenceStore,
        taxonomy: Taxonomy | None = None,
        provider: FollowUpProvider | None = None,
    ):
        self.store = store
        self.taxonomy = taxonomy or get_taxonomy()
        self.provider = provider or LlmFollowUpProvider()

        # Navigation focus
        self.active_category: str | None = None
        self.active_sub_category: str | None = None
        self.active_other_input: OtherInputSlot | None = None
        self.instruction_draft: str = ""

        # Messages from the last validate(); cleared by any interaction
        self.validation_errors: list[str] = []

        # AI fetch bookkeeping, per category
        self._ai_errors: dict[CategoryKey, ProviderError] = {}
        self._in_flight: dict[CategoryKey, int] = defaultdict(int)
        self._issued_seq: dict[CategoryKey, int] = defaultdict(int)
        self._applied_seq: dict[CategoryKey, int] = defaultdict(int)

    # -------------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------------

    @property
    def profile(self) -> Profile:
        return self.store.profile

    def selection_state(self) -> SelectionState:
        return SelectionState(
            active_category=self.active_category,
            active_sub_category=self.active_sub_category,
        )

    def is_loading(self, key: CategoryKey | str) -> bool:
        """Whether an AI fetch for the category is still in flight."""
        return self._in_flight[CategoryKey(key)] > 0

    def ai_error(self, key: CategoryKey | str) -> ProviderError | None:
        """Category-scoped warning from the last AI fetch, if any."""
        return self._ai_errors.get(CategoryKey(key))

    def active_category_data(self) -> Category | None:
        if self.active_category is None:
            return None
        return self.taxonomy.category_by_id(self.active_category)

    def predefined_answers(self, key: CategoryKey | str, question_id: str) -> tuple[Tag, ...]:
        """
        Answer chips for a fixed follow-up question.

        The active sub-category may provide its own popular answers (teams,
        players) for a question; those replace the question's generic ones.
        """
        category, question = self._question(key, question_id)
        if self.active_category == category.id and self.active_sub_category:
            sub = category.sub_category(self.active_sub_category)
            if sub is not None and question_id in sub.popular_answers:
                return sub.popular_answers[question_id]
        return question.predefined_answer_tags

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def select_category(self, category_id: str) -> Profile:
        """
        Toggle focus on a category.

        Switching (or collapsing) clears the sub-category, the open "other"
        input (and its text) and the instruction-tag draft. Choosing any other
        category also drops free-text overrides held by the categories left behind.
        """
        category = self.taxonomy.category_by_id(category_id)
        self._touch()

        previous = self.active_category_data()
        if previous is not None and previous.key is not None:
            self._ai_errors.pop(previous.key, None)

        if self.active_category == category.id:
            self.active_category = None
        else:
            self.active_category = category.id
        self.active_sub_category = None
        self.instruction_draft = ""

        self._close_other_input()
        return self._clear_other_overrides(except_id=category.id)

    def select_sub_category(self, sub_category_id: str) -> Profile:
        """
        Toggle focus on a sub-category of the active category.

        Choosing a specific sub-category clears the category's free-text
        override; choosing the "other" placeholder keeps it. Collapsing the
        placeholder clears it too.
        """
        category = self._require_active_category()
        sub = category.sub_category(sub_category_id)
        if sub is None:
            raise TaxonomyError(f"Unknown sub-category '{sub_category_id}' in {category.label}")
        self._touch()

        if self.active_sub_category == sub.id:
            self.active_sub_category = None
            clear_override = sub.is_other_placeholder
        else:
            self.active_sub_category = sub.id
            clear_override = not sub.is_other_placeholder

        if clear_override and category.key is not None and category.supports_other_override:
            prefs = self.profile.category(category.key)
            return self._commit_category(category.key, replace(prefs, other_text=""))
        return self.profile

    def set_other_text(self, text: str) -> Profile:
        """Set the free-text override while the "other" placeholder is active."""
        category = self._require_active_category()
        placeholder = category.other_placeholder
        if placeholder is None or category.key is None:
            raise ValidationError(f"{category.label} has no free-text option")
        if self.active_sub_category != placeholder.id:
            raise ValidationError(f"Choose '{placeholder.label}' before typing a name")
        self._touch()

        prefs = self.profile.category(category.key)
        return self._commit_category(category.key, replace(prefs, other_text=text))

    # -------------------------------------------------------------------------
    # Tags
    # -------------------------------------------------------------------------

    def toggle_tag(self, key: CategoryKey | str, tag_id: str) -> Profile:
        """
        Flip membership of a tag in the category's selection.

        Tags in an exclusive group replace each other. Any change to the tag
        set drops the category's AI questions and outdates in-flight fetches.
        """
        key = CategoryKey(key)
        category = self.taxonomy.category(key)
        self._touch()

        prefs = self.profile.category(key)
        selected = set(prefs.selected_tags)
        if tag_id in selected:
            selected.discard(tag_id)
        else:
            if category.tag(tag_id) is None:
                logger.warning(f"Selecting tag '{tag_id}' with no taxonomy entry in {category.label}")
            selected.add(tag_id)
            group = category.exclusive_group(tag_id)
            if group:
                selected -= group - {tag_id}

        new_tags = _ordered_tags(category, selected, prefs.selected_tags)
        self._ai_errors.pop(key, None)
        if new_tags == prefs.selected_tags:
            return self.profile

        # Questions are cleared even when the set becomes empty
        return self._commit_category(
            key,
            replace(prefs, selected_tags=new_tags, ai_follow_up_questions=()),
        )

    def is_tag_selected(self, key: CategoryKey | str, tag_id: str) -> bool:
        return tag_id in self.profile.category(key).selected_tags

    # -------------------------------------------------------------------------
    # Fixed follow-up questions
    # -------------------------------------------------------------------------

    def toggle_follow_up_predefined_tag(
        self, key: CategoryKey | str, question_id: str, tag_label: str
    ) -> Profile:
        key = CategoryKey(key)
        self._question(key, question_id)
        self._touch()

        prefs = self.profile.category(key)
        answer = prefs.answer_for(question_id)
        labels = list(answer.selected_predefined_tags)
        if tag_label in labels:
            labels.remove(tag_label)
        else:
            labels.append(tag_label)

        return self._commit_answer(key, prefs, question_id, replace(answer, selected_predefined_tags=tuple(labels)))

    def set_follow_up_other_active(self, key: CategoryKey | str, question_id: str) -> Profile:
        """
        Toggle the "other" input of a question.

        Only one such input is open across the engine. Closing one (directly,
        by opening another, or by switching category) clears its text.
        """
        key = CategoryKey(key)
        _, question = self._question(key, question_id)
        if not question.has_other_option:
            raise ValidationError(f"Question '{question_id}' has no free-text answer")
        self._touch()

        slot = OtherInputSlot(category=key, question_id=question_id)
        if self.active_other_input == slot:
            return self._close_other_input()

        self._close_other_input()
        self.active_other_input = slot
        return self.profile

    def set_follow_up_other_text(self, key: CategoryKey | str, question_id: str, text: str) -> Profile:
        key = CategoryKey(key)
        self._question(key, question_id)
        if self.active_other_input != OtherInputSlot(category=key, question_id=question_id):
            raise ValidationError(f"The other answer for '{question_id}' is not open")
        self._touch()

        prefs = self.profile.category(key)
        answer = prefs.answer_for(question_id)
        return self._commit_answer(key, prefs, question_id, replace(answer, custom_answer_via_other=text))

    # -------------------------------------------------------------------------
    # Custom tags (instruction tags per category, interest tags globally)
    # -------------------------------------------------------------------------

    def set_instruction_draft(self, text: str) -> None:
        self.instruction_draft = text

    def add_custom_tag(self, scope: CategoryKey | str, text: str | None = None) -> Profile:
        """
        Append a trimmed, non-empty, new tag.

        Args:
            scope: Category key for instruction tags, or "global" for custom interests
            text: Tag text; for a category scope defaults to the pending draft
        """
        key = _parse_scope(scope)
        if text is None:
            text = self.instruction_draft if key is not None else ""
        if key is not None:
            self.instruction_draft = ""
        self._touch()

        value = text.strip()
        if not value:
            return self.profile

        current = self._custom_tags(key)
        if value in current:
            return self.profile
        return self._commit_custom_tags(key, (*current, value))

    def remove_custom_tag(self, scope: CategoryKey | str, text: str) -> Profile:
        """Remove a tag; removing one that is not there changes nothing."""
        key = _parse_scope(scope)
        self._touch()

        value = text.strip()
        current = self._custom_tags(key)
        if value not in current:
            return self.profile
        return self._commit_custom_tags(key, tuple(t for t in current if t != value))

    def toggle_custom_tag(self, scope: CategoryKey | str, text: str) -> Profile:
        """Add or remove a suggested tag (popular tag chips)."""
        key = _parse_scope(scope)
        if text.strip() in self._custom_tags(key):
            return self.remove_custom_tag(scope, text)
        return self.add_custom_tag(scope, text)

    # -------------------------------------------------------------------------
    # AI follow-up questions
    # -------------------------------------------------------------------------

    async def fetch_ai_follow_ups(self, key: CategoryKey | str) -> Profile:
        """
        Ask the provider for clarifying questions for a category.

        Raises:
            ValidationError: if the category has no selected tags (its stale
                AI questions are cleared first)

        A failed or empty result leaves the question list empty and records a
        category-scoped warning; it never raises.
        """
        key = CategoryKey(key)
        category = self.taxonomy.category(key)
        self._touch()

        prefs = self.profile.category(key)
        if not prefs.selected_tags:
            if prefs.ai_follow_up_questions:
                self._commit_category(key, replace(prefs, ai_follow_up_questions=()))
            message = f"No tags selected for {category.label}. Please pick some interests first."
            self._ai_errors[key] = ProviderError(message)
            raise ValidationError(message)

        self._issued_seq[key] += 1
        seq = self._issued_seq[key]
        snapshot = frozenset(prefs.selected_tags)
        tag_labels = self.taxonomy.tag_labels(key, prefs.selected_tags)

        self._ai_errors.pop(key, None)
        if not prefs.ai_fetch_attempted:
            self._commit_category(key, replace(prefs, ai_fetch_attempted=True))

        logger.info(f"Fetching AI follow-ups for {category.label} (request {seq}, tags={tag_labels})")
        self._in_flight[key] += 1
        try:
            try:
                result = await self.provider(category.label, tag_labels)
            except Exception as e:
                logger.error(f"AI follow-up provider raised for {category.label}: {e}")
                result = None
                error = ProviderError(str(e))
            else:
                error = None
        finally:
            self._in_flight[key] -= 1

        current = self.profile.category(key)
        if frozenset(current.selected_tags) != snapshot or seq < self._applied_seq[key]:
            logger.info(f"Discarding stale AI follow-ups for {category.label} (request {seq})")
            return self.profile
        self._applied_seq[key] = seq

        if result is not None and result.status is FollowUpStatus.FAILED:
            error = ProviderError(result.error or "provider reported a failure")

        if error is not None:
            logger.warning(f"AI follow-ups failed for {category.label}: {error}")
            self._ai_errors[key] = ProviderError(AI_FETCH_FAILED_MESSAGE)
            self._ai_errors[key].__cause__ = error
            return self._commit_category(key, replace(current, ai_follow_up_questions=()))

        questions = _unique_questions(result.questions)
        if not questions:
            self._ai_errors[key] = ProviderError(AI_FETCH_EMPTY_MESSAGE)
        return self._commit_category(key, replace(current, ai_follow_up_questions=questions))

    def set_ai_answer(self, key: CategoryKey | str, question_id: str, text: str) -> Profile:
        key = CategoryKey(key)
        self._touch()

        prefs = self.profile.category(key)
        if not any(q.id == question_id for q in prefs.ai_follow_up_questions):
            raise ValidationError(f"Unknown AI follow-up question: {question_id}")

        questions = tuple(
            replace(q, answer=text) if q.id == question_id else q
            for q in prefs.ai_follow_up_questions
        )
        return self._commit_category(key, replace(prefs, ai_follow_up_questions=questions))

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self) -> list[str]:
        """Validate the current selection and keep the messages for display."""
        self.validation_errors = validate_selection(self.profile, self.selection_state(), self.taxonomy)
        return list(self.validation_errors)

    def require_valid(self) -> Profile:
        """
        Raises:
            ValidationError: with every message if the selection cannot advance
        """
        errors = self.validate()
        if errors:
            raise ValidationError(errors)
        return self.profile

    def reset(self) -> Profile:
        """Forget the profile and all navigation state; in-flight fetches are dropped."""
        profile = self.store.reset()
        self.active_category = None
        self.active_sub_category = None
        self.active_other_input = None
        self.instruction_draft = ""
        self.validation_errors = []
        self._ai_errors.clear()
        for key, seq in self._issued_seq.items():
            self._applied_seq[key] = seq + 1
        return profile

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _touch(self) -> None:
        self.validation_errors = []

    def _require_active_category(self) -> Category:
        category = self.active_category_data()
        if category is None:
            raise ValidationError("Choose a category first.")
        return category

    def _question(self, key: CategoryKey | str, question_id: str) -> tuple[Category, FollowUpQuestion]:
        category = self.taxonomy.category(key)
        question = category.follow_up_question(question_id)
        if question is None:
            raise TaxonomyError(f"Unknown follow-up question '{question_id}' in {category.label}")
        return category, question

    def _close_other_input(self) -> Profile:
        slot = self.active_other_input
        self.active_other_input = None
        if slot is None:
            return self.profile

        prefs = self.profile.category(slot.category)
        answer = prefs.follow_up_answers.get(slot.question_id)
        if answer is None or not answer.custom_answer_via_other:
            return self.profile
        return self._commit_answer(slot.category, prefs, slot.question_id, replace(answer, custom_answer_via_other=""))

    def _clear_other_overrides(self, except_id: str) -> Profile:
        for category in self.taxonomy.selectable_categories():
            if category.id == except_id or not category.supports_other_override:
                continue
            prefs = self.profile.category(category.key)
            if prefs.other_text:
                self._commit_category(category.key, replace(prefs, other_text=""))
        return self.profile

    def _custom_tags(self, key: CategoryKey | None) -> tuple[str, ...]:
        if key is None:
            return self.profile.custom_interest_tags
        return self.profile.category(key).instruction_tags

    def _commit_custom_tags(self, key: CategoryKey | None, tags: tuple[str, ...]) -> Profile:
        if key is None:
            return self.store.patch(custom_interest_tags=tags)
        prefs = self.profile.category(key)
        return self._commit_category(key, replace(prefs, instruction_tags=tags))

    def _commit_answer(
        self,
        key: CategoryKey,
        prefs: CategoryPreferences,
        question_id: str,
        answer: FollowUpAnswer,
    ) -> Profile:
        answers = dict(prefs.follow_up_answers)
        answers[question_id] = answer
        return self._commit_category(key, replace(prefs, follow_up_answers=answers))

    def _commit_category(self, key: CategoryKey, prefs: CategoryPreferences) -> Profile:
        return self.store.update_category(key, prefs)


def _parse_scope(scope: CategoryKey | str) -> CategoryKey | None:
    """Category key for instruction tags, None for global custom interests."""
    if scope == GLOBAL_SCOPE:
        return None
    try:
        return CategoryKey(scope)
    except ValueError:
        raise TaxonomyError(f"Unknown tag scope: {scope}") from None


def _ordered_tags(category: Category, selected: set[str], previous: tuple[str, ...]) -> tuple[str, ...]:
    """
    Canonical order for a tag selection.

    Known tags follow taxonomy order; unknown ids keep their previous order
    and new ones go last. Toggling a tag twice restores the exact tuple.
    """
    known = [t.id for t in category.all_tags() if t.id in selected]
    known_ids = set(known)
    kept_unknown = [t for t in previous if t in selected and t not in known_ids]
    new_unknown = sorted(selected - known_ids - set(kept_unknown))
    return tuple(known + kept_unknown + new_unknown)


def _unique_questions(questions) -> tuple[AiFollowUpQuestion, ...]:
    """Fresh AI questions with empty answers; duplicate ids get a suffix."""
    seen: set[str] = set()
    result = []
    for q in questions:
        qid = q.id
        n = 1
        while qid in seen:
            n += 1
            qid = f"{q.id}_{n}"
        seen.add(qid)
        result.append(AiFollowUpQuestion(id=qid, question=q.question))
    return tuple(result)
