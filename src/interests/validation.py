"""
Selection Validation.

Decides whether the current selection is complete enough to leave the
interest step. Pure functions over the profile and the navigation state; the
engine stores the returned messages for display.
"""

from dataclasses import dataclass

from .state import CategoryPreferences, Profile
from .taxonomy import Category, Taxonomy

CHOOSE_CATEGORY_MESSAGE = "Please select at least one broad category to continue."


@dataclass(frozen=True)
class SelectionState:
    """Transient navigation focus (not persisted)."""
    active_category: str | None = None
    active_sub_category: str | None = None


def choose_sub_category_message(category: Category) -> str:
    return category.sub_category_prompt or f"Please select a sub-category for {category.label}."


def engage_message(category: Category) -> str:
    return (
        f"For {category.label}, please engage with the deeper follow-up questions "
        f"so we can understand your preferences better. Ask the AI for deeper questions."
    )


def select_interests_message(category: Category) -> str:
    return f"Please select some specific interests or tags for {category.label}."


def has_deeper_engagement(prefs: CategoryPreferences) -> bool:
    """
    Whether a category shows engagement beyond picking tags.

    Any AI fetch attempt counts, including one that failed or returned no
    questions. The free-text override counts on its own.
    """
    attempted = prefs.ai_fetch_attempted or bool(prefs.ai_follow_up_questions)
    return attempted or prefs.has_other_text


def validate_selection(
    profile: Profile,
    selection: SelectionState,
    taxonomy: Taxonomy,
) -> list[str]:
    """
    Validate the selection with specific error messages.

    Rules, in message order:
    1. A category must be active.
    2. If the active category has sub-categories, one must be active.
    3. Every engaged category needs deeper engagement (AI fetch attempt or override text).
    4. The active category needs selected tags, or override text where supported.

    Returns:
        Ordered messages; empty means the profile may advance
    """
    errors: list[str] = []

    active = taxonomy.category_by_id(selection.active_category) if selection.active_category else None

    if active is None:
        errors.append(CHOOSE_CATEGORY_MESSAGE)
    elif active.sub_categories and not selection.active_sub_category:
        errors.append(choose_sub_category_message(active))

    for category in taxonomy.selectable_categories():
        prefs = profile.category(category.key)
        if prefs.is_engaged and not has_deeper_engagement(prefs):
            errors.append(engage_message(category))

    if active is not None and active.key is not None:
        prefs = profile.category(active.key)
        if not prefs.selected_tags and not (active.supports_other_override and prefs.has_other_text):
            errors.append(select_interests_message(active))

    return errors
