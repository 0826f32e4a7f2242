"""
Interest Taxonomy.

Declarative hierarchy of categories → sub-categories → tags → follow-up
questions. The taxonomy is validated once when it is loaded; every lookup
after that works against known ids. Profiles may still carry ids that the
taxonomy does not know (older documents, hand-edited storage), so label
lookups degrade to echoing the raw id instead of failing.
"""

import logging
import warnings
from enum import Enum
from functools import lru_cache
from typing import Any, Iterator

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import DataIntegrityWarning, TaxonomyError

logger = logging.getLogger(__name__)


class CategoryKey(str, Enum):
    """The four selectable categories a profile stores preferences for."""
    SPORTS = "sports"
    MOVIES_TV = "moviesTV"
    NEWS = "news"
    YOUTUBE = "youtube"


# Scope name for cross-category custom interest tags
GLOBAL_SCOPE = "global"


# =============================================================================
# Taxonomy Nodes
# =============================================================================


class _Node(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class Tag(_Node):
    """Atomic selectable interest."""
    id: str = Field(min_length=1)
    label: str = Field(min_length=1)
    icon: str | None = None


class FollowUpQuestion(_Node):
    """Fixed clarifying question with optional predefined answers."""
    id: str = Field(min_length=1)
    text: str = Field(min_length=1)
    predefined_answer_tags: tuple[Tag, ...] = ()
    has_other_option: bool = False


class SubCategory(_Node):
    """Second-level refinement inside a category."""
    id: str = Field(min_length=1)
    label: str = Field(min_length=1)
    icon: str | None = None
    tags: tuple[Tag, ...] = ()
    # Tags of an exclusive sub-category form a group: at most one may be selected
    exclusive: bool = False
    # The "other" placeholder carries no tags; choosing it enables free text
    is_other_placeholder: bool = False
    # Question id → answers shown instead of the question's own predefined tags
    popular_answers: dict[str, tuple[Tag, ...]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_shape(self) -> "SubCategory":
        if self.is_other_placeholder and self.tags:
            raise ValueError(f"Other placeholder '{self.id}' cannot carry tags")
        if self.exclusive and len(self.tags) < 2:
            raise ValueError(f"Exclusive sub-category '{self.id}' needs at least two tags")
        return self


class Category(_Node):
    """Top-level interest grouping."""
    id: str = Field(min_length=1)
    label: str = Field(min_length=1)
    key: CategoryKey | None = None  # None for panels that store no category preferences
    icon: str | None = None
    color: str = "primary"
    text_color: str = "white"
    sub_categories: tuple[SubCategory, ...] = ()
    tags: tuple[Tag, ...] = ()
    follow_up_questions: tuple[FollowUpQuestion, ...] = ()
    follow_up_helper_text: str | None = None
    sub_category_prompt: str | None = None
    popular_instruction_tags: tuple[Tag, ...] = ()
    popular_interest_tags: tuple[Tag, ...] = ()

    @model_validator(mode="after")
    def check_ids(self) -> "Category":
        _require_unique([s.id for s in self.sub_categories], f"sub-category id in '{self.id}'")
        _require_unique([t.id for t in self.all_tags()], f"tag id in '{self.id}'")
        question_ids = [q.id for q in self.follow_up_questions]
        _require_unique(question_ids, f"follow-up question id in '{self.id}'")

        placeholders = [s for s in self.sub_categories if s.is_other_placeholder]
        if len(placeholders) > 1:
            raise ValueError(f"Category '{self.id}' has more than one other placeholder")

        for sub in self.sub_categories:
            unknown = set(sub.popular_answers) - set(question_ids)
            if unknown:
                raise ValueError(
                    f"Sub-category '{sub.id}' has popular answers for unknown questions: {sorted(unknown)}"
                )
        return self

    def all_tags(self) -> Iterator[Tag]:
        """Direct tags first, then sub-category tags in declaration order."""
        yield from self.tags
        for sub in self.sub_categories:
            yield from sub.tags

    def tag(self, tag_id: str) -> Tag | None:
        return next((t for t in self.all_tags() if t.id == tag_id), None)

    def sub_category(self, sub_category_id: str) -> SubCategory | None:
        return next((s for s in self.sub_categories if s.id == sub_category_id), None)

    def follow_up_question(self, question_id: str) -> FollowUpQuestion | None:
        return next((q for q in self.follow_up_questions if q.id == question_id), None)

    @property
    def other_placeholder(self) -> SubCategory | None:
        return next((s for s in self.sub_categories if s.is_other_placeholder), None)

    @property
    def supports_other_override(self) -> bool:
        """Whether a free-text override can stand in for selected tags."""
        return self.other_placeholder is not None

    def exclusive_group(self, tag_id: str) -> frozenset[str] | None:
        """Ids of the exclusive group containing tag_id, if any."""
        for sub in self.sub_categories:
            if sub.exclusive and any(t.id == tag_id for t in sub.tags):
                return frozenset(t.id for t in sub.tags)
        return None


class Taxonomy(_Node):
    """The full category hierarchy."""
    categories: tuple[Category, ...]

    @model_validator(mode="after")
    def check_categories(self) -> "Taxonomy":
        _require_unique([c.id for c in self.categories], "category id")
        keys = [c.key for c in self.categories if c.key is not None]
        _require_unique([k.value for k in keys], "category key")
        missing = set(CategoryKey) - set(keys)
        if missing:
            raise ValueError(f"Taxonomy is missing categories: {sorted(k.value for k in missing)}")
        return self

    def category(self, key: CategoryKey | str) -> Category:
        """Look up a selectable category by key."""
        try:
            key = CategoryKey(key)
        except ValueError:
            raise TaxonomyError(f"Unknown category key: {key}") from None
        return next(c for c in self.categories if c.key == key)

    def category_by_id(self, category_id: str) -> Category:
        for category in self.categories:
            if category.id == category_id:
                return category
        raise TaxonomyError(f"Unknown category: {category_id}")

    def selectable_categories(self) -> list[Category]:
        return [c for c in self.categories if c.key is not None]

    def tag_label(self, key: CategoryKey | str, tag_id: str) -> str:
        """
        Human label for a tag id.

        Unknown ids are echoed back as their own label and reported with a
        DataIntegrityWarning; the caller never sees an exception.
        """
        tag = self.category(key).tag(tag_id)
        if tag is not None:
            return tag.label
        logger.warning(f"Tag '{tag_id}' has no taxonomy entry in {CategoryKey(key).value}")
        warnings.warn(
            f"Tag '{tag_id}' is not part of category '{CategoryKey(key).value}'",
            DataIntegrityWarning,
            stacklevel=2,
        )
        return tag_id

    def tag_labels(self, key: CategoryKey | str, tag_ids: list[str] | tuple[str, ...]) -> list[str]:
        return [self.tag_label(key, tag_id) for tag_id in tag_ids]


def _require_unique(values: list[str], what: str) -> None:
    seen: set[str] = set()
    for value in values:
        if value in seen:
            raise ValueError(f"Duplicate {what}: {value}")
        seen.add(value)


# =============================================================================
# Loading
# =============================================================================


def load_taxonomy(data: dict[str, Any] | None = None) -> Taxonomy:
    """
    Build and validate a taxonomy.

    Args:
        data: Raw taxonomy document; defaults to the built-in catalog

    Raises:
        TaxonomyError: if any id is duplicated or a required category is missing
    """
    if data is None:
        from .catalog import TAXONOMY_DATA
        data = TAXONOMY_DATA

    try:
        return Taxonomy.model_validate(data)
    except PydanticValidationError as e:
        raise TaxonomyError(f"Invalid taxonomy: {e}") from e


@lru_cache
def get_taxonomy() -> Taxonomy:
    """The built-in taxonomy, loaded once."""
    return load_taxonomy()
