"""
Interests API Endpoints.

Separate router from the app shell's health endpoint. Every endpoint drives
the single selection engine and answers with the full state, so a client
never has to merge partial updates.

Error mapping:
- ValidationError → 400 (detail is the list of messages)
- TaxonomyError (unknown category, sub-category, question) → 404
- PersistenceError → 500
"""

import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .engine import SelectionEngine
from .errors import InterestsError, PersistenceError, TaxonomyError, ValidationError
from .frequency import apply_frequency, set_alerts_paused, toggle_alerts_paused, validate_frequency
from .store import create_store
from .taxonomy import CategoryKey

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/interests", tags=["interests"])


@lru_cache
def get_engine() -> SelectionEngine:
    """Process-wide engine over the file-backed store."""
    return SelectionEngine(create_store())


# =============================================================================
# Request/Response Models
# =============================================================================


class CategoryRequest(BaseModel):
    category_id: str


class SubCategoryRequest(BaseModel):
    sub_category_id: str


class TextRequest(BaseModel):
    text: str = ""


class TagToggleRequest(BaseModel):
    category: str
    tag_id: str


class PredefinedAnswerRequest(BaseModel):
    category: str
    question_id: str
    tag_label: str


class OtherAnswerRequest(BaseModel):
    category: str
    question_id: str


class OtherAnswerTextRequest(BaseModel):
    category: str
    question_id: str
    text: str = ""


class CustomTagRequest(BaseModel):
    """Instruction tag (scope = category key) or custom interest (scope = "global")."""
    scope: str
    text: str | None = None  # Category scope: defaults to the pending draft


class FrequencyRequest(BaseModel):
    frequency: str
    custom_time: str | None = None


class PauseRequest(BaseModel):
    paused: bool | None = None  # None toggles


class StateResponse(BaseModel):
    """Current profile plus navigation state."""
    profile: dict
    active_category: str | None = None
    active_sub_category: str | None = None
    active_other_input: str | None = None
    instruction_draft: str = ""
    validation_errors: list[str] = Field(default_factory=list)
    loading: dict[str, bool] = Field(default_factory=dict)
    ai_errors: dict[str, str] = Field(default_factory=dict)


class ValidationResponse(BaseModel):
    valid: bool
    errors: list[str]


# =============================================================================
# Helpers
# =============================================================================


def _state(engine: SelectionEngine) -> StateResponse:
    ai_errors = {}
    for key in CategoryKey:
        error = engine.ai_error(key)
        if error is not None:
            ai_errors[key.value] = str(error)

    slot = engine.active_other_input
    return StateResponse(
        profile=engine.profile.to_dict(),
        active_category=engine.active_category,
        active_sub_category=engine.active_sub_category,
        active_other_input=slot.input_id if slot else None,
        instruction_draft=engine.instruction_draft,
        validation_errors=engine.validation_errors,
        loading={key.value: engine.is_loading(key) for key in CategoryKey},
        ai_errors=ai_errors,
    )


def _http_error(e: InterestsError) -> HTTPException:
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=e.messages)
    if isinstance(e, TaxonomyError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, PersistenceError):
        logger.error(f"Failed to save preferences: {e}")
        return HTTPException(status_code=500, detail="Failed to save preferences")
    return HTTPException(status_code=400, detail=str(e))


def _run(engine: SelectionEngine, operation, *args) -> StateResponse:
    """Apply one engine operation and answer with the new state."""
    try:
        operation(*args)
    except InterestsError as e:
        raise _http_error(e) from e
    except ValueError as e:
        # Bad category key or frequency value
        raise HTTPException(status_code=404, detail=str(e)) from e
    return _state(engine)


# =============================================================================
# Endpoints: Taxonomy & State
# =============================================================================


@router.get("/taxonomy")
async def get_taxonomy(engine: SelectionEngine = Depends(get_engine)):
    """Full category hierarchy for rendering the selection UI."""
    return engine.taxonomy.model_dump(mode="json")


@router.get("/state", response_model=StateResponse)
async def get_state(engine: SelectionEngine = Depends(get_engine)) -> StateResponse:
    return _state(engine)


@router.post("/reset", response_model=StateResponse)
async def reset(engine: SelectionEngine = Depends(get_engine)) -> StateResponse:
    """Forget the stored profile (logout-equivalent)."""
    return _run(engine, engine.reset)


# =============================================================================
# Endpoints: Navigation
# =============================================================================


@router.post("/category", response_model=StateResponse)
async def select_category(request: CategoryRequest, engine: SelectionEngine = Depends(get_engine)) -> StateResponse:
    return _run(engine, engine.select_category, request.category_id)


@router.post("/sub-category", response_model=StateResponse)
async def select_sub_category(
    request: SubCategoryRequest, engine: SelectionEngine = Depends(get_engine)
) -> StateResponse:
    return _run(engine, engine.select_sub_category, request.sub_category_id)


@router.put("/other-text", response_model=StateResponse)
async def set_other_text(request: TextRequest, engine: SelectionEngine = Depends(get_engine)) -> StateResponse:
    """Free-text override for the active "other" sub-category."""
    return _run(engine, engine.set_other_text, request.text)


# =============================================================================
# Endpoints: Tags & Fixed Follow-ups
# =============================================================================


@router.post("/tags/toggle", response_model=StateResponse)
async def toggle_tag(request: TagToggleRequest, engine: SelectionEngine = Depends(get_engine)) -> StateResponse:
    return _run(engine, engine.toggle_tag, request.category, request.tag_id)


@router.post("/follow-ups/predefined", response_model=StateResponse)
async def toggle_predefined_answer(
    request: PredefinedAnswerRequest, engine: SelectionEngine = Depends(get_engine)
) -> StateResponse:
    return _run(
        engine,
        engine.toggle_follow_up_predefined_tag,
        request.category,
        request.question_id,
        request.tag_label,
    )


@router.post("/follow-ups/other", response_model=StateResponse)
async def toggle_other_answer(
    request: OtherAnswerRequest, engine: SelectionEngine = Depends(get_engine)
) -> StateResponse:
    """Open (or close) the free-text answer of a question."""
    return _run(engine, engine.set_follow_up_other_active, request.category, request.question_id)


@router.put("/follow-ups/other", response_model=StateResponse)
async def set_other_answer_text(
    request: OtherAnswerTextRequest, engine: SelectionEngine = Depends(get_engine)
) -> StateResponse:
    return _run(
        engine,
        engine.set_follow_up_other_text,
        request.category,
        request.question_id,
        request.text,
    )


@router.get("/follow-ups/{category}/{question_id}/answers")
async def get_predefined_answers(category: str, question_id: str, engine: SelectionEngine = Depends(get_engine)):
    """Answer chips for a question (popular picks of the active sub-category win)."""
    try:
        tags = engine.predefined_answers(category, question_id)
    except TaxonomyError as e:
        raise _http_error(e) from e
    return {"answers": [tag.model_dump() for tag in tags]}


# =============================================================================
# Endpoints: Custom Tags
# =============================================================================


@router.put("/instruction-draft", response_model=StateResponse)
async def set_instruction_draft(request: TextRequest, engine: SelectionEngine = Depends(get_engine)) -> StateResponse:
    return _run(engine, engine.set_instruction_draft, request.text)


@router.post("/custom-tags", response_model=StateResponse)
async def add_custom_tag(request: CustomTagRequest, engine: SelectionEngine = Depends(get_engine)) -> StateResponse:
    return _run(engine, engine.add_custom_tag, request.scope, request.text)


@router.post("/custom-tags/remove", response_model=StateResponse)
async def remove_custom_tag(request: CustomTagRequest, engine: SelectionEngine = Depends(get_engine)) -> StateResponse:
    return _run(engine, engine.remove_custom_tag, request.scope, request.text or "")


@router.post("/custom-tags/toggle", response_model=StateResponse)
async def toggle_custom_tag(request: CustomTagRequest, engine: SelectionEngine = Depends(get_engine)) -> StateResponse:
    """Popular tag chips: add when absent, remove when present."""
    return _run(engine, engine.toggle_custom_tag, request.scope, request.text or "")


# =============================================================================
# Endpoints: AI Follow-ups
# =============================================================================


@router.post("/ai-questions/{category}", response_model=StateResponse)
async def fetch_ai_questions(category: str, engine: SelectionEngine = Depends(get_engine)) -> StateResponse:
    """
    Generate clarifying questions for a category.

    Provider failures are not HTTP errors: the state carries an empty question
    list and a category-scoped message in `ai_errors`.
    """
    try:
        await engine.fetch_ai_follow_ups(category)
    except InterestsError as e:
        raise _http_error(e) from e
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return _state(engine)


@router.put("/ai-questions/{category}/{question_id}", response_model=StateResponse)
async def set_ai_answer(
    category: str, question_id: str, request: TextRequest, engine: SelectionEngine = Depends(get_engine)
) -> StateResponse:
    return _run(engine, engine.set_ai_answer, category, question_id, request.text)


# =============================================================================
# Endpoints: Validation
# =============================================================================


@router.post("/validate", response_model=ValidationResponse)
async def validate(engine: SelectionEngine = Depends(get_engine)) -> ValidationResponse:
    """Check whether the selection may advance to the frequency step."""
    errors = engine.validate()
    return ValidationResponse(valid=not errors, errors=errors)


# =============================================================================
# Endpoints: Frequency & Delivery
# =============================================================================


@router.put("/frequency", response_model=StateResponse)
async def set_frequency(request: FrequencyRequest, engine: SelectionEngine = Depends(get_engine)) -> StateResponse:
    try:
        profile = apply_frequency(engine.profile, request.frequency, request.custom_time)
    except PydanticValidationError as e:
        raise HTTPException(status_code=400, detail=[err["msg"] for err in e.errors()]) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Unknown frequency: {request.frequency}") from e

    errors = validate_frequency(profile)
    if errors:
        raise HTTPException(status_code=400, detail=errors)
    return _run(engine, engine.store.set, profile)


@router.post("/pause", response_model=StateResponse)
async def pause_updates(request: PauseRequest, engine: SelectionEngine = Depends(get_engine)) -> StateResponse:
    """Pause or resume delivery; omitting `paused` toggles."""
    if request.paused is None:
        profile = toggle_alerts_paused(engine.profile)
    else:
        profile = set_alerts_paused(engine.profile, request.paused)
    return _run(engine, engine.store.set, profile)
