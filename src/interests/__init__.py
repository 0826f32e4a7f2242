"""
Pulse Interest Configurator.

Walks a user through the interest taxonomy and builds the preference profile
that the delivery pipeline consumes.

Pieces:
1. Taxonomy - categories, sub-categories, tags, fixed follow-up questions
2. Profile + Preference Store - versioned snapshots, persisted on every change
3. Selection Engine - navigation, toggles, answers, custom tags, validation
4. AI Follow-ups - clarifying questions from the LLM (placeholder without a key)
5. Frequency - delivery schedule and pause flag
"""

from .engine import OtherInputSlot, SelectionEngine
from .errors import (
    DataIntegrityWarning,
    InterestsError,
    PersistenceError,
    ProviderError,
    TaxonomyError,
    ValidationError,
)
from .state import CategoryPreferences, Profile, UpdateFrequency
from .store import PreferenceStore, create_store
from .taxonomy import CategoryKey, get_taxonomy

__all__ = [
    "SelectionEngine",
    "OtherInputSlot",
    "PreferenceStore",
    "create_store",
    "Profile",
    "CategoryPreferences",
    "UpdateFrequency",
    "CategoryKey",
    "get_taxonomy",
    "InterestsError",
    "ValidationError",
    "ProviderError",
    "PersistenceError",
    "TaxonomyError",
    "DataIntegrityWarning",
]
