"""
Error kinds raised and reported by the interest configurator.

None of these are fatal: every failure path leaves the stored profile at its
last committed snapshot.
"""


class InterestsError(Exception):
    """Base class for configurator errors."""


class ValidationError(InterestsError):
    """The selection is not complete enough to advance, or an action is not allowed."""

    def __init__(self, messages: str | list[str]):
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))


class ProviderError(InterestsError):
    """The AI follow-up provider failed or returned something unusable."""


class PersistenceError(InterestsError):
    """Reading or writing the persisted profile failed."""


class TaxonomyError(InterestsError):
    """The taxonomy failed load-time validation, or an id is not part of it."""


class DataIntegrityWarning(UserWarning):
    """A profile references an id that has no taxonomy entry."""
