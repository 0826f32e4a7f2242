"""
Preference Store.

Holds the canonical profile, persists it after every change, and tells
subscribers about each committed snapshot.

Persistence is whole-document replace: the full profile JSON is written under
one fixed key on every commit, and read once at startup. A commit only
becomes visible after the write succeeded, so a storage failure leaves the
previous snapshot in place.
"""

import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Callable, Protocol

from .errors import PersistenceError
from .state import CategoryPreferences, Profile
from .taxonomy import CategoryKey

logger = logging.getLogger(__name__)

DEFAULT_PROFILE_KEY = "userPreferences"

ProfileListener = Callable[[Profile], None]


# =============================================================================
# Storage Backends
# =============================================================================


class ProfileStorage(Protocol):
    """Key → JSON document storage."""

    def read(self, key: str) -> str | None: ...

    def write(self, key: str, document: str) -> None: ...

    def delete(self, key: str) -> None: ...


class JsonFileStorage:
    """One `<key>.json` file per document, replaced atomically."""

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Failed to read {path}: {e}") from e

    def write(self, key: str, document: str) -> None:
        path = self.path_for(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(document, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            raise PersistenceError(f"Failed to write {path}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self.path_for(key).unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Failed to delete {self.path_for(key)}: {e}") from e


class InMemoryStorage:
    """Dict-backed storage for tests and ephemeral sessions."""

    def __init__(self, documents: dict[str, str] | None = None):
        self.documents: dict[str, str] = dict(documents or {})

    def read(self, key: str) -> str | None:
        return self.documents.get(key)

    def write(self, key: str, document: str) -> None:
        self.documents[key] = document

    def delete(self, key: str) -> None:
        self.documents.pop(key, None)


# =============================================================================
# Store
# =============================================================================


class PreferenceStore:
    """
    Owner of the current profile snapshot.

    Every commit bumps `Profile.version`, writes the whole document, then
    notifies subscribers. Committing a profile equal to the current one is a
    no-op (no write, no version bump, no notification).
    """

    def __init__(self, storage: ProfileStorage | None = None, key: str = DEFAULT_PROFILE_KEY):
        self._storage = storage if storage is not None else InMemoryStorage()
        self._key = key
        self._profile = Profile()
        self._listeners: list[ProfileListener] = []

    @property
    def key(self) -> str:
        return self._key

    @property
    def profile(self) -> Profile:
        return self._profile

    def get(self) -> Profile:
        return self._profile

    def load(self) -> Profile:
        """
        Read the persisted profile, falling back to defaults when none exists.

        Raises:
            PersistenceError: if the document exists but cannot be read or parsed
        """
        document = self._storage.read(self._key)
        if document is None:
            logger.info(f"No stored profile under '{self._key}', starting from defaults")
            self._profile = Profile()
            return self._profile

        try:
            self._profile = Profile.from_json(document)
        except (ValueError, KeyError, TypeError) as e:
            raise PersistenceError(f"Stored profile '{self._key}' is unreadable: {e}") from e

        logger.info(f"Loaded profile '{self._key}' at version {self._profile.version}")
        return self._profile

    def set(self, profile: Profile) -> Profile:
        """
        Commit a new snapshot.

        Raises:
            PersistenceError: if the write fails; the previous snapshot stays current
        """
        current = self._profile
        if replace(profile, version=current.version) == current:
            return current

        committed = replace(profile, version=current.version + 1)
        try:
            self._storage.write(self._key, committed.to_json())
        except PersistenceError:
            logger.error(f"Failed to persist profile '{self._key}' (keeping version {current.version})")
            raise

        self._profile = committed
        self._notify(committed)
        return committed

    def patch(self, **changes) -> Profile:
        """Commit the current profile with some top-level fields replaced."""
        return self.set(replace(self._profile, **changes))

    def update_category(self, key: CategoryKey | str, prefs: CategoryPreferences) -> Profile:
        return self.set(self._profile.with_category(key, prefs))

    def reset(self) -> Profile:
        """Forget the profile entirely (logout-equivalent)."""
        self._storage.delete(self._key)
        self._profile = Profile()
        logger.info(f"Profile '{self._key}' reset to defaults")
        self._notify(self._profile)
        return self._profile

    def subscribe(self, listener: ProfileListener) -> Callable[[], None]:
        """
        Register a listener for committed snapshots.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, profile: Profile) -> None:
        for listener in list(self._listeners):
            try:
                listener(profile)
            except Exception:
                # The commit stands even if a listener fails
                logger.exception(f"Profile listener {listener!r} failed")


def create_store(directory: Path | str | None = None, key: str | None = None) -> PreferenceStore:
    """Build a file-backed store from settings and load the persisted profile."""
    from pulse.config import settings

    storage = JsonFileStorage(directory if directory is not None else settings.preferences_dir)
    store = PreferenceStore(storage, key=key or settings.profile_key)
    store.load()
    return store
