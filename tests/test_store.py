"""
Tests for the preference store: versioned commits, persistence, broadcast.
"""

from dataclasses import replace

import pytest

from interests.errors import PersistenceError
from interests.state import CategoryPreferences, Profile
from interests.store import (
    DEFAULT_PROFILE_KEY,
    InMemoryStorage,
    JsonFileStorage,
    PreferenceStore,
    create_store,
)


class FailingStorage(InMemoryStorage):
    """Storage whose writes fail once `broken` is set."""

    def __init__(self):
        super().__init__()
        self.broken = False

    def write(self, key, document):
        if self.broken:
            raise PersistenceError("disk full")
        super().write(key, document)


class TestLoad:

    def test_missing_document_gives_defaults(self, store):
        profile = store.load()
        assert profile == Profile()
        assert store.get() is profile

    def test_loads_persisted_document(self, storage):
        saved = Profile(custom_interest_tags=("Chess",), version=3)
        storage.write(DEFAULT_PROFILE_KEY, saved.to_json())
        store = PreferenceStore(storage)
        assert store.load() == saved

    def test_corrupt_document_raises(self, storage):
        storage.write(DEFAULT_PROFILE_KEY, "{not json")
        with pytest.raises(PersistenceError):
            PreferenceStore(storage).load()

    @pytest.mark.parametrize("document", [
        "[]",
        '{"categories": []}',
        '{"categories": {"news": "elections"}}',
        '{"categories": {"news": {"follow_up_answers": {"q": "x"}}}}',
    ])
    def test_wrong_shape_raises_persistence_error(self, storage, document):
        storage.write(DEFAULT_PROFILE_KEY, document)
        store = PreferenceStore(storage)
        with pytest.raises(PersistenceError):
            store.load()
        assert store.get() == Profile()


class TestCommit:

    def test_set_bumps_version_and_persists(self, store, storage):
        committed = store.patch(custom_interest_tags=("Chess",))
        assert committed.version == 1
        assert store.profile is committed
        assert storage.read(DEFAULT_PROFILE_KEY) == committed.to_json()

    def test_unchanged_profile_is_noop(self, store, storage):
        first = store.patch(alerts_paused=True)
        again = store.patch(alerts_paused=True)
        assert again is first
        assert again.version == 1

    def test_update_category(self, store):
        store.update_category("news", CategoryPreferences(selected_tags=("science",)))
        assert store.profile.category("news").selected_tags == ("science",)

    def test_persisted_copy_converges(self, store, storage):
        store.patch(custom_interest_tags=("Chess",))
        store.update_category("news", CategoryPreferences(selected_tags=("elections",)))
        reloaded = PreferenceStore(storage)
        assert reloaded.load() == store.profile

    def test_failed_write_keeps_previous_snapshot(self):
        storage = FailingStorage()
        store = PreferenceStore(storage)
        before = store.patch(alerts_paused=True)

        storage.broken = True
        with pytest.raises(PersistenceError):
            store.patch(alerts_paused=False)

        assert store.profile is before
        assert Profile.from_json(storage.read(DEFAULT_PROFILE_KEY)) == before

    def test_explicit_version_is_ignored(self, store):
        committed = store.set(replace(Profile(alerts_paused=True), version=99))
        assert committed.version == 1


class TestSubscribers:

    def test_listener_receives_committed_snapshot(self, store):
        seen = []
        store.subscribe(seen.append)
        committed = store.patch(alerts_paused=True)
        assert seen == [committed]

    def test_unsubscribe(self, store):
        seen = []
        unsubscribe = store.subscribe(seen.append)
        unsubscribe()
        store.patch(alerts_paused=True)
        assert seen == []

    def test_noop_does_not_notify(self, store):
        seen = []
        store.subscribe(seen.append)
        store.set(store.profile)
        assert seen == []

    def test_failing_listener_does_not_undo_commit(self, store):
        def broken(profile):
            raise RuntimeError("listener bug")

        seen = []
        store.subscribe(broken)
        store.subscribe(seen.append)
        committed = store.patch(alerts_paused=True)

        assert store.profile is committed
        assert seen == [committed]


class TestReset:

    def test_reset_deletes_document(self, store, storage):
        store.patch(alerts_paused=True)
        seen = []
        store.subscribe(seen.append)

        profile = store.reset()

        assert profile == Profile()
        assert storage.read(DEFAULT_PROFILE_KEY) is None
        assert seen == [profile]


class TestJsonFileStorage:

    def test_round_trip_on_disk(self, tmp_path):
        store = PreferenceStore(JsonFileStorage(tmp_path))
        store.update_category("news", CategoryPreferences(selected_tags=("elections",)))

        path = tmp_path / f"{DEFAULT_PROFILE_KEY}.json"
        assert path.exists()
        assert not (tmp_path / f"{DEFAULT_PROFILE_KEY}.json.tmp").exists()
        assert path.read_text(encoding="utf-8") == store.profile.to_json()

        reloaded = PreferenceStore(JsonFileStorage(tmp_path))
        assert reloaded.load() == store.profile

    def test_creates_directory(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "nested" / "prefs")
        storage.write("k", "{}")
        assert storage.read("k") == "{}"

    def test_delete_missing_is_fine(self, tmp_path):
        JsonFileStorage(tmp_path).delete("nothing")

    def test_create_store(self, tmp_path):
        seed = PreferenceStore(JsonFileStorage(tmp_path), key="alice")
        seed.patch(custom_interest_tags=("Chess",))

        store = create_store(tmp_path, key="alice")
        assert store.key == "alice"
        assert store.profile.custom_interest_tags == ("Chess",)
