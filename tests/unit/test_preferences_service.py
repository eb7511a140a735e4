"""Unit tests for stored UI preferences."""

from mdreview.core.errors import StorageError
from mdreview.core.storage import MemoryStorage
from mdreview.schemas.preferences import PreferencesUpdate
from mdreview.services.preferences_service import (
    COMMENTS_WIDTH_KEY,
    SIDEBAR_WIDTH_KEY,
    THEME_KEY,
    PreferencesService,
)


class UnreadableStorage(MemoryStorage):
    def get(self, key):
        raise StorageError("corrupt profile")


def test_defaults_follow_system_theme():
    prefs = PreferencesService(MemoryStorage()).get()

    assert prefs.theme == "system"
    assert prefs.sidebar_width is None
    assert prefs.comments_width is None


def test_update_writes_individual_keys():
    storage = MemoryStorage()
    service = PreferencesService(storage)

    prefs = service.update(PreferencesUpdate(theme="dark", sidebar_width=280))

    assert prefs.theme == "dark"
    assert prefs.sidebar_width == 280
    assert storage.get(THEME_KEY) == "dark"
    assert storage.get(SIDEBAR_WIDTH_KEY) == 280
    assert storage.get(COMMENTS_WIDTH_KEY) is None


def test_system_theme_clears_stored_choice():
    storage = MemoryStorage({THEME_KEY: "light", COMMENTS_WIDTH_KEY: 400})
    service = PreferencesService(storage)

    prefs = service.update(PreferencesUpdate(theme="system"))

    assert storage.get(THEME_KEY) is None
    assert prefs.theme == "system"
    assert prefs.comments_width == 400


def test_unexpected_stored_values_are_ignored():
    storage = MemoryStorage({THEME_KEY: "sepia", SIDEBAR_WIDTH_KEY: "wide"})

    prefs = PreferencesService(storage).get()

    assert prefs.theme == "system"
    assert prefs.sidebar_width is None


def test_unreadable_storage_falls_back_to_defaults():
    assert PreferencesService(UnreadableStorage()).get().theme == "system"
