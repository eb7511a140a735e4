"""UI preferences kept in the profile storage next to the comments."""

from __future__ import annotations

import logging

from mdreview.core.errors import StorageError
from mdreview.core.metrics import record_storage_failure
from mdreview.core.storage import KeyValueStorage
from mdreview.core.structured_logging import log_json
from mdreview.schemas.preferences import Preferences, PreferencesUpdate

logger = logging.getLogger(__name__)

THEME_KEY = "md-review-theme"
SIDEBAR_WIDTH_KEY = "md-review-sidebar-width"
COMMENTS_WIDTH_KEY = "md-review-comments-width"

_WIDTH_KEYS = {
    "sidebar_width": SIDEBAR_WIDTH_KEY,
    "comments_width": COMMENTS_WIDTH_KEY,
}


class PreferencesService:
    """Reads and writes theme and panel-width preferences."""

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage

    def _get(self, key: str):
        try:
            return self.storage.get(key)
        except StorageError as exc:
            record_storage_failure("read")
            log_json(logger, logging.WARNING, "preference_read_failed", key=key, error=str(exc))
            return None

    def get(self) -> Preferences:
        theme = self._get(THEME_KEY)
        values: dict = {"theme": theme if theme in ("light", "dark") else "system"}
        for field, key in _WIDTH_KEYS.items():
            width = self._get(key)
            if isinstance(width, int) and not isinstance(width, bool):
                values[field] = width
        return Preferences(**values)

    def update(self, update: PreferencesUpdate) -> Preferences:
        """Apply the fields present in ``update``; theme ``system`` clears the stored theme."""
        changes = update.model_dump(exclude_unset=True)
        try:
            if "theme" in changes:
                if changes["theme"] in ("system", None):
                    self.storage.delete(THEME_KEY)
                else:
                    self.storage.set(THEME_KEY, changes["theme"])
            for field, key in _WIDTH_KEYS.items():
                if field in changes:
                    if changes[field] is None:
                        self.storage.delete(key)
                    else:
                        self.storage.set(key, changes[field])
        except StorageError as exc:
            record_storage_failure("write")
            log_json(logger, logging.ERROR, "preference_write_failed", error=str(exc))
        return self.get()
