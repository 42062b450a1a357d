"""In-process cache for dashboard and deck-detail read models.

Mutations invalidate the entries they affect so the next read goes back to
the database.
"""

import logging
from typing import Any

logger = logging.getLogger(__name__)


class ViewCache:
    """Maps a view key (``dashboard:<user>`` or ``deck:<id>``) to a rendered payload."""

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}

    @staticmethod
    def dashboard_key(user_id: str) -> str:
        return f"dashboard:{user_id}"

    @staticmethod
    def deck_key(deck_id: int) -> str:
        return f"deck:{deck_id}"

    def get(self, key: str) -> Any | None:
        return self._entries.get(key)

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = value

    def invalidate(self, key: str) -> None:
        if self._entries.pop(key, None) is not None:
            logger.debug("Invalidated cached view %s", key)

    def invalidate_dashboard(self, user_id: str) -> None:
        self.invalidate(self.dashboard_key(user_id))

    def invalidate_deck(self, deck_id: int) -> None:
        self.invalidate(self.deck_key(deck_id))

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._entries


view_cache = ViewCache()
