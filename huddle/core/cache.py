"""In-memory view cache keyed by page path, invalidated path-by-path after mutations."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

_MISSING = object()


class ViewCache:
    """Caches rendered read results per (path, user, variant).

    Mutation services call invalidate() with the hand-enumerated paths whose
    views they affect; every user's entry for those paths is dropped.
    """

    def __init__(self):
        self._entries: Dict[str, Dict[Tuple[str, str], Any]] = {}
        self._lock = threading.Lock()

    def get(self, path: str, user_id: str, variant: str = "") -> Optional[Any]:
        with self._lock:
            value = self._entries.get(path, {}).get((user_id, variant), _MISSING)
        if value is _MISSING:
            return None
        return value

    def set(self, path: str, user_id: str, value: Any, variant: str = "") -> None:
        with self._lock:
            self._entries.setdefault(path, {})[(user_id, variant)] = value

    def invalidate(self, *paths: str) -> None:
        with self._lock:
            for path in paths:
                self._entries.pop(path, None)
        logger.debug(f"Invalidated views: {', '.join(paths)}")

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


_view_cache = ViewCache()


def get_view_cache() -> ViewCache:
    return _view_cache
