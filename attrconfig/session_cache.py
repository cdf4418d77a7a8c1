import os
import threading
import time
from typing import Dict, Optional

from attrconfig.editing_session import EditingSession
from attrconfig.errors import NotFound

SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "3600"))


class SessionCache:
    """
    In-memory registry of open editing sessions with:
    - sliding TTL (expires ttl_seconds after last touch)
    - shop check on every lookup (a session is only visible to its own shop)
    - thread-safe operations
    """

    def __init__(self, ttl_seconds: int = SESSION_TTL_SECONDS):
        self.ttl_seconds = ttl_seconds
        self._lock = threading.Lock()
        # session_id -> {"session": EditingSession, "expires_at": float}
        self._items: Dict[str, Dict[str, object]] = {}

    def put(self, session: EditingSession) -> None:
        with self._lock:
            self._items[session.session_id] = {
                "session": session,
                "expires_at": time.time() + self.ttl_seconds,
            }

    def _get_unlocked(self, session_id: str) -> Optional[EditingSession]:
        now = time.time()
        item = self._items.get(session_id)
        if item is None:
            return None
        if float(item["expires_at"]) <= now:
            del self._items[session_id]
            return None
        item["expires_at"] = now + self.ttl_seconds
        return item["session"]  # type: ignore[return-value]

    def get(self, shop: str, session_id: str) -> EditingSession:
        with self._lock:
            session = self._get_unlocked(str(session_id))
        if session is None or session.shop != shop:
            raise NotFound("Session", str(session_id))
        return session

    def remove(self, shop: str, session_id: str) -> None:
        with self._lock:
            item = self._items.get(str(session_id))
            if item is None or item["session"].shop != shop:  # type: ignore[union-attr]
                raise NotFound("Session", str(session_id))
            del self._items[str(session_id)]

    def sweep_expired(self) -> int:
        """
        Delete expired sessions. Returns how many entries were removed.
        """
        now = time.time()
        removed = 0
        with self._lock:
            expired = [k for k, v in self._items.items() if float(v["expires_at"]) <= now]
            for k in expired:
                del self._items[k]
                removed += 1
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
