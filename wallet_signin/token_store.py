# wallet_signin/token_store.py

import logging
import threading
import time
from typing import Callable, Dict

logger = logging.getLogger(__name__)


class ExpiringKeyStore:
    """
    In-memory set of keys that each expire at a given unix timestamp.

    Used to remember consumed nonces and revoked session tokens for exactly
    as long as the matching token could still verify. Share the clock with
    the token decoder: a token is valid while now < exp, and its entry is
    kept for exactly that long. Entries are purged lazily on every access.
    WARNING: This is lost on server restart and is not shared between worker
    processes. Consider Redis with SETEX for multi-process deployments.
    """

    def __init__(self, name: str, clock: Callable[[], float] = time.time):
        self.name = name
        self._clock = clock
        self._entries: Dict[str, float] = {}
        self._lock = threading.Lock()

    def _purge_expired(self, now: float):
        expired_keys = [key for key, expires_at in self._entries.items() if expires_at <= now]
        for key in expired_keys:
            del self._entries[key]
        if expired_keys:
            logger.debug(f"[{self.name}] Evicted {len(expired_keys)} expired entries")

    def add(self, key: str, expires_at: float) -> bool:
        """
        Records key until expires_at. Returns False if the key is already
        present and unexpired, True if it was newly added.
        """
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            if key in self._entries:
                return False
            self._entries[key] = expires_at
            return True

    def contains(self, key: str) -> bool:
        with self._lock:
            self._purge_expired(self._clock())
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            self._purge_expired(self._clock())
            return len(self._entries)
