"""
Token Store

In-process map of operator id to OAuth token.
Entries are never shared across operators and are replaced wholesale.
"""

from collections.abc import Iterator
from contextlib import contextmanager
import threading

import structlog

from recruiting.shared.models.oauth import OAuthToken

log = structlog.get_logger()


class TokenStore:
    """
    Thread-safe per-operator token map.

    `lock(operator_id)` yields an exclusive section for one operator, so a
    read-check-refresh-write sequence cannot interleave with another for
    the same key. Different operators never block each other.
    """

    def __init__(self) -> None:
        self._tokens: dict[str, OAuthToken] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _key_lock(self, operator_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(operator_id)
            if lock is None:
                lock = self._locks[operator_id] = threading.Lock()
            return lock

    @contextmanager
    def lock(self, operator_id: str) -> Iterator[None]:
        """Exclusive critical section for one operator's token."""
        key_lock = self._key_lock(operator_id)
        with key_lock:
            yield

    def get(self, operator_id: str) -> OAuthToken | None:
        with self._guard:
            return self._tokens.get(operator_id)

    def put(self, operator_id: str, token: OAuthToken) -> None:
        with self._guard:
            self._tokens[operator_id] = token
        log.debug("oauth_token_stored", operator_id=operator_id, expires_at=token.expires_at.isoformat())

    def clear(self, operator_id: str) -> bool:
        """Drop an operator's token. Returns True if one was held."""
        with self._guard:
            removed = self._tokens.pop(operator_id, None)
        if removed is not None:
            log.info("oauth_token_cleared", operator_id=operator_id)
        return removed is not None

    def clear_all(self) -> None:
        with self._guard:
            self._tokens.clear()

    def is_connected(self, operator_id: str) -> bool:
        return self.get(operator_id) is not None

    def connected_count(self) -> int:
        """Number of operators holding a token."""
        with self._guard:
            return len(self._tokens)
