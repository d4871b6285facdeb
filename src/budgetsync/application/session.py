from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from budgetsync.infrastructure.persistence.local_state import TOKEN_KEY, StateStore

logger = logging.getLogger(__name__)

SessionListener = Callable[[Optional[str]], None]


class SessionHolder:
    """
    Process-wide holder of the bearer credential.

    The only writer of session state. Listeners run synchronously inside
    `set_credential`/`clear`, so anything that attaches the credential to
    outgoing requests is reconfigured before those methods return.
    """

    def __init__(self, state_store: StateStore):
        self._state_store = state_store
        self._token: str | None = None
        self._generation = 0
        self._listeners: list[SessionListener] = []
        self._lock = threading.RLock()

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def generation(self) -> int:
        return self._generation

    def is_authenticated(self) -> bool:
        return self._token is not None

    def subscribe(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def restore(self) -> bool:
        stored = self._state_store.get(TOKEN_KEY)
        token = stored.strip() if isinstance(stored, str) else ""
        if not token:
            logger.info("Session restore found no persisted credential")
            return False
        with self._lock:
            self._apply(token)
        logger.info("Session restored from local state generation=%d", self._generation)
        return True

    def set_credential(self, token: str) -> None:
        token = (token or "").strip()
        if not token:
            raise ValueError("Credential must be a non-empty string")
        with self._lock:
            self._state_store.put(TOKEN_KEY, token)
            self._apply(token)
        logger.info("Session credential set generation=%d", self._generation)

    def clear(self) -> None:
        with self._lock:
            self._state_store.delete(TOKEN_KEY)
            if self._token is None:
                return
            self._apply(None)
        logger.info("Session cleared generation=%d", self._generation)

    def _apply(self, token: str | None) -> None:
        self._token = token
        self._generation += 1
        for listener in list(self._listeners):
            listener(token)
