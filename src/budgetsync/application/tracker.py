from __future__ import annotations

import logging
import time
from typing import Any, Mapping

from budgetsync.application.aggregation import summarize, summarize_by_category
from budgetsync.application.auth import AuthService
from budgetsync.application.preferences import PreferencesService
from budgetsync.application.session import SessionHolder
from budgetsync.application.store import Snapshot, TransactionStore
from budgetsync.domain.errors import GatewayError, NetworkError, Unauthenticated
from budgetsync.domain.models import CategoryTotal, ClientState, DerivedSummary, SyncStatus, Transaction
from budgetsync.domain.schemas import TransactionDraft

logger = logging.getLogger(__name__)


class BudgetTracker:
    """
    Session x store state machine.

        unauthenticated --login--> authenticating --ok--> syncing --ok--> ready
        authenticating --fail--> unauthenticated
        syncing --NetworkError--> error --retry--> syncing
        any authenticated state --logout | rejected credential--> unauthenticated

    Summaries are recomputed from the store on every read.
    """

    def __init__(
        self,
        session: SessionHolder,
        store: TransactionStore,
        auth: AuthService,
        preferences: PreferencesService,
    ):
        self._session = session
        self._store = store
        self._auth = auth
        self._preferences = preferences
        self._authenticating = False

    @property
    def session(self) -> SessionHolder:
        return self._session

    @property
    def store(self) -> TransactionStore:
        return self._store

    @property
    def preferences(self) -> PreferencesService:
        return self._preferences

    @property
    def state(self) -> ClientState:
        if self._authenticating:
            return ClientState.AUTHENTICATING
        if not self._session.is_authenticated():
            return ClientState.UNAUTHENTICATED
        status = self._store.sync_status
        if status is SyncStatus.READY:
            return ClientState.READY
        if status is SyncStatus.ERROR:
            return ClientState.ERROR
        return ClientState.SYNCING

    def start(self) -> ClientState:
        """Restore a persisted credential and, if there is one, run the initial sync."""
        if self._session.restore():
            self._sync_quietly("start")
        logger.info("Tracker started state=%s", self.state.value)
        return self.state

    def register(self, username: str, password: str) -> None:
        self._auth.register(username, password)

    def login(self, username: str, password: str) -> ClientState:
        t0 = time.perf_counter()
        self._authenticating = True
        try:
            token = self._auth.login(username, password)
        finally:
            self._authenticating = False
        self._session.set_credential(token)
        logger.info("Tracker login complete in %.2fs", time.perf_counter() - t0)
        self._sync_quietly("login")
        return self.state

    def logout(self) -> None:
        self._session.clear()
        logger.info("Tracker logged out")

    def retry(self) -> ClientState:
        if not self._session.is_authenticated():
            raise Unauthenticated("Cannot retry sync without an authenticated session")
        self._store.refresh()
        return self.state

    def transactions(self) -> Snapshot:
        return self._store.current()

    def add(self, draft: TransactionDraft | Mapping[str, Any]) -> Transaction:
        return self._store.add(draft)

    def edit(self, transaction_id: str, draft: TransactionDraft | Mapping[str, Any]) -> Transaction:
        return self._store.edit(transaction_id, draft)

    def remove(self, transaction_id: str) -> bool:
        return self._store.remove(transaction_id)

    def summary(self) -> DerivedSummary:
        return summarize(self._store.current())

    def category_breakdown(self) -> list[CategoryTotal]:
        return summarize_by_category(self._store.current())

    def _sync_quietly(self, reason: str) -> None:
        # Failures are reflected in `state`: error keeps the credential, a rejected one clears it.
        try:
            self._store.refresh()
        except (NetworkError, GatewayError) as exc:
            logger.warning("Tracker %s sync failed, retry available: %s", reason, exc)
        except Unauthenticated as exc:
            logger.warning("Tracker %s sync rejected credential: %s", reason, exc)
