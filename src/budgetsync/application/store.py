from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Mapping, Optional, TypeVar

from budgetsync.application.session import SessionHolder
from budgetsync.domain.errors import Busy, NotFound, NotLocal, StaleSession, Unauthenticated
from budgetsync.domain.models import SyncStatus, Transaction
from budgetsync.domain.schemas import TransactionDraft, parse_draft
from budgetsync.infrastructure.remote.gateway import TransactionGateway

logger = logging.getLogger(__name__)

Snapshot = tuple[Transaction, ...]
StoreListener = Callable[[Snapshot], None]
T = TypeVar("T")


class TransactionStore:
    """
    Canonical local collection of transactions.

    Writes are pessimistic: the collection only changes after the gateway
    confirms the operation, so it always mirrors the last confirmed remote
    state. One gateway operation runs at a time; a second one submitted while
    the first is outstanding is rejected with `Busy`.

    Each operation remembers the session generation it started under. If the
    session changes before the response arrives, the response is discarded and
    `StaleSession` is raised.
    """

    def __init__(self, gateway: TransactionGateway, session: SessionHolder):
        self._gateway = gateway
        self._session = session
        self._transactions: Snapshot = ()
        self._sync_status = SyncStatus.PENDING
        self._listeners: list[StoreListener] = []
        self._op_lock = threading.Lock()
        self._state_lock = threading.RLock()
        session.subscribe(self._on_session_changed)

    # ---- reads ----
    def current(self) -> Snapshot:
        return self._transactions

    def get(self, transaction_id: str) -> Optional[Transaction]:
        transaction_id = str(transaction_id)
        for txn in self._transactions:
            if txn.id == transaction_id:
                return txn
        return None

    @property
    def sync_status(self) -> SyncStatus:
        return self._sync_status

    def subscribe(self, listener: StoreListener) -> None:
        self._listeners.append(listener)

    # ---- synchronization ----
    def refresh(self) -> Snapshot:
        with self._operation("refresh"):
            generation = self._require_session("refresh")
            self._set_status(generation, SyncStatus.SYNCING)
            try:
                transactions = self._call("refresh", generation, self._gateway.list_all)
            except Unauthenticated:
                raise
            except Exception:
                self._set_status(generation, SyncStatus.ERROR)
                raise

            snapshot = self._apply(generation, lambda _current: tuple(transactions))
            self._set_status(generation, SyncStatus.READY)
            logger.info("Store refresh applied count=%d", len(snapshot))
            return snapshot

    def add(self, draft: TransactionDraft | Mapping[str, Any]) -> Transaction:
        parsed = parse_draft(draft)
        with self._operation("add"):
            generation = self._require_session("add")
            created = self._call("add", generation, lambda: self._gateway.create(parsed))
            snapshot = self._apply(generation, lambda current: current + (created,))
            logger.info("Store add confirmed id=%s count=%d", created.id, len(snapshot))
            return created

    def edit(self, transaction_id: str, draft: TransactionDraft | Mapping[str, Any]) -> Transaction:
        transaction_id = str(transaction_id)
        parsed = parse_draft(draft)
        with self._operation("edit"):
            generation = self._require_session("edit")
            if self.get(transaction_id) is None:
                raise NotLocal(f"No local transaction with id {transaction_id!r}")
            updated = self._call("edit", generation, lambda: self._gateway.update(transaction_id, parsed))

            def replace(current: Snapshot) -> Snapshot:
                return tuple(updated if txn.id == transaction_id else txn for txn in current)

            self._apply(generation, replace)
            logger.info("Store edit confirmed id=%s", transaction_id)
            return updated

    def remove(self, transaction_id: str) -> bool:
        """
        Delete a transaction remotely, then locally.

        A remote `NotFound` counts as success: either way the transaction no
        longer exists. Returns True when a local entry was removed.
        """
        transaction_id = str(transaction_id)
        with self._operation("remove"):
            generation = self._require_session("remove")
            try:
                self._call("remove", generation, lambda: self._gateway.delete(transaction_id))
            except NotFound:
                logger.info("Store remove treating remote NotFound as success id=%s", transaction_id)

            def drop(current: Snapshot) -> Snapshot:
                kept = tuple(txn for txn in current if txn.id != transaction_id)
                return current if len(kept) == len(current) else kept

            before = len(self._transactions)
            snapshot = self._apply(generation, drop)
            removed = len(snapshot) < before
            logger.info("Store remove confirmed id=%s removed_local=%s", transaction_id, removed)
            return removed

    def clear(self) -> None:
        with self._state_lock:
            changed = bool(self._transactions)
            self._transactions = ()
            self._sync_status = SyncStatus.PENDING
        if changed:
            self._notify(())

    # ---- internals ----
    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        if not self._op_lock.acquire(blocking=False):
            logger.info("Store rejected %s: another operation is outstanding", name)
            raise Busy(f"Cannot {name} while another operation is outstanding")
        try:
            yield
        finally:
            self._op_lock.release()

    def _require_session(self, name: str) -> int:
        if not self._session.is_authenticated():
            raise Unauthenticated(f"Cannot {name} without an authenticated session")
        return self._session.generation

    def _call(self, name: str, generation: int, fn: Callable[[], T]) -> T:
        started = time.perf_counter()
        try:
            result = fn()
        except Unauthenticated:
            logger.warning("Store %s rejected by remote store; clearing session", name)
            if self._session.generation == generation:
                self._session.clear()
            raise
        logger.debug("Store %s gateway call complete in %.2fs", name, time.perf_counter() - started)
        return result

    def _apply(self, generation: int, mutate: Callable[[Snapshot], Snapshot]) -> Snapshot:
        with self._state_lock:
            if self._session.generation != generation:
                logger.warning("Store discarding response from a previous session generation=%d", generation)
                raise StaleSession("Session changed while the request was outstanding; response discarded")
            current = self._transactions
            updated = mutate(current)
            self._transactions = updated
        if updated is not current:
            self._notify(updated)
        return updated

    def _set_status(self, generation: int, status: SyncStatus) -> None:
        with self._state_lock:
            if self._session.generation == generation:
                self._sync_status = status

    def _on_session_changed(self, token: Optional[str]) -> None:
        # A new credential may belong to another user; nothing local survives it.
        self.clear()

    def _notify(self, snapshot: Snapshot) -> None:
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Store listener failed listener=%r", listener)
