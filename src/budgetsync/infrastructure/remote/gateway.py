from __future__ import annotations

from abc import ABC, abstractmethod

from budgetsync.domain.models import Transaction
from budgetsync.domain.schemas import TransactionDraft


class TransactionGateway(ABC):
    """
    Remote transaction store contract.

    Every call needs an authenticated session. Implementations raise
    `Unauthenticated`, `NotFound`, `ValidationError`, `NetworkError` or
    `GatewayError` and never swallow them.
    """

    @abstractmethod
    def list_all(self) -> list[Transaction]:
        raise NotImplementedError

    @abstractmethod
    def create(self, draft: TransactionDraft) -> Transaction:
        raise NotImplementedError

    @abstractmethod
    def update(self, transaction_id: str, draft: TransactionDraft) -> Transaction:
        raise NotImplementedError

    @abstractmethod
    def delete(self, transaction_id: str) -> None:
        raise NotImplementedError

    def set_authorization(self, token: str | None) -> None:
        """Called by the session holder whenever the credential changes."""
