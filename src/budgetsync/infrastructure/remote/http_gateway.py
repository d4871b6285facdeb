from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from budgetsync.domain.errors import GatewayError
from budgetsync.domain.models import Transaction
from budgetsync.domain.schemas import RemoteTransaction, TransactionDraft, describe_errors
from budgetsync.infrastructure.remote.gateway import TransactionGateway
from budgetsync.infrastructure.remote.http_client import ApiHttpClient

logger = logging.getLogger(__name__)


class HttpTransactionGateway(TransactionGateway):
    """Adapter for the remote `/transactions` resource."""

    def __init__(self, client: ApiHttpClient | None = None) -> None:
        self._client = client or ApiHttpClient()

    @property
    def client(self) -> ApiHttpClient:
        return self._client

    def set_authorization(self, token: str | None) -> None:
        self._client.set_authorization(token)

    def list_all(self) -> list[Transaction]:
        rows = self._client.request("GET", "/transactions")
        if rows is None:
            rows = []
        if not isinstance(rows, list):
            raise GatewayError(f"Expected transaction rows list, got {type(rows).__name__}")

        transactions = [self._normalize_transaction_row(row) for row in rows]
        logger.info("HttpTransactionGateway listed transactions count=%d", len(transactions))
        return transactions

    def create(self, draft: TransactionDraft) -> Transaction:
        row = self._client.request("POST", "/transactions", draft.to_payload())
        transaction = self._normalize_transaction_row(row)
        logger.info("HttpTransactionGateway created transaction id=%s", transaction.id)
        return transaction

    def update(self, transaction_id: str, draft: TransactionDraft) -> Transaction:
        path = f"/transactions/{self._client.quote(transaction_id)}"
        row = self._client.request("PUT", path, draft.to_payload())
        transaction = self._normalize_transaction_row(row)
        if transaction.id != str(transaction_id):
            raise GatewayError(f"Update of {transaction_id!r} returned transaction {transaction.id!r}")
        logger.info("HttpTransactionGateway updated transaction id=%s", transaction.id)
        return transaction

    def delete(self, transaction_id: str) -> None:
        path = f"/transactions/{self._client.quote(transaction_id)}"
        self._client.request("DELETE", path)
        logger.info("HttpTransactionGateway deleted transaction id=%s", transaction_id)

    def _normalize_transaction_row(self, row: Any) -> Transaction:
        if not isinstance(row, dict):
            raise GatewayError(f"Expected transaction object from remote store, got {type(row).__name__}")
        try:
            remote = RemoteTransaction.model_validate(row)
        except PydanticValidationError as exc:
            raise GatewayError(
                f"Remote transaction did not match schema: {'; '.join(describe_errors(exc))}"
            ) from exc
        return remote.to_transaction()
