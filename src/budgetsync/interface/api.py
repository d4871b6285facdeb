from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import Body, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from budgetsync.application.tracker import BudgetTracker
from budgetsync.domain.errors import (
    AuthenticationFailed,
    BudgetSyncError,
    Busy,
    GatewayError,
    NetworkError,
    NotFound,
    NotLocal,
    Unauthenticated,
    ValidationError,
)
from budgetsync.domain.schemas import Credentials, ThemePreference

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[BudgetSyncError], int] = {
    ValidationError: 422,
    Unauthenticated: 401,
    AuthenticationFailed: 401,
    NotFound: 404,
    NotLocal: 404,
    Busy: 409,
    NetworkError: 503,
    GatewayError: 502,
}


def _status_for(exc: BudgetSyncError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 500


def create_app(tracker: BudgetTracker | None = None) -> FastAPI:
    """Local facade over the tracker for a display/chart front end."""
    if tracker is None:
        from budgetsync.interface.cli import build_tracker

        tracker = build_tracker()

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        await run_in_threadpool(tracker.start)
        yield

    app = FastAPI(title="budgetsync", lifespan=lifespan)
    app.state.tracker = tracker

    @app.exception_handler(BudgetSyncError)
    async def handle_budgetsync_error(_request: Request, exc: BudgetSyncError) -> JSONResponse:
        status = _status_for(exc)
        content: dict[str, Any] = {"error": str(exc), "kind": type(exc).__name__}
        if isinstance(exc, ValidationError):
            content["errors"] = exc.errors
        logger.info("API request failed status=%d kind=%s", status, type(exc).__name__)
        return JSONResponse(status_code=status, content=content)

    def session_payload() -> dict[str, Any]:
        return {
            "state": tracker.state.value,
            "authenticated": tracker.session.is_authenticated(),
            "transaction_count": len(tracker.transactions()),
        }

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/register")
    def register(credentials: Credentials) -> dict[str, str]:
        tracker.register(credentials.username, credentials.password)
        return {"registered": credentials.username}

    @app.post("/login")
    def login(credentials: Credentials) -> dict[str, Any]:
        tracker.login(credentials.username, credentials.password)
        return session_payload()

    @app.post("/logout")
    def logout() -> dict[str, Any]:
        tracker.logout()
        return session_payload()

    @app.get("/session")
    def session() -> dict[str, Any]:
        return session_payload()

    @app.post("/refresh")
    def refresh() -> dict[str, Any]:
        tracker.retry()
        return session_payload()

    @app.get("/transactions", response_model=None)
    def list_transactions() -> list[dict[str, Any]]:
        return [txn.to_payload() for txn in tracker.transactions()]

    @app.post("/transactions", status_code=201, response_model=None)
    def create_transaction(payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
        return tracker.add(payload).to_payload()

    @app.put("/transactions/{transaction_id}", response_model=None)
    def update_transaction(transaction_id: str, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
        return tracker.edit(transaction_id, payload).to_payload()

    @app.delete("/transactions/{transaction_id}")
    def delete_transaction(transaction_id: str) -> dict[str, Any]:
        removed = tracker.remove(transaction_id)
        return {"id": transaction_id, "removed_local": removed}

    @app.get("/summary", response_model=None)
    def summary() -> dict[str, Any]:
        payload = tracker.summary().to_payload()
        payload["categories"] = [row.to_payload() for row in tracker.category_breakdown()]
        return payload

    @app.get("/preferences/theme")
    def get_theme() -> dict[str, str]:
        return {"theme": tracker.preferences.theme()}

    @app.put("/preferences/theme")
    def put_theme(preference: ThemePreference) -> dict[str, str]:
        return {"theme": tracker.preferences.set_theme(preference.theme)}

    return app
