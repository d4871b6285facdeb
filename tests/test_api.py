from __future__ import annotations

import asyncio
import unittest

from fastapi.testclient import TestClient

from budgetsync.domain.errors import NetworkError
from budgetsync.interface.api import create_app
from fakes import FakeGateway, build, txn


class BudgetSyncApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.gateway = FakeGateway(rows=[
            txn("1", "income", "1000", category="Salary"),
            txn("2", "expense", "300", category="Rent"),
        ])
        self.tracker, _, _ = build(self.gateway)
        self.client = TestClient(create_app(self.tracker))

    def _login(self) -> None:
        resp = self.client.post("/login", json={"username": "alice", "password": "secret"})
        self.assertEqual(resp.status_code, 200)

    def test_health(self) -> None:
        self.assertEqual(self.client.get("/health").json(), {"status": "ok"})

    def test_login_and_session(self) -> None:
        resp = self.client.post("/login", json={"username": "alice", "password": "secret"})

        self.assertEqual(resp.json(), {"state": "ready", "authenticated": True, "transaction_count": 2})

    def test_bad_login_is_401(self) -> None:
        resp = self.client.post("/login", json={"username": "alice", "password": "nope"})

        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["kind"], "AuthenticationFailed")

    def test_transactions_require_session(self) -> None:
        resp = self.client.post(
            "/transactions",
            json={"type": "expense", "category": "Food", "amount": 12, "date": "2026-01-03"},
        )

        self.assertEqual(resp.status_code, 401)
        self.assertEqual(self.client.get("/transactions").json(), [])

    def test_crud_round_trip_updates_summary(self) -> None:
        self._login()

        created = self.client.post(
            "/transactions",
            json={"type": "expense", "category": "Food", "amount": 200, "date": "2026-01-03"},
        )
        self.assertEqual(created.status_code, 201)
        new_id = created.json()["id"]
        self.assertEqual(created.json()["date"], "2026-01-03")

        summary = self.client.get("/summary").json()
        self.assertEqual(summary["income_total"], 1000)
        self.assertEqual(summary["expense_total"], 500)
        self.assertEqual(summary["balance"], 500)
        self.assertEqual(summary["series"], [
            {"category": "income", "value": 1000},
            {"category": "expense", "value": 500},
        ])
        self.assertEqual(
            summary["categories"][0],
            {"category": "Salary", "type": "income", "total": 1000, "txn_count": 1},
        )

        updated = self.client.put(
            f"/transactions/{new_id}",
            json={"type": "expense", "category": "Food", "amount": 50, "date": "2026-01-03"},
        )
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(self.client.get("/summary").json()["balance"], 650)

        deleted = self.client.delete(f"/transactions/{new_id}")
        self.assertEqual(deleted.json(), {"id": new_id, "removed_local": True})
        self.assertEqual(len(self.client.get("/transactions").json()), 2)

    def test_validation_error_is_422_with_details(self) -> None:
        self._login()

        resp = self.client.post(
            "/transactions",
            json={"type": "expense", "category": "", "amount": -3, "date": "2026-01-03"},
        )

        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json()["kind"], "ValidationError")
        self.assertEqual(len(resp.json()["errors"]), 2)
        self.assertEqual(self.gateway.calls, ["list_all"])

    def test_edit_unknown_id_is_404(self) -> None:
        self._login()

        resp = self.client.put(
            "/transactions/999",
            json={"type": "expense", "category": "Food", "amount": 5, "date": "2026-01-03"},
        )

        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["kind"], "NotLocal")

    def test_network_error_is_503_and_refresh_recovers(self) -> None:
        self._login()
        self.gateway.fail_with = NetworkError("refused")

        self.assertEqual(self.client.post("/refresh").status_code, 503)
        self.assertEqual(self.client.get("/session").json()["state"], "error")

        self.assertEqual(self.client.post("/refresh").json()["state"], "ready")

    def test_logout(self) -> None:
        self._login()

        resp = self.client.post("/logout")

        self.assertEqual(resp.json(), {"state": "unauthenticated", "authenticated": False, "transaction_count": 0})

    def test_startup_restores_saved_session_off_the_event_loop(self) -> None:
        tracker, gateway, _ = build(FakeGateway(rows=[txn("1", "income", "10")]), state={"token": "tok-1"})
        loop_running: list[bool] = []
        original_start = tracker.start

        def recording_start():
            try:
                asyncio.get_running_loop()
                loop_running.append(True)
            except RuntimeError:
                loop_running.append(False)
            return original_start()

        tracker.start = recording_start

        with TestClient(create_app(tracker)) as client:
            self.assertEqual(client.get("/session").json(), {"state": "ready", "authenticated": True, "transaction_count": 1})

        self.assertEqual(gateway.calls, ["list_all"])
        self.assertEqual(loop_running, [False])

    def test_theme_preference(self) -> None:
        self.assertEqual(self.client.get("/preferences/theme").json(), {"theme": "light"})

        self.assertEqual(self.client.put("/preferences/theme", json={"theme": "dark"}).json(), {"theme": "dark"})
        self.assertEqual(self.client.get("/preferences/theme").json(), {"theme": "dark"})
        self.assertEqual(self.client.put("/preferences/theme", json={"theme": "neon"}).status_code, 422)


if __name__ == "__main__":
    unittest.main()
