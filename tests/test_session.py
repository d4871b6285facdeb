from __future__ import annotations

import unittest

from budgetsync.application.session import SessionHolder
from budgetsync.infrastructure.persistence.local_state import TOKEN_KEY, InMemoryStateStore


class SessionHolderTests(unittest.TestCase):
    def test_restore_without_persisted_token(self) -> None:
        session = SessionHolder(InMemoryStateStore())

        self.assertFalse(session.restore())
        self.assertFalse(session.is_authenticated())
        self.assertIsNone(session.token)

    def test_restore_with_persisted_token(self) -> None:
        seen: list[str | None] = []
        session = SessionHolder(InMemoryStateStore({TOKEN_KEY: "tok-1"}))
        session.subscribe(seen.append)

        self.assertTrue(session.restore())
        self.assertTrue(session.is_authenticated())
        self.assertEqual(seen, ["tok-1"])

    def test_set_credential_persists_and_notifies_before_returning(self) -> None:
        state = InMemoryStateStore()
        session = SessionHolder(state)
        seen: list[str | None] = []
        session.subscribe(lambda token: seen.append(token))

        session.set_credential("tok-2")

        self.assertEqual(state.get(TOKEN_KEY), "tok-2")
        self.assertEqual(seen, ["tok-2"])
        self.assertEqual(session.generation, 1)

    def test_clear_removes_token_everywhere(self) -> None:
        state = InMemoryStateStore()
        session = SessionHolder(state)
        seen: list[str | None] = []
        session.subscribe(seen.append)
        session.set_credential("tok-2")

        session.clear()

        self.assertIsNone(state.get(TOKEN_KEY))
        self.assertFalse(session.is_authenticated())
        self.assertEqual(seen, ["tok-2", None])
        self.assertEqual(session.generation, 2)

    def test_clear_without_session_is_a_noop_but_drops_stale_storage(self) -> None:
        state = InMemoryStateStore({TOKEN_KEY: "old"})
        session = SessionHolder(state)
        seen: list[str | None] = []
        session.subscribe(seen.append)

        session.clear()

        self.assertIsNone(state.get(TOKEN_KEY))
        self.assertEqual(seen, [])
        self.assertEqual(session.generation, 0)

    def test_blank_credential_is_rejected(self) -> None:
        session = SessionHolder(InMemoryStateStore())

        with self.assertRaises(ValueError):
            session.set_credential("   ")
        self.assertFalse(session.is_authenticated())


if __name__ == "__main__":
    unittest.main()
