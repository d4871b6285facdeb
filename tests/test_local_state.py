from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from budgetsync.application.preferences import PreferencesService
from budgetsync.application.session import SessionHolder
from budgetsync.domain.errors import ValidationError
from budgetsync.infrastructure.persistence.local_state import THEME_KEY, TOKEN_KEY, InMemoryStateStore, LocalStateStore


class LocalStateStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "nested" / "state.json"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_missing_file_reads_empty(self) -> None:
        self.assertIsNone(LocalStateStore(self.path).get(TOKEN_KEY))

    def test_values_survive_a_new_instance(self) -> None:
        LocalStateStore(self.path).put(TOKEN_KEY, "tok-1")
        LocalStateStore(self.path).put(THEME_KEY, "dark")

        store = LocalStateStore(self.path)
        self.assertEqual(store.get(TOKEN_KEY), "tok-1")
        self.assertEqual(json.loads(self.path.read_text()), {"theme": "dark", "token": "tok-1"})

    def test_delete_keeps_other_keys(self) -> None:
        store = LocalStateStore(self.path)
        store.put(TOKEN_KEY, "tok-1")
        store.put(THEME_KEY, "dark")

        store.delete(TOKEN_KEY)

        self.assertIsNone(store.get(TOKEN_KEY))
        self.assertEqual(store.get(THEME_KEY), "dark")

    def test_corrupt_file_is_treated_as_empty(self) -> None:
        self.path.parent.mkdir(parents=True)
        self.path.write_text("{not json")

        self.assertIsNone(LocalStateStore(self.path).get(TOKEN_KEY))

    def test_session_round_trip_across_restart(self) -> None:
        SessionHolder(LocalStateStore(self.path)).set_credential("tok-1")

        restarted = SessionHolder(LocalStateStore(self.path))

        self.assertTrue(restarted.restore())
        self.assertEqual(restarted.token, "tok-1")


class PreferencesServiceTests(unittest.TestCase):
    def test_defaults_to_light(self) -> None:
        self.assertEqual(PreferencesService(InMemoryStateStore()).theme(), "light")

    def test_set_and_read_theme(self) -> None:
        state = InMemoryStateStore()
        prefs = PreferencesService(state)

        prefs.set_theme("dark")

        self.assertEqual(prefs.theme(), "dark")
        self.assertEqual(state.get(THEME_KEY), "dark")

    def test_unknown_theme_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            PreferencesService(InMemoryStateStore()).set_theme("neon")

    def test_unreadable_stored_theme_falls_back(self) -> None:
        self.assertEqual(PreferencesService(InMemoryStateStore({THEME_KEY: "neon"})).theme(), "light")


if __name__ == "__main__":
    unittest.main()
