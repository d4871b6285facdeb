from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError

from budgetsync.domain.errors import ValidationError
from budgetsync.domain.schemas import ThemePreference, describe_errors
from budgetsync.infrastructure.persistence.local_state import THEME_KEY, StateStore


class PreferencesService:
    """UI preferences kept alongside the credential in local state."""

    def __init__(self, state_store: StateStore):
        self._state_store = state_store

    def theme(self) -> str:
        stored = self._state_store.get(THEME_KEY)
        try:
            return ThemePreference(theme=stored).theme if stored else ThemePreference().theme
        except PydanticValidationError:
            return ThemePreference().theme

    def set_theme(self, theme: str) -> str:
        try:
            preference = ThemePreference(theme=theme)
        except PydanticValidationError as exc:
            errors = describe_errors(exc)
            raise ValidationError(f"Invalid theme: {'; '.join(errors)}", errors) from exc
        self._state_store.put(THEME_KEY, preference.theme)
        return preference.theme
