from __future__ import annotations

import logging

from pydantic import ValidationError as PydanticValidationError

from budgetsync.domain.errors import AuthenticationFailed, GatewayError, NotFound, Unauthenticated, ValidationError
from budgetsync.domain.schemas import LoginResponse, parse_credentials
from budgetsync.infrastructure.remote.http_client import ApiHttpClient

logger = logging.getLogger(__name__)


class AuthService:
    """Exchanges username/password for a bearer token against `/register` and `/login`."""

    def __init__(self, client: ApiHttpClient):
        self._client = client

    def register(self, username: str, password: str) -> None:
        credentials = parse_credentials(username, password)
        logger.info("AuthService register username=%s", credentials.username)
        try:
            self._client.request("POST", "/register", credentials.model_dump(), authenticated=False)
        except (Unauthenticated, ValidationError, NotFound, GatewayError) as exc:
            raise AuthenticationFailed(f"Registration failed: {exc}") from exc

    def login(self, username: str, password: str) -> str:
        credentials = parse_credentials(username, password)
        logger.info("AuthService login username=%s", credentials.username)
        try:
            body = self._client.request("POST", "/login", credentials.model_dump(), authenticated=False)
        except (Unauthenticated, ValidationError, NotFound, GatewayError) as exc:
            raise AuthenticationFailed(f"Login failed: {exc}") from exc

        try:
            response = LoginResponse.model_validate(body)
        except PydanticValidationError as exc:
            raise AuthenticationFailed("Login response did not contain a token") from exc
        return response.token
