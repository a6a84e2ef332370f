"""
ZeroDB credential exchange.

Trades the service username/password for a short-lived bearer token via the
public login endpoint. By default every call logs in again; an optional
in-process cache reuses a token until shortly before its advertised expiry.
"""

import logging
import time
from dataclasses import dataclass, field

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from ragchat.core.config import Settings
from ragchat.core.exceptions import AuthenticationError, NetworkError
from ragchat.core.telemetry import get_tracer

logger = logging.getLogger(__name__)

LOGIN_PATH = "/v1/public/auth/login"


class LoginResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: str
    token_type: str = "bearer"
    expires_in: int | None = None


@dataclass
class AuthToken:
    """Bearer token returned by the login endpoint."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int | None = None
    acquired_at: float = field(default_factory=time.monotonic)

    def expires_within(self, margin: float) -> bool:
        """True if the token expires in less than ``margin`` seconds."""
        if self.expires_in is None:
            return False
        remaining = self.acquired_at + self.expires_in - time.monotonic()
        return remaining <= margin


class ZeroDBAuthService:
    """Credential provider for the ZeroDB public API."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient) -> None:
        self._username = settings.zerodb_email
        self._password = settings.zerodb_password
        self._http = http_client
        self._cache_enabled = settings.zerodb_token_cache_enabled
        self._refresh_margin = settings.zerodb_token_refresh_margin
        self._cached: AuthToken | None = None
        self._tracer = get_tracer()

    @property
    def cache_enabled(self) -> bool:
        return self._cache_enabled

    async def acquire_token(self) -> AuthToken:
        """
        Log in and return a fresh bearer token.

        Raises:
            AuthenticationError: Missing credentials or a non-2xx login response.
            NetworkError: The login endpoint could not be reached.
        """
        with self._tracer.start_as_current_span("zerodb.auth") as span:
            password = self._password.get_secret_value()
            if not self._username or not password:
                raise AuthenticationError("ZeroDB credentials are not configured")

            try:
                response = await self._http.post(
                    LOGIN_PATH,
                    data={"username": self._username, "password": password},
                )
            except httpx.RequestError as exc:
                logger.error("ZeroDB login request failed: %s", type(exc).__name__)
                raise NetworkError("ZeroDB login unreachable") from exc

            span.set_attribute("http.status_code", response.status_code)
            if not response.is_success:
                logger.warning("ZeroDB authentication failed: %d", response.status_code)
                raise AuthenticationError(
                    f"Authentication failed: {response.status_code}",
                    status_code=response.status_code,
                )

            try:
                login = LoginResponse.model_validate_json(response.content)
            except PydanticValidationError as exc:
                raise AuthenticationError(
                    "Authentication response was malformed",
                    status_code=response.status_code,
                ) from exc

            if not login.access_token:
                raise AuthenticationError(
                    "Authentication response carried no access token",
                    status_code=response.status_code,
                )

            logger.debug("ZeroDB token acquired (expires_in=%s)", login.expires_in)
            return AuthToken(
                access_token=login.access_token,
                token_type=login.token_type,
                expires_in=login.expires_in,
            )

    async def get_token(self) -> AuthToken:
        """Return a usable token, reusing the cached one when caching is on."""
        if not self._cache_enabled:
            return await self.acquire_token()

        if self._cached is not None and not self._cached.expires_within(self._refresh_margin):
            return self._cached

        self._cached = await self.acquire_token()
        return self._cached

    def invalidate(self) -> None:
        """Drop the cached token so the next ``get_token`` logs in again."""
        self._cached = None
