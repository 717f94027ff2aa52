"""OAuth2 client-credentials token manager."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional, Sequence
from urllib.parse import parse_qs

import aiohttp

from .errors import AuthError

LOGGER = logging.getLogger(__name__)

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "text/plain")


@dataclass(slots=True)
class TokenCredentials:
    """Bearer token with metadata. Never persisted."""

    access_token: str
    token_type: str = "Bearer"
    scope: str = ""
    expires_at: Optional[datetime] = None

    @property
    def authorization_header(self) -> str:
        token_type = self.token_type or "Bearer"
        if token_type.lower() == "bearer":
            token_type = "Bearer"
        return f"{token_type} {self.access_token}"


class TokenManager:
    """Obtains and holds a single access token for the lifetime of the instance.

    The first `get_token()` call performs the client-credentials exchange;
    later calls return the cached token. There is no expiry-driven refresh.
    Acquisition is guarded by a lock so concurrent callers share one exchange.
    """

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        token_url: str,
        scopes: Sequence[str] = (),
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 10.0,
    ) -> None:
        self.client_id = client_id
        self.token_url = token_url
        self.scopes = list(scopes)
        self.timeout = timeout

        self._client_secret = client_secret
        self._session = session
        self._owns_session = session is None
        self._current_token: Optional[TokenCredentials] = None
        self._lock = asyncio.Lock()

    @property
    def has_token(self) -> bool:
        return self._current_token is not None

    async def get_token(self) -> TokenCredentials:
        """Return the cached token, exchanging credentials on first use."""

        if self._current_token is not None:
            return self._current_token

        async with self._lock:
            if self._current_token is None:
                self._current_token = await self.issue_token()
                LOGGER.info(
                    "Access token obtained from %s (scope=%s)",
                    self.token_url,
                    self._current_token.scope or "-",
                )
            return self._current_token

    def invalidate(self) -> None:
        """Drop the cached token so the next `get_token()` exchanges again."""

        self._current_token = None

    async def issue_token(self) -> TokenCredentials:
        """Perform the client-credentials grant against the token endpoint."""

        payload = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self._client_secret,
        }
        if self.scopes:
            payload["scope"] = " ".join(self.scopes)

        LOGGER.debug("Requesting access token from %s", self.token_url)

        session = self._ensure_session()
        try:
            async with session.post(
                self.token_url,
                data=payload,
                headers={"Accept": "application/json"},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                body = await response.text()
                if not 200 <= response.status < 300:
                    raise AuthError(
                        f"Token request failed with status {response.status}: {body.strip()}"
                    )
                values = _decode_token_body(body, response.content_type)
        except asyncio.TimeoutError as exc:
            raise AuthError(
                f"Token request to {self.token_url} timed out after {self.timeout}s"
            ) from exc
        except aiohttp.ClientError as exc:
            raise AuthError(f"Token request to {self.token_url} failed: {exc}") from exc

        return _build_credentials(values)

    async def aclose(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session


def _decode_token_body(body: str, content_type: str) -> Mapping[str, Any]:
    if content_type in FORM_CONTENT_TYPES:
        return {key: values[0] for key, values in parse_qs(body).items() if values}

    try:
        data = json.loads(body)
    except ValueError as exc:
        raise AuthError(f"Malformed token response: {exc}") from exc
    if not isinstance(data, dict):
        raise AuthError("Malformed token response: expected a JSON object")
    return data


def _build_credentials(values: Mapping[str, Any]) -> TokenCredentials:
    access_token = values.get("access_token")
    if not access_token or not isinstance(access_token, str):
        raise AuthError("Token response did not contain an access_token")

    expires_at: Optional[datetime] = None
    expires_in = values.get("expires_in")
    if expires_in not in (None, ""):
        try:
            expires_at = datetime.now(timezone.utc) + timedelta(
                seconds=float(expires_in)
            )
        except (TypeError, ValueError):
            LOGGER.debug("Ignoring unparsable expires_in value %r", expires_in)

    return TokenCredentials(
        access_token=access_token,
        token_type=str(values.get("token_type") or "Bearer"),
        scope=str(values.get("scope") or ""),
        expires_at=expires_at,
    )
