"""Authenticated JSON GET client for the Airthings consumer API."""

from __future__ import annotations

import asyncio
import logging
import ssl
from typing import Mapping, Optional

import aiohttp

from .config import TLSConfig
from .errors import ConfigurationError, HttpStatusError, TransportError
from .token_manager import TokenCredentials

LOGGER = logging.getLogger(__name__)


def build_ssl_context(tls: Optional[TLSConfig]) -> Optional[ssl.SSLContext]:
    """Build an SSL context from optional TLS settings.

    Returns None when no TLS option is set so aiohttp applies its defaults.
    """

    if tls is None or not tls.enabled:
        return None

    try:
        context = ssl.create_default_context(
            cafile=str(tls.ca_path) if tls.ca_path else None
        )
        if tls.cert_path:
            context.load_cert_chain(
                str(tls.cert_path), str(tls.key_path) if tls.key_path else None
            )
    except (OSError, ssl.SSLError) as exc:
        raise ConfigurationError(f"Invalid TLS configuration: {exc}") from exc

    if tls.insecure_skip_verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


class AirthingsApiClient:
    """Issues GET requests against the API base URL with a bearer token.

    No retries or backoff; any failure surfaces to the caller.
    """

    def __init__(
        self,
        base_url: str,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 5.0,
        ssl_context: Optional[ssl.SSLContext] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        self._ssl_context = ssl_context
        self._session = session
        self._owns_session = session is None

    async def request(
        self,
        path: str,
        token: TokenCredentials,
        *,
        params: Optional[Mapping[str, str]] = None,
    ) -> bytes:
        """GET `base_url + path` and return the raw body of a 200 response.

        Raises:
            TransportError: If the connection fails or times out.
            HttpStatusError: If the response status is not 200.
        """

        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = {
            "Accept": "application/json",
            "Authorization": token.authorization_header,
        }
        session = self._ensure_session()

        LOGGER.debug("GET %s params=%s", url, dict(params) if params else {})

        try:
            async with session.get(
                url,
                headers=headers,
                params=params,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if response.status != 200:
                    raise HttpStatusError(response.status, self.base_url)
                return await response.read()
        except asyncio.TimeoutError as exc:
            raise TransportError(
                f"Request to {url} timed out after {self.timeout}s"
            ) from exc
        except aiohttp.ClientError as exc:
            raise TransportError(f"Request to {url} failed: {exc}") from exc

    async def aclose(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            connector = (
                aiohttp.TCPConnector(ssl=self._ssl_context)
                if self._ssl_context is not None
                else None
            )
            self._session = aiohttp.ClientSession(connector=connector)
            self._owns_session = True
        return self._session
