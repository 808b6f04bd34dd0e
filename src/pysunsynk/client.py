"""Sunsynk Connect API Client.

This module provides the async HTTP core shared by the account session and
the inverter endpoints.

Key Features:
- Async/await support with aiohttp
- Support for an injected aiohttp.ClientSession
- Bounded timeout on every request
- Envelope checking that turns API-level errors into exceptions

Higher layers (:class:`~pysunsynk.session.AccountSession` and
:class:`~pysunsynk.endpoints.InverterEndpoints`) catch these exceptions and
return tagged results.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp
from aiohttp import ClientTimeout

from .constants import BASE_URL, CODE_OK, DEFAULT_TIMEOUT, HTTP_UNAUTHORIZED
from .endpoints import InverterEndpoints
from .exceptions import SunSynkAPIError, SunSynkAuthError, SunSynkConnectionError
from .session import AccountSession

_LOGGER = logging.getLogger(__name__)


class SunSynkClient:
    """Sunsynk Connect API Client.

    Example:
        ```python
        async with SunSynkClient(username, password) as client:
            token = client.account.current_access_token()
            listing = await client.inverters.get_inverters(token)
            for inverter in listing.value.infos:
                telemetry = await client.inverters.fetch_telemetry(inverter.sn, token)
                print(telemetry.value.battery.state_of_charge)
        ```
    """

    def __init__(
        self,
        username: str,
        password: str,
        *,
        base_url: str = BASE_URL,
        verify_ssl: bool = True,
        timeout: float = DEFAULT_TIMEOUT,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the Sunsynk API client.

        Args:
            username: Sunsynk Connect account email
            password: Sunsynk Connect account password
            base_url: Base URL for the API
            verify_ssl: Whether to verify SSL certificates
            timeout: Per-request timeout in seconds
            session: Optional aiohttp ClientSession for session injection
        """
        self.username = username
        self.password = password
        self.base_url = base_url.rstrip("/")
        self.verify_ssl = verify_ssl
        self.timeout = ClientTimeout(total=timeout)

        # Session management
        self._session: aiohttp.ClientSession | None = session
        self._owns_session: bool = session is None

        # Components (lazy-loaded)
        self._account: AccountSession | None = None
        self._inverters: InverterEndpoints | None = None

    async def __aenter__(self) -> SunSynkClient:
        """Async context manager entry; logs in with the configured credentials."""
        result = await self.account.authenticate(self.username, self.password)
        if not result.is_success:
            await self.close()
            raise SunSynkAuthError(result.detail or f"Login failed: {result.status.value}")
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Async context manager exit."""
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session.

        Returns:
            aiohttp.ClientSession: The session to use for requests.
        """
        if self._session is not None and not self._owns_session:
            return self._session

        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(ssl=self.verify_ssl)
            self._session = aiohttp.ClientSession(connector=connector, timeout=self.timeout)
            self._owns_session = True

        return self._session

    async def close(self) -> None:
        """Close the session if we own it.

        Only closes the session if it was created by this client,
        not if it was injected.
        """
        if self._session and not self._session.closed and self._owns_session:
            await self._session.close()

    @property
    def account(self) -> AccountSession:
        """Token lifecycle for this account."""
        if self._account is None:
            self._account = AccountSession(self, self.username, self.password)
        return self._account

    @property
    def inverters(self) -> InverterEndpoints:
        """Stateless inverter data and settings endpoints."""
        if self._inverters is None:
            self._inverters = InverterEndpoints(self)
        return self._inverters

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json_data: dict[str, Any] | None = None,
        token: str | None = None,
        check_envelope: bool = True,
    ) -> dict[str, Any]:
        """Make an HTTP request to the API.

        Args:
            method: HTTP method (GET, POST)
            path: API path (appended to base_url)
            params: Query string parameters
            json_data: JSON request body
            token: Bearer token; omitted for the token endpoint
            check_envelope: Raise on ``code``/``success`` errors in a 2xx body

        Returns:
            dict: JSON response from the API

        Raises:
            SunSynkAuthError: If the bearer token was rejected
            SunSynkConnectionError: On network failure or timeout
            SunSynkAPIError: If the API returns an error or an unreadable body
        """
        session = await self._get_session()
        url = f"{self.base_url}{path}"

        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        _LOGGER.debug("%s %s", method, path)
        try:
            async with session.request(
                method,
                url,
                params=params,
                json=json_data,
                headers=headers,
                timeout=self.timeout,
            ) as response:
                if response.status == HTTP_UNAUTHORIZED:
                    raise SunSynkAuthError(f"Token rejected at {path}")

                try:
                    payload = await response.json(content_type=None)
                except ValueError as err:
                    raise SunSynkAPIError(
                        f"Malformed response (HTTP {response.status}) at {path}",
                        status=response.status,
                    ) from err

                if not isinstance(payload, dict):
                    raise SunSynkAPIError(
                        f"Unexpected response (HTTP {response.status}) at {path}: {payload!r}",
                        status=response.status,
                    )

                if response.status >= 400:
                    message = payload.get("msg") or payload.get("error") or response.reason
                    raise SunSynkAPIError(
                        f"HTTP {response.status}: {message}",
                        status=response.status,
                        code=payload.get("code"),
                    )

                if check_envelope:
                    self._check_envelope(payload, path)
                return payload

        except aiohttp.ClientError as err:
            raise SunSynkConnectionError(f"Connection error: {err}") from err

        except asyncio.TimeoutError as err:
            raise SunSynkConnectionError(f"Request to {path} timed out") from err

    @staticmethod
    def _check_envelope(payload: dict[str, Any], path: str) -> None:
        """Raise for API-level errors reported inside a 2xx response."""
        code = payload.get("code")
        if code == HTTP_UNAUTHORIZED:
            raise SunSynkAuthError(f"Token rejected at {path}")
        if (code is not None and code != CODE_OK) or payload.get("success") is False:
            message = payload.get("msg") or f"No error message. Full response: {payload}"
            raise SunSynkAPIError(f"API error at {path}: {message}", code=code)
