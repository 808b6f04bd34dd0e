"""Unit tests for SunSynkClient using aioresponses for HTTP mocking."""

from __future__ import annotations

import asyncio
from typing import Any

import aiohttp
import pytest
from aioresponses import aioresponses
from conftest import BASE_URL, SETTINGS_READ_URL, TOKEN_URL, recorded_calls

from pysunsynk import SunSynkClient
from pysunsynk.exceptions import SunSynkAPIError, SunSynkAuthError, SunSynkConnectionError

SETTINGS_PATH = "/api/v1/common/setting/2211229948/read"


class TestRequest:
    """Test the shared request primitive."""

    @pytest.mark.asyncio
    async def test_returns_payload_and_sends_bearer(
        self, mocked_api: aioresponses, settings_response: dict[str, Any]
    ) -> None:
        mocked_api.get(SETTINGS_READ_URL, payload=settings_response)

        client = SunSynkClient("user", "pass")
        payload = await client._request("GET", SETTINGS_PATH, token="abc")
        await client.close()

        assert payload["data"]["sn"] == "2211229948"
        headers = recorded_calls(mocked_api, "GET", SETTINGS_READ_URL)[0].kwargs["headers"]
        assert headers["Authorization"] == "Bearer abc"
        assert headers["Accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_no_token_no_authorization_header(self, mocked_api: aioresponses) -> None:
        mocked_api.post(TOKEN_URL, payload={"code": 0, "data": {}})

        client = SunSynkClient("user", "pass")
        await client._request("POST", "/oauth/token", json_data={}, check_envelope=False)
        await client.close()

        headers = recorded_calls(mocked_api, "POST", TOKEN_URL)[0].kwargs["headers"]
        assert "Authorization" not in headers

    @pytest.mark.asyncio
    async def test_http_401_raises_auth_error(self, mocked_api: aioresponses) -> None:
        mocked_api.get(SETTINGS_READ_URL, status=401)

        client = SunSynkClient("user", "pass")
        with pytest.raises(SunSynkAuthError):
            await client._request("GET", SETTINGS_PATH, token="stale")
        await client.close()

    @pytest.mark.asyncio
    async def test_envelope_401_raises_auth_error(self, mocked_api: aioresponses) -> None:
        mocked_api.get(SETTINGS_READ_URL, payload={"code": 401, "msg": "Unauthorized"})

        client = SunSynkClient("user", "pass")
        with pytest.raises(SunSynkAuthError):
            await client._request("GET", SETTINGS_PATH, token="stale")
        await client.close()

    @pytest.mark.asyncio
    async def test_envelope_error_code(self, mocked_api: aioresponses) -> None:
        mocked_api.get(
            SETTINGS_READ_URL, payload={"code": 1, "msg": "Device offline", "success": False}
        )

        client = SunSynkClient("user", "pass")
        with pytest.raises(SunSynkAPIError, match="Device offline") as exc_info:
            await client._request("GET", SETTINGS_PATH, token="abc")
        await client.close()

        assert exc_info.value.code == 1

    @pytest.mark.asyncio
    async def test_envelope_not_checked_when_disabled(self, mocked_api: aioresponses) -> None:
        mocked_api.post(TOKEN_URL, payload={"code": 102, "msg": "bad", "success": False})

        client = SunSynkClient("user", "pass")
        payload = await client._request("POST", "/oauth/token", json_data={}, check_envelope=False)
        await client.close()

        assert payload["code"] == 102

    @pytest.mark.asyncio
    async def test_http_error_status(self, mocked_api: aioresponses) -> None:
        mocked_api.get(SETTINGS_READ_URL, status=500, payload={"msg": "Internal error"})

        client = SunSynkClient("user", "pass")
        with pytest.raises(SunSynkAPIError) as exc_info:
            await client._request("GET", SETTINGS_PATH, token="abc")
        await client.close()

        assert exc_info.value.status == 500

    @pytest.mark.asyncio
    async def test_malformed_json(self, mocked_api: aioresponses) -> None:
        mocked_api.get(SETTINGS_READ_URL, body="<html>gateway</html>")

        client = SunSynkClient("user", "pass")
        with pytest.raises(SunSynkAPIError, match="Malformed response"):
            await client._request("GET", SETTINGS_PATH, token="abc")
        await client.close()

    @pytest.mark.asyncio
    async def test_non_object_body(self, mocked_api: aioresponses) -> None:
        mocked_api.get(SETTINGS_READ_URL, payload=[1, 2, 3])

        client = SunSynkClient("user", "pass")
        with pytest.raises(SunSynkAPIError, match="Unexpected response"):
            await client._request("GET", SETTINGS_PATH, token="abc")
        await client.close()

    @pytest.mark.asyncio
    async def test_connection_error(self, mocked_api: aioresponses) -> None:
        mocked_api.get(
            SETTINGS_READ_URL, exception=aiohttp.ClientConnectionError("Connection refused")
        )

        client = SunSynkClient("user", "pass")
        with pytest.raises(SunSynkConnectionError, match="Connection refused"):
            await client._request("GET", SETTINGS_PATH, token="abc")
        await client.close()

    @pytest.mark.asyncio
    async def test_timeout(self, mocked_api: aioresponses) -> None:
        mocked_api.get(SETTINGS_READ_URL, exception=asyncio.TimeoutError())

        client = SunSynkClient("user", "pass")
        with pytest.raises(SunSynkConnectionError, match="timed out"):
            await client._request("GET", SETTINGS_PATH, token="abc")
        await client.close()


class TestContextManager:
    """Test async context manager usage."""

    @pytest.mark.asyncio
    async def test_logs_in_on_enter(
        self, mocked_api: aioresponses, token_response: dict[str, Any]
    ) -> None:
        mocked_api.post(TOKEN_URL, payload=token_response)

        async with SunSynkClient("user", "pass") as client:
            assert client.account.current_access_token() == "access-token-1"

    @pytest.mark.asyncio
    async def test_failed_login_raises(self, mocked_api: aioresponses) -> None:
        mocked_api.post(
            TOKEN_URL, payload={"code": 102, "msg": "Username or password error", "success": False}
        )

        with pytest.raises(SunSynkAuthError, match="Username or password error"):
            async with SunSynkClient("user", "wrong"):
                pass


class TestSessionInjection:
    """Test injected aiohttp sessions."""

    @pytest.mark.asyncio
    async def test_injected_session_not_closed(self) -> None:
        session = aiohttp.ClientSession()
        client = SunSynkClient("user", "pass", session=session)

        assert await client._get_session() is session
        await client.close()
        assert not session.closed

        await session.close()

    @pytest.mark.asyncio
    async def test_owned_session_closed(self) -> None:
        client = SunSynkClient("user", "pass")
        session = await client._get_session()

        await client.close()
        assert session.closed

    def test_base_url_trailing_slash(self) -> None:
        client = SunSynkClient("user", "pass", base_url=f"{BASE_URL}/")
        assert client.base_url == BASE_URL

    def test_components_are_cached(self) -> None:
        client = SunSynkClient("user", "pass")
        assert client.account is client.account
        assert client.inverters is client.inverters
