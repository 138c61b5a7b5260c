"""Unit tests for the HTTP backend transport."""

import json
from datetime import datetime
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from abbi_sdk.config import BackendSettings
from abbi_sdk.core.exceptions import TransportError
from abbi_sdk.core.types import (
    AttributeScope,
    AttributesRequest,
    FlagRequest,
    Goal,
    GoalRequest,
    Session,
    SessionStartRequest,
    AppType,
    TriggerRequest,
    UserIdRequest,
)
from abbi_sdk.transport import HttpBackend
from abbi_sdk.version import SDK_VERSION


@pytest.fixture
def session():
    return Session(app_id="app-123", secret_key="secret-abc", app_type=AppType.HYBRID)


@pytest.fixture
def no_backoff():
    with patch("abbi_sdk.transport.http_backend.asyncio.sleep", new=AsyncMock()) as sleep:
        yield sleep


def backend_with(handler, **kwargs) -> HttpBackend:
    return HttpBackend(
        base_url="https://backend.test",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestHttpBackendSend:
    """Test request delivery."""

    @pytest.mark.asyncio
    async def test_goal_is_posted_with_session_headers(self, session):
        captured = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(202)

        backend = backend_with(handler)
        goal = Goal(name="Bought a blue sword", properties={"item_name": "unlimited_calls"})
        await backend.send(session, GoalRequest(goal=goal))
        await backend.close()

        request = captured[0]
        assert request.method == "POST"
        assert request.url == "https://backend.test/v1/goals"
        assert request.headers["X-ABBI-App-Id"] == "app-123"
        assert request.headers["X-ABBI-Secret-Key"] == "secret-abc"
        assert request.headers["X-ABBI-Session-Id"] == session.session_id
        assert request.headers["X-ABBI-SDK-Version"] == SDK_VERSION
        assert request.headers["User-Agent"] == f"abbi-sdk-python/{SDK_VERSION}"
        assert "X-ABBI-Flags" not in request.headers

        body = json.loads(request.content)
        assert body["goal"]["name"] == "Bought a blue sword"
        assert body["goal"]["properties"] == {"item_name": "unlimited_calls"}
        assert body["goal"]["event_type"] == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("request_model,path", [
        (SessionStartRequest(app_type=AppType.UNITY, started_at=datetime(2024, 1, 1)), "/v1/sessions"),
        (AttributesRequest(scope=AttributeScope.PRIVATE, clear=True), "/v1/attributes"),
        (UserIdRequest(user_id="myuserid"), "/v1/users"),
        (FlagRequest(flag=3), "/v1/flags"),
    ])
    async def test_request_routing(self, session, request_model, path):
        paths = []

        def handler(request):
            paths.append(request.url.path)
            return httpx.Response(200)

        backend = backend_with(handler)
        await backend.send(session, request_model)
        await backend.close()

        assert paths == [path]

    @pytest.mark.asyncio
    async def test_flags_are_sent_as_header(self, session):
        session.flags[5] = datetime.now()
        session.flags[2] = datetime.now()
        headers = []

        def handler(request):
            headers.append(request.headers)
            return httpx.Response(200)

        backend = backend_with(handler)
        await backend.send(session, FlagRequest(flag=5))
        await backend.close()

        assert headers[0]["X-ABBI-Flags"] == "2,5"

    @pytest.mark.asyncio
    async def test_server_errors_are_retried(self, session, no_backoff):
        statuses = iter([503, 502, 200])
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(next(statuses))

        backend = backend_with(handler, max_retries=2)
        await backend.send(session, FlagRequest(flag=1))
        await backend.close()

        assert len(calls) == 3
        assert no_backoff.await_count == 2

    @pytest.mark.asyncio
    async def test_server_errors_exhaust_retries(self, session, no_backoff):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500)

        backend = backend_with(handler, max_retries=1)
        with pytest.raises(TransportError) as exc_info:
            await backend.send(session, FlagRequest(flag=1))
        await backend.close()

        assert exc_info.value.status_code == 500
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_client_errors_are_not_retried(self, session, no_backoff):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(401)

        backend = backend_with(handler)
        with pytest.raises(TransportError) as exc_info:
            await backend.send(session, FlagRequest(flag=1))
        await backend.close()

        assert exc_info.value.status_code == 401
        assert len(calls) == 1
        no_backoff.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_connection_errors_raise_transport_error(self, session, no_backoff):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        backend = backend_with(handler, max_retries=2)
        with pytest.raises(TransportError, match="Failed to reach backend"):
            await backend.send(session, FlagRequest(flag=1))
        await backend.close()

        assert no_backoff.await_count == 2

    @pytest.mark.asyncio
    async def test_unsupported_request_type(self, session):
        backend = backend_with(lambda request: httpx.Response(200))
        with pytest.raises(TypeError):
            await backend.send(session, TriggerRequest(trigger="Welcome"))
        await backend.close()


class TestHttpBackendCampaigns:
    """Test trigger lookups."""

    @pytest.mark.asyncio
    async def test_fetch_campaign(self, session):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={
                "campaign_id": "cmp-1",
                "name": "Welcome tour",
                "campaign_type": "walkthru",
                "properties": {"steps": 3},
                "ignored_field": True,
            })

        backend = backend_with(handler)
        campaign = await backend.fetch_campaign(session, TriggerRequest(trigger="Welcome", deep_link="myapp://home"))
        await backend.close()

        assert bodies == [{"trigger": "Welcome", "deep_link": "myapp://home"}]
        assert campaign.campaign_id == "cmp-1"
        assert campaign.trigger == "Welcome"
        assert campaign.properties == {"steps": 3}

    @pytest.mark.asyncio
    async def test_unknown_trigger_returns_none(self, session):
        backend = backend_with(lambda request: httpx.Response(404))
        assert await backend.fetch_campaign(session, TriggerRequest(trigger="X")) is None
        await backend.close()

    @pytest.mark.asyncio
    async def test_rejected_trigger_raises(self, session):
        backend = backend_with(lambda request: httpx.Response(403))
        with pytest.raises(TransportError):
            await backend.fetch_campaign(session, TriggerRequest(trigger="X"))
        await backend.close()


class TestHttpBackendLifecycle:
    """Test construction and cleanup."""

    def test_from_settings(self):
        backend = HttpBackend.from_settings(BackendSettings(
            base_url="https://eu.backend.test/",
            timeout=3.0,
            max_retries=0,
        ))

        assert backend.base_url == "https://eu.backend.test"
        assert backend.timeout == 3.0
        assert backend.max_retries == 0
        assert backend.name == "http"

    @pytest.mark.asyncio
    async def test_close_without_requests(self):
        backend = HttpBackend()
        await backend.close()

    @pytest.mark.asyncio
    async def test_close_releases_client(self, session):
        backend = backend_with(lambda request: httpx.Response(200))
        await backend.send(session, FlagRequest(flag=1))
        assert backend._client is not None

        await backend.close()
        assert backend._client is None


def test_transport_error_status_is_optional():
    assert TransportError("connection refused").status_code is None
    assert TransportError("rejected", status_code=403).status_code == 403
