"""HTTP backend transport implementation."""

import asyncio
from typing import Any, Dict, Optional

import httpx

from ..core.exceptions import TransportError
from ..core.interfaces import BackendTransport
from ..core.types import (
    AttributesRequest,
    BackendRequest,
    CampaignInfo,
    FlagRequest,
    GoalRequest,
    Session,
    SessionStartRequest,
    TriggerRequest,
    UserIdRequest,
)
from ..observability import get_logger
from ..version import SDK_VERSION

logger = get_logger(__name__)

ENDPOINTS = {
    SessionStartRequest: "/v1/sessions",
    GoalRequest: "/v1/goals",
    AttributesRequest: "/v1/attributes",
    UserIdRequest: "/v1/users",
    FlagRequest: "/v1/flags",
}

TRIGGER_ENDPOINT = "/v1/triggers"


class HttpBackend(BackendTransport):
    """JSON-over-HTTP transport for the ABBI backend."""

    def __init__(
        self,
        base_url: str = "https://api.abbi.io",
        timeout: float = 10.0,
        max_retries: int = 2,
        user_agent: str = "abbi-sdk-python",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the HTTP backend.

        Args:
            base_url: Base URL of the backend.
            timeout: Request timeout in seconds.
            max_retries: Retries for connection errors and 5xx responses.
            user_agent: Prefix of the User-Agent header.
            transport: Optional httpx transport, used by tests.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.user_agent = f"{user_agent}/{SDK_VERSION}"
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings) -> "HttpBackend":
        """Build a backend from ``BackendSettings``."""
        return cls(
            base_url=settings.base_url,
            timeout=settings.timeout,
            max_retries=settings.max_retries,
            user_agent=settings.user_agent,
        )

    @property
    def name(self) -> str:
        """Return the transport name."""
        return "http"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                limits=httpx.Limits(max_keepalive_connections=2, max_connections=4),
            )
        return self._client

    def _headers(self, session: Session) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "User-Agent": self.user_agent,
            "X-ABBI-App-Id": session.app_id,
            "X-ABBI-Secret-Key": session.secret_key,
            "X-ABBI-Session-Id": session.session_id,
            "X-ABBI-SDK-Version": SDK_VERSION,
        }
        if session.flags:
            headers["X-ABBI-Flags"] = ",".join(str(flag) for flag in sorted(session.flags))
        return headers

    async def _post(self, session: Session, path: str, payload: Dict[str, Any]) -> httpx.Response:
        """POST a payload, retrying connection errors and server errors.

        Returns:
            The response for any status below 500 (callers decide about 4xx).

        Raises:
            TransportError: If the request fails after retries.
        """
        client = await self._get_client()
        headers = self._headers(session)

        for attempt in range(self.max_retries + 1):
            try:
                response = await client.post(path, json=payload, headers=headers)
                if response.status_code < 500:
                    return response
                if attempt == self.max_retries:
                    raise TransportError(
                        f"Backend error {response.status_code} on {path}",
                        status_code=response.status_code,
                    )
            except httpx.RequestError as e:
                if attempt == self.max_retries:
                    raise TransportError(f"Failed to reach backend at {self.base_url}: {e}") from e

            logger.debug("Retrying backend request", path=path, attempt=attempt + 1)
            await asyncio.sleep(2 ** attempt * 0.5)  # Exponential backoff

        raise TransportError(f"Failed to deliver {path} after all retries")

    async def send(self, session: Session, request: BackendRequest) -> None:
        """Deliver a request on behalf of a session.

        Raises:
            TransportError: On rejection (4xx) or when retries are exhausted.
        """
        path = ENDPOINTS.get(type(request))
        if path is None:
            raise TypeError(f"Unsupported request type: {type(request).__name__}")

        response = await self._post(session, path, request.model_dump(mode="json"))
        if response.is_error:
            raise TransportError(
                f"Backend rejected {path} with {response.status_code}",
                status_code=response.status_code,
            )

    async def fetch_campaign(
        self,
        session: Session,
        request: TriggerRequest,
    ) -> Optional[CampaignInfo]:
        """Return the campaign bound to a trigger key.

        Returns:
            CampaignInfo, or None when the backend answers 404.
        """
        response = await self._post(session, TRIGGER_ENDPOINT, request.model_dump(mode="json"))
        if response.status_code == 404:
            return None
        if response.is_error:
            raise TransportError(
                f"Backend rejected trigger '{request.trigger}' with {response.status_code}",
                status_code=response.status_code,
            )

        data = response.json()
        campaign = CampaignInfo(**data)
        if campaign.trigger is None:
            campaign.trigger = request.trigger
        return campaign

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
