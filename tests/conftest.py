"""Shared test configuration and fixtures."""

import asyncio
import threading
from typing import List, Optional, Tuple

import pytest

from abbi_sdk.campaigns import QueuedDispatcher
from abbi_sdk.client import ABBIClient
from abbi_sdk.config import ConfigManager, Settings
from abbi_sdk.core.exceptions import TransportError
from abbi_sdk.core.interfaces import BackendTransport
from abbi_sdk.core.types import CampaignInfo


class RecordingTransport(BackendTransport):
    """In-memory transport that records what the SDK sends."""

    def __init__(self, campaigns=None):
        self.campaigns = campaigns or {}
        self.sent: List[Tuple] = []
        self.fetched: List[Tuple] = []
        self.fail = False
        self.gate: Optional[threading.Event] = None
        self.closed = False

    @property
    def name(self) -> str:
        return "recording"

    async def send(self, session, request) -> None:
        if self.gate is not None:
            await asyncio.to_thread(self.gate.wait, 5)
        if self.fail:
            raise TransportError("backend unavailable", status_code=503)
        self.sent.append((session, request))

    async def fetch_campaign(self, session, request) -> Optional[CampaignInfo]:
        self.fetched.append((session, request))
        if self.fail:
            raise TransportError("backend unavailable", status_code=503)
        return self.campaigns.get(request.trigger)

    async def close(self) -> None:
        self.closed = True

    def requests(self, kind) -> list:
        return [request for _, request in self.sent if isinstance(request, kind)]


class RecordingPresenter:
    """Presenter that remembers what it was asked to show."""

    def __init__(self, events: Optional[list] = None):
        self.events = events if events is not None else []
        self.presented: List[CampaignInfo] = []
        self.dismissers = {}

    def present(self, campaign, dismiss) -> None:
        self.events.append(("present", campaign.campaign_id))
        self.presented.append(campaign)
        self.dismissers[campaign.campaign_id] = dismiss


class RecordingDelegate:
    """Campaign delegate collecting dismissals."""

    def __init__(self):
        self.dismissed: List[CampaignInfo] = []

    def campaign_did_dismiss(self, campaign_info) -> None:
        self.dismissed.append(campaign_info)


@pytest.fixture
def welcome_campaign():
    """Campaign bound to the 'Welcome' trigger."""
    return CampaignInfo(campaign_id="cmp-1", name="Welcome tour", trigger="Welcome")


@pytest.fixture
def transport(welcome_campaign):
    """Recording transport knowing a single campaign."""
    return RecordingTransport(campaigns={"Welcome": welcome_campaign})


@pytest.fixture
def dispatcher():
    """Main-context dispatcher drained explicitly by the tests."""
    return QueuedDispatcher()


@pytest.fixture
def presenter():
    return RecordingPresenter()


@pytest.fixture
def client(transport, dispatcher, presenter):
    """Client wired to in-memory collaborators."""
    abbi_client = ABBIClient(
        config=ConfigManager(Settings()),
        transport=transport,
        dispatcher=dispatcher,
        presenter=presenter,
    )
    try:
        yield abbi_client
    finally:
        abbi_client.shutdown(timeout=2)


@pytest.fixture
def started_client(client):
    """Client with an active session and the start announcement delivered."""
    client.start("app-123", "secret-abc")
    assert client.flush(timeout=2)
    return client
