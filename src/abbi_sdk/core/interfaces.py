"""Core interfaces for the ABBI SDK."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Protocol

from .types import BackendRequest, CampaignInfo, Session, TriggerRequest


class CampaignInfoDelegate(Protocol):
    """Observer notified about campaign actions."""

    def campaign_did_dismiss(self, campaign_info: CampaignInfo) -> None:
        """Called after a campaign was dismissed."""
        ...


class CampaignPresenter(Protocol):
    """Presentation layer that puts campaigns on screen."""

    def present(self, campaign: CampaignInfo, dismiss: Callable[[], bool]) -> None:
        """Show a campaign. The presenter calls ``dismiss`` once it is closed."""
        ...


DeepLinkHandler = Callable[[str], Any]


class CallbackDispatcher(ABC):
    """Runs callbacks on the host application's main execution context."""

    @abstractmethod
    def post(self, callback: Callable[[], Any]) -> None:
        """Schedule a callback. Never runs it on the caller's stack frame
        unless the dispatcher is explicitly immediate."""
        pass

    def run_pending(self) -> int:
        """Run callbacks held for the host. Returns how many ran."""
        return 0


class BackendTransport(ABC):
    """Abstract base class for backend transports."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the transport name."""
        pass

    @abstractmethod
    async def send(self, session: Session, request: BackendRequest) -> None:
        """Deliver a request on behalf of a session."""
        pass

    @abstractmethod
    async def fetch_campaign(
        self,
        session: Session,
        request: TriggerRequest,
    ) -> Optional[CampaignInfo]:
        """Return the campaign behind a trigger, or None if there is none."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release network resources."""
        pass


class ConfigInterface(ABC):
    """Abstract base class for configuration management."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Set a configuration value."""
        pass

    @abstractmethod
    def has(self, key: str) -> bool:
        """Check if a configuration key exists."""
        pass

    @abstractmethod
    def load_from_file(self, file_path: str) -> None:
        """Load configuration from a file."""
        pass

    @abstractmethod
    def save_to_file(self, file_path: str) -> None:
        """Save configuration to a file."""
        pass
