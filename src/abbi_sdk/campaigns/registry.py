"""Campaign display tracking and the weak dismissal delegate."""

import threading
import weakref
from typing import Callable, Dict, List, Optional

from ..core.interfaces import CallbackDispatcher, CampaignInfoDelegate
from ..core.types import CampaignInfo
from ..observability import LoggerMixin


class CampaignRegistry(LoggerMixin):
    """Tracks campaigns on screen and notifies the delegate on dismissal.

    The delegate is held through a weak reference: registering it does not
    keep it alive, and a collected delegate is skipped silently.
    """

    def __init__(self, dispatcher: CallbackDispatcher):
        """Initialize the registry.

        Args:
            dispatcher: Main-context dispatcher used for delegate callbacks.
        """
        self.dispatcher = dispatcher
        self._delegate_ref: Optional[Callable[[], Optional[CampaignInfoDelegate]]] = None
        self._displayed: Dict[str, CampaignInfo] = {}
        self._lock = threading.Lock()

    @property
    def delegate(self) -> Optional[CampaignInfoDelegate]:
        """The registered delegate, if it is still alive."""
        ref = self._delegate_ref
        return ref() if ref is not None else None

    def set_delegate(self, delegate: Optional[CampaignInfoDelegate]) -> None:
        """Register a delegate, replacing the previous one. None clears it."""
        if delegate is None:
            self._delegate_ref = None
            return

        try:
            self._delegate_ref = weakref.ref(delegate)
        except TypeError:
            self.logger.error(
                "Delegate does not support weak references, ignoring",
                delegate_type=type(delegate).__name__,
            )
            return
        self.logger.debug("Registered campaign delegate", delegate_type=type(delegate).__name__)

    def show(self, campaign: CampaignInfo) -> bool:
        """Mark a campaign as displayed.

        Returns:
            False if the same campaign is already on screen.
        """
        with self._lock:
            if campaign.campaign_id in self._displayed:
                return False
            self._displayed[campaign.campaign_id] = campaign
        return True

    def dismiss(self, campaign_id: str) -> bool:
        """Mark a campaign as dismissed and notify the delegate.

        Returns:
            False if the campaign was not on screen.
        """
        with self._lock:
            campaign = self._displayed.pop(campaign_id, None)
        if campaign is None:
            return False

        ref = self._delegate_ref

        def notify() -> None:
            delegate = ref() if ref is not None else None
            if delegate is None:
                return
            delegate.campaign_did_dismiss(campaign)

        self.dispatcher.post(notify)
        return True

    def discard(self, campaign_id: str) -> None:
        """Forget a campaign that never made it on screen."""
        with self._lock:
            self._displayed.pop(campaign_id, None)

    def displayed(self) -> List[CampaignInfo]:
        """Snapshot of the campaigns currently on screen."""
        with self._lock:
            return list(self._displayed.values())

    def clear(self) -> None:
        """Forget displayed campaigns without notifying anyone."""
        with self._lock:
            self._displayed.clear()


class HeadlessPresenter(LoggerMixin):
    """Presenter used when the host has not installed a UI layer.

    Campaigns are logged and stay on screen until ``dismiss_campaign`` is
    called for them.
    """

    def present(self, campaign: CampaignInfo, dismiss: Callable[[], bool]) -> None:
        self.logger.info(
            "Campaign presented",
            campaign_id=campaign.campaign_id,
            campaign_name=campaign.name,
            trigger=campaign.trigger,
        )
