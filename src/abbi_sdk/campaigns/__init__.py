"""Campaign display tracking, delegate notification and main-context dispatch."""

from .dispatch import (
    QueuedDispatcher,
    LoopDispatcher,
    ImmediateDispatcher,
    default_dispatcher,
)
from .registry import CampaignRegistry, HeadlessPresenter

__all__ = [
    "CampaignRegistry",
    "HeadlessPresenter",
    "QueuedDispatcher",
    "LoopDispatcher",
    "ImmediateDispatcher",
    "default_dispatcher",
]
