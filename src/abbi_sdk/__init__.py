"""ABBI SDK - in-app marketing and analytics client.

Starts a session against the ABBI backend, reports goals and user
attributes, triggers remotely authored campaigns and handles inbound SDK
URLs. Every operation returns immediately; backend traffic is delivered on a
background worker, best-effort.
"""

from .core import *
from .config import *
from .campaigns import *
from .client import ABBI, ABBIClient, get_client, set_client
from .version import SDK_VERSION

__version__ = SDK_VERSION

__all__ = [
    # Version info
    "__version__",
    "SDK_VERSION",

    # Facade
    "ABBI",
    "ABBIClient",
    "get_client",
    "set_client",

    # Types
    "AppType",
    "EventType",
    "CampaignInfo",
    "CampaignInfoDelegate",
    "CampaignPresenter",

    # Configuration
    "ConfigManager",
    "Settings",

    # Main-context dispatch
    "QueuedDispatcher",
    "LoopDispatcher",
    "ImmediateDispatcher",
]
