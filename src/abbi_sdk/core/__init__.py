"""Core module for the ABBI SDK.

This module contains the fundamental building blocks of the SDK including
types, interfaces, and exceptions shared by the facade, the delivery queue
and the transports.
"""

from .types import (
    AppType,
    EventType,
    AttributeScope,
    AttributeValue,
    Session,
    Goal,
    CampaignInfo,
    SessionStartRequest,
    GoalRequest,
    AttributesRequest,
    UserIdRequest,
    FlagRequest,
    TriggerRequest,
    BackendRequest,
)

from .interfaces import (
    CampaignInfoDelegate,
    CampaignPresenter,
    CallbackDispatcher,
    BackendTransport,
    ConfigInterface,
    DeepLinkHandler,
)

from .exceptions import (
    ABBIError,
    TransportError,
)

__all__ = [
    # Types
    "AppType",
    "EventType",
    "AttributeScope",
    "AttributeValue",
    "Session",
    "Goal",
    "CampaignInfo",
    "SessionStartRequest",
    "GoalRequest",
    "AttributesRequest",
    "UserIdRequest",
    "FlagRequest",
    "TriggerRequest",
    "BackendRequest",

    # Interfaces
    "CampaignInfoDelegate",
    "CampaignPresenter",
    "CallbackDispatcher",
    "BackendTransport",
    "ConfigInterface",
    "DeepLinkHandler",

    # Exceptions
    "ABBIError",
    "TransportError",
]
