"""Core types and enumerations for the ABBI SDK."""

import uuid
from enum import Enum, IntEnum
from typing import Any, Dict, Optional, Union
from datetime import datetime
from pydantic import BaseModel, Field
from dataclasses import dataclass, field


AttributeValue = Union[str, int, float, bool, None]


class AppType(IntEnum):
    """Host application category declared at start."""
    NATIVE = 10
    HYBRID = 11
    COCOS2D = 12
    UNITY = 13
    MAX = 14  # sentinel, never a valid application type


class EventType(IntEnum):
    """Enumeration of event types reported to the backend."""
    GOAL = 1


class AttributeScope(str, Enum):
    """User attribute namespace."""
    PUBLIC = "public"
    PRIVATE = "private"


@dataclass
class Session:
    """An active SDK session."""
    app_id: str
    secret_key: str
    app_type: AppType = AppType.NATIVE
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started_at: datetime = field(default_factory=datetime.now)
    user_id: Optional[str] = None
    flags: Dict[int, datetime] = field(default_factory=dict)


class Goal(BaseModel):
    """A named user action reported for targeting."""
    name: str
    properties: Dict[str, AttributeValue] = Field(default_factory=dict)
    event_type: EventType = EventType.GOAL
    timestamp: datetime = Field(default_factory=datetime.now)


class CampaignInfo(BaseModel):
    """Descriptor of a campaign shown to (or dismissed by) the user."""
    campaign_id: str
    name: Optional[str] = None
    trigger: Optional[str] = None
    deep_link: Optional[str] = None
    campaign_type: Optional[str] = None
    properties: Dict[str, Any] = Field(default_factory=dict)


class SessionStartRequest(BaseModel):
    """Announces a new session to the backend."""
    app_type: AppType
    started_at: datetime
    user_id: Optional[str] = None


class GoalRequest(BaseModel):
    """Delivers a goal."""
    goal: Goal


class AttributesRequest(BaseModel):
    """Upserts or clears user attributes in one namespace."""
    scope: AttributeScope
    attributes: Dict[str, AttributeValue] = Field(default_factory=dict)
    clear: bool = False


class UserIdRequest(BaseModel):
    """Associates the session with an external user id."""
    user_id: str


class FlagRequest(BaseModel):
    """Diagnostic flag set during a support session."""
    flag: int


class TriggerRequest(BaseModel):
    """Asks the backend for the campaign behind a trigger key."""
    trigger: str
    deep_link: Optional[str] = None


BackendRequest = Union[
    SessionStartRequest,
    GoalRequest,
    AttributesRequest,
    UserIdRequest,
    FlagRequest,
]
