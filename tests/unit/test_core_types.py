"""Unit tests for core types and data models."""

import pytest
from datetime import datetime
from pydantic import ValidationError

from abbi_sdk import SDK_VERSION, __version__
from abbi_sdk.core.types import (
    AppType,
    EventType,
    AttributeScope,
    Session,
    Goal,
    CampaignInfo,
    AttributesRequest,
)


class TestAppType:
    """Test AppType enum."""

    def test_app_type_values(self):
        """Test that AppType keeps the codes used by the backend."""
        assert AppType.NATIVE == 10
        assert AppType.HYBRID == 11
        assert AppType.COCOS2D == 12
        assert AppType.UNITY == 13
        assert AppType.MAX == 14

    def test_event_type_values(self):
        assert EventType.GOAL == 1


class TestSession:
    """Test Session dataclass."""

    def test_session_defaults(self):
        session = Session(app_id="app", secret_key="key")

        assert session.app_type is AppType.NATIVE
        assert session.user_id is None
        assert session.flags == {}
        assert isinstance(session.started_at, datetime)

    def test_sessions_get_distinct_ids(self):
        first = Session(app_id="app", secret_key="key")
        second = Session(app_id="app", secret_key="key")
        assert first.session_id != second.session_id


class TestGoal:
    """Test Goal model."""

    def test_goal_defaults(self):
        goal = Goal(name="Bought a blue sword")

        assert goal.properties == {}
        assert goal.event_type is EventType.GOAL
        assert isinstance(goal.timestamp, datetime)

    def test_goal_keeps_scalar_types(self):
        goal = Goal(name="Bought", properties={"pro": True, "count": 2, "price": 1.5, "sku": "A1", "note": None})
        assert goal.properties == {"pro": True, "count": 2, "price": 1.5, "sku": "A1", "note": None}
        assert goal.properties["pro"] is True

    def test_goal_rejects_nested_properties(self):
        with pytest.raises(ValidationError):
            Goal(name="Bought", properties={"items": ["a", "b"]})


class TestCampaignInfo:
    """Test CampaignInfo model."""

    def test_minimal_campaign(self):
        campaign = CampaignInfo(campaign_id="cmp-1")

        assert campaign.name is None
        assert campaign.deep_link is None
        assert campaign.properties == {}

    def test_campaign_requires_id(self):
        with pytest.raises(ValidationError):
            CampaignInfo(name="Welcome tour")


def test_attributes_request_defaults():
    request = AttributesRequest(scope=AttributeScope.PUBLIC)
    assert request.attributes == {}
    assert request.clear is False
    assert request.model_dump(mode="json")["scope"] == "public"


def test_version_is_exported():
    assert __version__ == SDK_VERSION
