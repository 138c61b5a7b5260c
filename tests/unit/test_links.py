"""Unit tests for SDK URL recognition."""

import httpx
import pytest

from abbi_sdk.links import parse_sdk_url


class TestParseSdkUrl:
    """Test decoding of inbound URLs."""

    def test_trigger(self):
        action = parse_sdk_url("abbi://trigger?name=Show%20How%20To%20Order")
        assert action.action == "trigger"
        assert action.name == "Show How To Order"
        assert action.deep_link is None

    def test_trigger_with_deep_link(self):
        action = parse_sdk_url("abbi://trigger?name=Welcome&deep_link=myapp%3A%2F%2Fmain_screen")
        assert action.deep_link == "myapp://main_screen"

    def test_flag(self):
        action = parse_sdk_url("abbi://flag?n=12")
        assert action.action == "flag"
        assert action.flag == 12

    def test_goal_with_properties(self):
        action = parse_sdk_url("abbi://goal?name=Opened&campaign=spring&channel=email")
        assert action.name == "Opened"
        assert action.properties == {"campaign": "spring", "channel": "email"}

    def test_scheme_is_case_insensitive(self):
        assert parse_sdk_url("ABBI://trigger?name=Welcome") is not None

    def test_custom_scheme(self):
        assert parse_sdk_url("walkme://flag?n=1", scheme="walkme").flag == 1
        assert parse_sdk_url("abbi://flag?n=1", scheme="walkme") is None

    def test_per_app_scheme_needs_app_id(self):
        assert parse_sdk_url("abbi-app-1://flag?n=1") is None
        assert parse_sdk_url("abbi-app-1://flag?n=1", app_id="app-1").flag == 1
        assert parse_sdk_url("abbi-app-2://flag?n=1", app_id="app-1") is None

    @pytest.mark.parametrize("url", [
        "https://example.com/trigger?name=Welcome",
        "myapp://main_screen",
        "abbi://unknown?name=Welcome",
        "abbi://trigger",
        "abbi://trigger?name=%20%20",
        "abbi://flag?n=three",
        "abbi://flag",
        "abbi://goal?channel=email",
        "",
    ])
    def test_not_sdk_urls(self, url):
        assert parse_sdk_url(url) is None

    def test_accepts_httpx_url(self):
        assert parse_sdk_url(httpx.URL("abbi://flag?n=5")).flag == 5

    def test_unparsable_url_raises(self):
        with pytest.raises(httpx.InvalidURL):
            parse_sdk_url("http://[::1")
