"""Recognition of inbound SDK URLs.

SDK URLs use the configured scheme (``abbi`` by default) or the per-app
scheme ``abbi-<app_id>``. The URL host names the action::

    abbi://trigger?name=Welcome&deep_link=myapp://home
    abbi://flag?n=3
    abbi://goal?name=Purchased&item=sword
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Union

import httpx


TRIGGER = "trigger"
FLAG = "flag"
GOAL = "goal"

ACTIONS = (TRIGGER, FLAG, GOAL)


@dataclass
class LinkAction:
    """An SDK action decoded from a URL."""
    action: str
    name: Optional[str] = None
    deep_link: Optional[str] = None
    flag: Optional[int] = None
    properties: Dict[str, str] = field(default_factory=dict)


def accepted_schemes(scheme: str, app_id: Optional[str] = None) -> set:
    schemes = {scheme.lower()}
    if app_id:
        schemes.add(f"{scheme}-{app_id}".lower())
    return schemes


def parse_sdk_url(
    url: Union[str, httpx.URL],
    scheme: str = "abbi",
    app_id: Optional[str] = None,
) -> Optional[LinkAction]:
    """Decode an SDK URL.

    Args:
        url: The inbound URL.
        scheme: Configured SDK scheme.
        app_id: Application id of the active session, enabling ``<scheme>-<app_id>``.

    Returns:
        The decoded action, or None if the URL is not an SDK URL or is
        missing what its action needs.

    Raises:
        httpx.InvalidURL: If the URL cannot be parsed.
    """
    parsed = httpx.URL(url)
    if parsed.scheme.lower() not in accepted_schemes(scheme, app_id):
        return None

    action = (parsed.host or parsed.path.strip("/")).lower()
    params = parsed.params

    if action == TRIGGER:
        name = params.get("name", "").strip()
        if not name:
            return None
        return LinkAction(action=TRIGGER, name=name, deep_link=params.get("deep_link") or None)

    if action == FLAG:
        try:
            flag = int(params.get("n", ""))
        except ValueError:
            return None
        return LinkAction(action=FLAG, flag=flag)

    if action == GOAL:
        name = params.get("name", "").strip()
        if not name:
            return None
        properties = {key: value for key, value in params.items() if key != "name"}
        return LinkAction(action=GOAL, name=name, properties=properties)

    return None
