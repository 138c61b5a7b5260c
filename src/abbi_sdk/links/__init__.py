"""Inbound URL handling for the ABBI SDK."""

from .url_handler import LinkAction, parse_sdk_url, accepted_schemes, ACTIONS

__all__ = [
    "LinkAction",
    "parse_sdk_url",
    "accepted_schemes",
    "ACTIONS",
]
