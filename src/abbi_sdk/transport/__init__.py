"""Backend transports for the ABBI SDK."""

from .http_backend import HttpBackend

__all__ = [
    "HttpBackend",
]
