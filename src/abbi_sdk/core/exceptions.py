"""Exceptions raised inside the SDK.

None of these reach callers of the ``ABBI`` facade; they travel from the
transport to the delivery worker, which logs them.
"""

from typing import Optional


class ABBIError(Exception):
    """Base class for SDK errors."""


class TransportError(ABBIError):
    """The backend could not be reached or rejected a request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
