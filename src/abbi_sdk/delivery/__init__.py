"""Asynchronous, best-effort delivery of backend requests."""

from .queue import DeliveryQueue, DeliveryJob

__all__ = [
    "DeliveryQueue",
    "DeliveryJob",
]
