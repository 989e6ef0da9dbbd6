"""Destinations the sync engine writes to."""

from .base import BaseDestination
from .grist_loader import GristClient

__all__ = [
    "BaseDestination",
    "GristClient",
]
