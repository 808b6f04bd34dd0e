"""Endpoint modules for the Sunsynk Connect API."""

from .base import BaseEndpoint
from .inverters import InverterEndpoints

__all__ = [
    "BaseEndpoint",
    "InverterEndpoints",
]
