"""indreserve: async client for the Independent Reserve REST API."""

from .settings import ClientSettings, Settings
from .api import Failure, IndependentReserveClient, OrderType, Result, Success

__all__ = [
    "Settings",
    "ClientSettings",
    "IndependentReserveClient",
    "OrderType",
    "Result",
    "Success",
    "Failure",
]
