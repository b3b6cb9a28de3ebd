"""
Shipping carrier integration (CDEK).
"""
from .cdek_client import CdekClient, get_cdek_client, shutdown_cdek_client

__all__ = [
    "CdekClient",
    "get_cdek_client",
    "shutdown_cdek_client",
]
