"""
REST API client base used by outbound integrations (shipping carrier).
"""
from .base import BaseAPIClient, APIResponse, APIError

__all__ = [
    "BaseAPIClient",
    "APIResponse",
    "APIError"
]
