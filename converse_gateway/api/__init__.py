"""
API Router Module Initialization
"""

from converse_gateway.api.deps import get_chat_service

__all__ = [
    "get_chat_service",
]
