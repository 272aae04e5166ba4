"""
Service layer module initialization
"""

from converse_gateway.services.chat_service import ChatService, log_usage

__all__ = [
    "ChatService",
    "log_usage",
]
