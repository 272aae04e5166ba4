"""
API Dependency Injection Module

Provides dependencies required by FastAPI routes.
"""

from typing import Annotated

from fastapi import Depends

from converse_gateway.config import Settings, get_settings
from converse_gateway.services import ChatService


SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_chat_service(settings: SettingsDep) -> ChatService:
    """Get chat completion service"""
    return ChatService(settings)


ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]
