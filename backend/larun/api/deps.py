"""
Request dependencies - hand out the objects built at startup (see main.lifespan).
"""

from fastapi import Depends, Request

from ..core.gateway import CompletionGateway
from ..core.session import ChatSession, SessionRegistry
from ..storage.activity_storage import ActivityLog
from ..tools.mast_client import MASTClient
from ..utils.auth import get_current_user_id


def get_gateway(request: Request) -> CompletionGateway:
    return request.app.state.gateway


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_activity_log(request: Request) -> ActivityLog:
    return request.app.state.activity


def get_mast_client(request: Request) -> MASTClient:
    return request.app.state.mast


async def get_session(
    user_id: str = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_registry),
) -> ChatSession:
    return await registry.get(user_id)
