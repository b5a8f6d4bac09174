"""
Conversation API endpoints - the sidebar and the stateful chat flow.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from ..core.errors import SessionBusyError
from ..core.gateway import FallbackUsed
from ..core.session import ChatSession
from ..models import (
    Conversation, ConversationCreate, ConversationGroups, ConversationRename,
    DEFAULT_TITLE, SendRequest, SendResponse,
)
from .deps import get_session

router = APIRouter(prefix="/conversations", tags=["conversations"])


@router.get("", response_model=ConversationGroups)
async def list_conversations(session: ChatSession = Depends(get_session)):
    """Conversations grouped into today / yesterday / older."""
    return ConversationGroups.from_groups(session.store.list_grouped())


@router.post("", response_model=Conversation, status_code=status.HTTP_201_CREATED)
async def create_conversation(
    body: ConversationCreate,
    session: ChatSession = Depends(get_session),
):
    """Create an empty conversation and make it current."""
    conversation = await session.store.create(body.title or DEFAULT_TITLE)
    session.select_conversation(conversation.id)
    return conversation


@router.post("/new", status_code=status.HTTP_204_NO_CONTENT)
async def start_new_conversation(session: ChatSession = Depends(get_session)):
    """Clear the current conversation; the next send starts a new one."""
    session.new_conversation()
    return None


@router.post("/send", response_model=SendResponse)
async def send_message(
    body: SendRequest,
    session: ChatSession = Depends(get_session),
):
    """
    Send a message in the current (or given) conversation and return the
    assistant's reply. 409 while a previous message is still processing.
    """
    if not body.message.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message is required")
    if session.loading:
        raise SessionBusyError()
    if body.conversation_id:
        session.select_conversation(body.conversation_id)

    message = await session.send(body.message)
    if message is None:
        # The conversation was deleted while the reply was pending
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Conversation was deleted before the reply could be stored",
        )

    result = session.last_result
    return SendResponse(
        conversation_id=session.last_conversation_id,
        message=message,
        source=result.source if result else "error",
        fallback_reason=result.reason if isinstance(result, FallbackUsed) else None,
    )


@router.get("/{conversation_id}", response_model=Conversation)
async def get_conversation(conversation_id: str, session: ChatSession = Depends(get_session)):
    """Full conversation; also makes it current."""
    return session.select_conversation(conversation_id)


@router.patch("/{conversation_id}", response_model=Conversation)
async def rename_conversation(
    conversation_id: str,
    body: ConversationRename,
    session: ChatSession = Depends(get_session),
):
    return await session.rename_conversation(conversation_id, body.title)


@router.delete("/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_conversation(conversation_id: str, session: ChatSession = Depends(get_session)):
    """Delete a conversation. Unknown ids succeed too."""
    await session.delete_conversation(conversation_id)
    return None
