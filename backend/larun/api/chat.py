"""
Chat API endpoint - stateless completion used by the static chat page.

POST /chat {"message": ..., "conversation_id": ...}
    -> 200 {"response": ..., "conversation_id": ...}
    -> 400 {"error": "Message is required"}
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ..core.gateway import CompletionGateway
from ..models import ChatRequest, ChatResponse, ErrorResponse
from .deps import get_gateway

router = APIRouter(tags=["chat"])


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse}},
)
async def chat(
    request: ChatRequest,
    response: Response,
    gateway: CompletionGateway = Depends(get_gateway),
):
    """
    Answer a single message. The provider's answer is used when available,
    the built-in analysis templates otherwise; the ``X-Response-Source``
    header says which.
    """
    if not request.message or not request.message.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message is required")

    result = await gateway.complete(request.message, request.conversation_id)
    response.headers["X-Response-Source"] = result.source
    return ChatResponse(response=result.text, conversation_id=request.conversation_id)
