"""
Chat API Routes

This module provides the catalog chat endpoint:
- Retrieve product evidence for the user's message
- Generate a grounded answer
- Return the answer, the referenced products and the updated history

The client owns the conversation: it replays ``conversationHistory`` on
every request and stores the history returned in the response.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends

from chefcopilot.api.deps import get_chat_service
from chefcopilot.schemas.chat import ChatRequest, ChatResponse
from chefcopilot.schemas.common import parse_request
from chefcopilot.services.rag.chat_service import CatalogChatService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


# ========================================
# Chat / RAG
# ========================================

@router.post("", response_model=ChatResponse)
async def chat(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    chat_service: CatalogChatService = Depends(get_chat_service),
):
    """
    Answer a question about the catalog.

    Args:
        payload: ``{"message": str, "conversationHistory": [...]}``
        chat_service: Chat pipeline for this request

    Returns:
        Answer with products, sources and the updated history

    Raises:
        InvalidInputError: If the message is missing or blank (400)
        GenerationError: If the answer could not be generated (502)
    """
    request = parse_request(ChatRequest, payload)

    logger.info(
        f"Chat request: message_len={len(request.message)}, "
        f"history_turns={len(request.conversation_history)}"
    )

    return await chat_service.answer(request)
