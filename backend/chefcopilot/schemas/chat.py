"""
Pydantic schemas for Chat API

This module defines request/response models for the catalog chat endpoint.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from chefcopilot.schemas.catalog import ProductSummary

ChatRole = Literal["user", "assistant", "system"]


# ========================================
# Conversation Schemas
# ========================================

class ConversationTurn(BaseModel):
    """One turn of a conversation, as replayed by the client."""

    role: ChatRole = Field(description="Turn role: user, assistant or system")
    content: str = Field(default="", description="Turn text")
    products: Optional[List[ProductSummary]] = Field(
        default=None,
        description="Products attached to an assistant turn"
    )

    def for_llm(self) -> Dict[str, str]:
        """Role + content only, the shape the generation API accepts."""
        return {"role": self.role, "content": self.content}


# ========================================
# Chat / RAG Schemas
# ========================================

class ChatRequest(BaseModel):
    """Request schema for a catalog chat query."""

    message: str = Field(
        description="User's message/query",
        min_length=1,
        max_length=4000
    )

    conversation_history: List[ConversationTurn] = Field(
        default_factory=list,
        validation_alias=AliasChoices("conversationHistory", "conversation_history"),
        description="Prior turns, oldest first"
    )

    @field_validator("message")
    @classmethod
    def _message_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("message must not be blank")
        return v.strip()


class ChatResponse(BaseModel):
    """Response schema for a catalog chat query."""

    success: bool = Field(default=True)
    message: str = Field(description="Generated answer")
    conversation_history: List[ConversationTurn] = Field(
        serialization_alias="conversationHistory",
        description="History with system turns removed, plus this exchange"
    )
    products: List[ProductSummary] = Field(
        default_factory=list,
        description="Products referenced by the retrieved evidence"
    )
    sources: List[str] = Field(
        default_factory=list,
        description="Evidence classes that contributed (products_db, web_content)"
    )
    timings: Optional[Dict[str, Any]] = Field(default=None, description="Step timings in ms")
