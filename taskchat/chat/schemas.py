"""
TASKCHAT - Chat Schemas

Pydantic models for the chat endpoint.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from taskchat.lists.schemas import TaskListResponse


class ChatRequest(BaseModel):
    """Request model for one chat turn."""

    message: str = Field(min_length=1, max_length=1000, description="User's chat message")
    user_id: str = Field(min_length=1, description="Owner of the task lists")

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        """Validate message is not just whitespace."""
        if not v or not v.strip():
            raise ValueError("Message cannot be empty or whitespace only")
        return v.strip()

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, v: str) -> str:
        """Validate user_id is not just whitespace."""
        if not v or not v.strip():
            raise ValueError("User ID cannot be empty or whitespace only")
        return v.strip()


class ChatResponse(BaseModel):
    """What the chat surface renders for one turn."""

    reply: str = Field(description="Assistant reply with any machine payload removed")
    intent: Optional[str] = Field(
        default=None,
        description="answer | lists_updated | confirm_delete | error",
    )
    task_lists: List[TaskListResponse] = Field(
        default_factory=list,
        description="Lists created or modified by this turn",
    )
    deleted_list_ids: List[str] = Field(default_factory=list, description="Lists removed by this turn")
    suggestions: List[str] = Field(default_factory=list, description="Short follow-up suggestions")
    error: Optional[str] = Field(default=None, description="Turn-level error, if any")


class ChatResetResponse(BaseModel):
    message: str = Field(description="Confirmation message")
    user_id: str = Field(description="User whose conversation was reset")
