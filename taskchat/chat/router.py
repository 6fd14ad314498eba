"""
TASKCHAT - Chat Router

Natural-language command endpoint and conversation reset.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from taskchat.chat.generator import build_generator
from taskchat.chat.schemas import ChatRequest, ChatResponse, ChatResetResponse
from taskchat.chat.service import ChatService
from taskchat.chat.session import TurnInProgressError, session_store
from taskchat.lists.repository import TaskListRepositoryInterface
from taskchat.lists.router import get_task_list_repository

logger = logging.getLogger(__name__)


router = APIRouter(prefix="/chat", tags=["Chat"])


# Service instance (can be overridden in tests)
_chat_service: Optional[ChatService] = None


def get_chat_service() -> ChatService:
    """Get chat service instance, building the configured generator on first use."""
    global _chat_service
    if _chat_service is None:
        _chat_service = ChatService(build_generator(), session_store)
    return _chat_service


def set_chat_service(service: Optional[ChatService]) -> None:
    """Set chat service (for testing)."""
    global _chat_service
    _chat_service = service


@router.post("", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    chat_service: Annotated[ChatService, Depends(get_chat_service)],
    repository: Annotated[TaskListRepositoryInterface, Depends(get_task_list_repository)],
) -> ChatResponse:
    """
    Run one chat turn for the user and return the cleaned reply, the lists
    it touched and follow-up suggestions.
    """
    try:
        logger.info(f"Processing message for user {request.user_id}: {request.message[:50]}...")
        response = await chat_service.process_message(
            user_id=request.user_id,
            message=request.message,
            repository=repository,
        )
        logger.info(f"Turn finished with intent: {response.intent}")
        return response

    except TurnInProgressError as e:
        logger.warning(str(e))
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Still working on your previous message. Please wait.",
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error processing message: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while processing your message. Please try again later.",
        )


@router.delete("/{user_id}", response_model=ChatResetResponse)
async def reset_conversation(
    user_id: str,
    chat_service: Annotated[ChatService, Depends(get_chat_service)],
) -> ChatResetResponse:
    """Forget the conversation history. Lists are not touched."""
    session = chat_service.sessions.peek(user_id)
    if session is not None:
        session.reset()
    return ChatResetResponse(message="Conversation reset", user_id=user_id)
