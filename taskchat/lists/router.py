"""
TASKCHAT - Task List Router

Read and maintenance endpoints for a user's task lists. Mutations from
chat go through the command engine, not through here.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from taskchat.chat.session import SessionStore, get_session_store
from taskchat.database import get_database
from taskchat.engine.reconcile import merge_duplicate_lists
from taskchat.lists.repository import TaskListRepository, TaskListRepositoryInterface
from taskchat.lists.schemas import (
    CleanupResponse,
    TaskListCollectionResponse,
    TaskListResponse,
)

logger = logging.getLogger(__name__)


router = APIRouter(prefix="/lists", tags=["Lists"])


async def get_task_list_repository(
    db: Annotated[AsyncIOMotorDatabase, Depends(get_database)]
) -> TaskListRepositoryInterface:
    """Dependency to get task list repository instance."""
    return TaskListRepository(db)


@router.get(
    "",
    response_model=TaskListCollectionResponse,
    summary="Reload all lists",
)
async def list_task_lists(
    repository: Annotated[TaskListRepositoryInterface, Depends(get_task_list_repository)],
    sessions: Annotated[SessionStore, Depends(get_session_store)],
    user_id: str = Query(min_length=1, description="Owner of the lists"),
) -> TaskListCollectionResponse:
    """
    Re-fetch the user's lists from the store and replace the session's
    in-memory collection with them.
    """
    existed = sessions.peek(user_id) is not None
    session = await sessions.get(user_id, repository)
    if session.loading:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A chat turn is in progress for this user",
        )

    # a new session has just been loaded from the store
    lists = await session.coordinator.reload() if existed else session.coordinator.lists
    return TaskListCollectionResponse(
        lists=[TaskListResponse.from_model(t) for t in lists],
        total=len(lists),
    )


@router.post(
    "/cleanup",
    response_model=CleanupResponse,
    summary="Merge duplicate lists",
)
async def cleanup_duplicate_lists(
    repository: Annotated[TaskListRepositoryInterface, Depends(get_task_list_repository)],
    sessions: Annotated[SessionStore, Depends(get_session_store)],
    user_id: str = Query(min_length=1, description="Owner of the lists"),
) -> CleanupResponse:
    """
    Fold lists sharing a title (ignoring case) into the oldest one and
    delete the rest.
    """
    session = await sessions.get(user_id, repository)
    if session.loading:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A chat turn is in progress for this user",
        )

    result = merge_duplicate_lists(session.coordinator.lists)
    session.coordinator.apply(result)
    report = await session.coordinator.flush()
    if not report.ok:
        logger.error(f"Cleanup for user {user_id} left {len(report.errors)} failed write(s)")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Some changes could not be saved. Reload your lists and try again.",
        )

    return CleanupResponse(
        merged_into=[t.id for t in result.modified],
        deleted=[t.id for t in result.deleted],
        lists=[TaskListResponse.from_model(t) for t in session.coordinator.lists],
    )
