"""
Activity endpoints.

All routes require an authenticated user.  Editing and deleting are
restricted to the activity's host through ``require_activity_host``;
attendance is a single toggle endpoint.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from reactivities_api.app.core.security import get_current_user, require_activity_host
from reactivities_api.app.schemas.activity import ActivityCreate, ActivityEdit, ActivityPage, ActivityRead
from reactivities_api.app.schemas.comment import CommentRead
from reactivities_api.app.services.activity_service import DEFAULT_PAGE_SIZE, ActivityService
from reactivities_api.app.services.comment_service import CommentService


router = APIRouter()


@router.get("", response_model=ActivityPage)
async def list_activities(
    filter: Optional[str] = Query(None, description="isGoing or isHost"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    cursor: Optional[datetime] = Query(None),
    page_size: int = Query(DEFAULT_PAGE_SIZE, alias="pageSize"),
    current_user: dict = Depends(get_current_user),
) -> ActivityPage:
    """List upcoming activities one page at a time.

    - **filter**: `isGoing` (activities you attend) or `isHost` (activities you host).
    - **startDate**: earliest activity date, defaults to now.
    - **cursor**: `nextCursor` from the previous page.
    - **pageSize**: items per page (between 1 and 50).
    """
    return await ActivityService.list_activities(
        current_user["user_id"],
        filter=filter,
        start_date=start_date,
        cursor=cursor,
        page_size=page_size,
    )


@router.get("/{activity_id}", response_model=ActivityRead)
async def get_activity(activity_id: str, current_user: dict = Depends(get_current_user)) -> ActivityRead:
    return await ActivityService.get_activity(activity_id, current_user["user_id"])


@router.post("")
async def create_activity(activity: ActivityCreate, current_user: dict = Depends(get_current_user)) -> str:
    """Create an activity hosted by the current user and return its id."""
    return await ActivityService.create_activity(activity, current_user)


@router.put("/{activity_id}")
async def edit_activity(
    activity_id: str,
    activity: ActivityEdit,
    current_user: dict = Depends(require_activity_host),
) -> Response:
    await ActivityService.edit_activity(activity_id, activity)
    return Response(status_code=status.HTTP_200_OK)


@router.delete("/{activity_id}")
async def delete_activity(activity_id: str, current_user: dict = Depends(require_activity_host)) -> Response:
    await ActivityService.delete_activity(activity_id)
    return Response(status_code=status.HTTP_200_OK)


@router.post("/{activity_id}/attend")
async def update_attendance(activity_id: str, current_user: dict = Depends(get_current_user)) -> Response:
    """Join, leave or (for the host) cancel and reactivate an activity."""
    await ActivityService.update_attendance(activity_id, current_user["user_id"])
    return Response(status_code=status.HTTP_200_OK)


@router.get("/{activity_id}/comments", response_model=List[CommentRead])
async def list_comments(activity_id: str, current_user: dict = Depends(get_current_user)) -> List[CommentRead]:
    return await CommentService.list_comments(activity_id)
