"""
Notification API endpoints.
Provides the caller's notification inbox.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.dependencies import get_current_user, get_pagination_params
from app.models.user import User
from app.schemas.notification import (
    MarkAllReadResponse,
    NotificationCountsResponse,
    NotificationListResponse,
    NotificationResponse,
)
from app.services.notification_service import NotificationService

router = APIRouter()


@router.get("/", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    pagination: dict = Depends(get_pagination_params),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get current user's notifications, newest first.

    **Authentication**: Required

    **Returns**: NotificationListResponse with the unread count
    """
    notification_service = NotificationService(db)
    return await notification_service.list_notifications(
        current_user.id,
        page=pagination["page"],
        limit=pagination["limit"],
        unread_only=unread_only
    )


@router.get("/counts", response_model=NotificationCountsResponse)
async def get_notification_counts(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    notification_service = NotificationService(db)
    return await notification_service.get_counts(current_user.id)


@router.put("/read-all", response_model=MarkAllReadResponse)
async def mark_all_notifications_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Mark every unread notification as read.

    **Returns**: Number of notifications updated
    """
    notification_service = NotificationService(db)
    updated = await notification_service.mark_all_as_read(current_user.id)
    return {"updated_count": updated}


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Mark one notification as read.

    **Raises**:
    - 404: Notification not found
    - 403: Notification belongs to someone else
    """
    notification_service = NotificationService(db)
    return await notification_service.mark_as_read(notification_id, current_user.id)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    notification_service = NotificationService(db)
    await notification_service.delete_notification(notification_id, current_user.id)
