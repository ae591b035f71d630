"""
Conversation API routes.
Provides endpoints for starting direct conversations, creating groups,
and browsing the inbox.
"""
from typing import Dict

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import settings
from app.core.database import get_db
from app.dependencies import get_current_user, get_pagination_params
from app.models.user import User
from app.schemas.conversation import (
    ConversationArchiveUpdate,
    ConversationListResponse,
    ConversationResponse,
    ConversationStart,
    GroupConversationCreate,
)
from app.services.conversation_service import ConversationService

router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


@router.post(
    "/",
    response_model=ConversationResponse,
    summary="Start a direct conversation",
    description="Returns the existing conversation with the user, creating it on first contact."
)
@limiter.limit("30/minute")
async def start_conversation(
    request: Request,
    data: ConversationStart,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = ConversationService(db)
    return await service.start_conversation(current_user.id, data.username)


@router.post(
    "/group",
    response_model=ConversationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a group conversation"
)
@limiter.limit("10/minute")
async def create_group_conversation(
    request: Request,
    data: GroupConversationCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a group conversation.

    - **name**: Group name
    - **memberIds**: At least two other user ids (the creator is added automatically)
    """
    service = ConversationService(db)
    return await service.create_group_conversation(current_user.id, data.member_ids, data.name)


@router.get(
    "/",
    response_model=ConversationListResponse,
    summary="List conversations",
    description="The caller's conversations, most recently active first."
)
async def list_conversations(
    include_archived: bool = Query(False, alias="includeArchived"),
    pagination: dict = Depends(get_pagination_params),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = ConversationService(db)
    return await service.list_user_conversations(
        current_user.id,
        page=pagination["page"],
        limit=pagination["limit"],
        include_archived=include_archived
    )


@router.get(
    "/{conversation_id}",
    response_model=ConversationResponse,
    summary="Get conversation details"
)
async def get_conversation(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = ConversationService(db)
    return await service.get_conversation(conversation_id, current_user.id)


@router.put(
    "/{conversation_id}/archive",
    response_model=ConversationResponse,
    summary="Archive or unarchive a conversation"
)
async def set_archived(
    conversation_id: str,
    data: ConversationArchiveUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = ConversationService(db)
    return await service.set_archived(conversation_id, current_user.id, data.archived)


@router.get(
    "/{conversation_id}/unread-counts",
    response_model=Dict[str, int],
    summary="Unread counter of every participant"
)
async def get_unread_counts(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = ConversationService(db)
    return await service.get_unread_counts(conversation_id, current_user.id)


@router.post(
    "/{conversation_id}/recount",
    summary="Recompute the caller's unread counter from read receipts"
)
async def recount_unread(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = ConversationService(db)
    unread = await service.recount_unread(conversation_id, current_user.id)
    return {"unreadCount": unread}
