"""
Message API routes.
Provides endpoints for sending, retrieving, editing, reacting to and
deleting messages.
"""
from typing import Literal

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import settings
from app.core.database import get_db
from app.dependencies import get_current_user, get_pagination_params
from app.models.user import User
from app.schemas.conversation import MarkReadResponse
from app.schemas.message import (
    MessageCreate,
    MessageDeleteResponse,
    MessageListResponse,
    MessageReactionToggle,
    MessageResponse,
    MessageUpdate,
    ReactionToggleResponse,
)
from app.services.message_service import MessageService

router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a new message",
    description="Send a message to a conversation. The sender must be a participant."
)
@limiter.limit(settings.message_rate_limit)
async def send_message(
    request: Request,
    conversation_id: str,
    message_data: MessageCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Send a new message to a conversation.

    - **content**: Message text (max 1000 chars)
    - **messageType**: text, image, video, gif, file or tweet_share
    - **media**: Attachments
    - **sharedTweetId**: Tweet to share
    - **replyToId**: Message being replied to
    """
    service = MessageService(db)
    return await service.send_message(
        conversation_id=conversation_id,
        sender_id=current_user.id,
        content=message_data.content,
        media=[attachment.model_dump() for attachment in message_data.media],
        message_type=message_data.message_type,
        shared_tweet_id=message_data.shared_tweet_id,
        reply_to_id=message_data.reply_to_id
    )


@router.get(
    "/conversations/{conversation_id}/messages",
    response_model=MessageListResponse,
    summary="Get conversation messages",
    description="One page of messages in chronological order. Viewing marks the conversation read."
)
async def list_messages(
    conversation_id: str,
    pagination: dict = Depends(get_pagination_params),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    return await service.list_messages(
        conversation_id,
        current_user.id,
        page=pagination["page"],
        limit=pagination["limit"]
    )


@router.post(
    "/conversations/{conversation_id}/read",
    response_model=MarkReadResponse,
    summary="Mark conversation as read"
)
async def mark_conversation_read(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    marked = await service.mark_conversation_read(conversation_id, current_user.id)
    return {"marked_count": marked, "unread_count": 0}


@router.get(
    "/{message_id}",
    response_model=MessageResponse,
    summary="Get a message by ID"
)
async def get_message(
    message_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    return await service.get_message(message_id, current_user.id)


@router.put(
    "/{message_id}",
    response_model=MessageResponse,
    summary="Edit a message",
    description="Only the sender can edit, and only while the message is not deleted."
)
async def edit_message(
    message_id: str,
    message_data: MessageUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    return await service.edit_message(message_id, current_user.id, message_data.content)


@router.delete(
    "/{message_id}",
    response_model=MessageDeleteResponse,
    summary="Delete a message",
    description="scope=self hides the message for the caller; scope=everyone (sender only) redacts it for all."
)
async def delete_message(
    message_id: str,
    scope: Literal["self", "everyone"] = Query("self"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    return await service.delete_message(message_id, current_user.id, scope=scope)


@router.post(
    "/{message_id}/reactions",
    response_model=ReactionToggleResponse,
    summary="Toggle a reaction",
    description="Adds the emoji reaction, or removes it when the caller already reacted with it."
)
@limiter.limit("60/minute")
async def toggle_reaction(
    request: Request,
    message_id: str,
    reaction_data: MessageReactionToggle,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    return await service.toggle_reaction(message_id, current_user.id, reaction_data.emoji)
