"""
Chat API routes.
Provides endpoints for the chat list, message history, sending and read receipts.
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.dependencies import get_current_user, limiter
from app.models.user import User
from app.schemas.chat import (
    ChatListResponse,
    MarkReadRequest,
    MessageCreate,
    MessageListResponse,
    MessageResponse,
)
from app.services.chat_service import ChatService

router = APIRouter()


@router.get(
    "",
    response_model=ChatListResponse,
    summary="List my chats",
    description="One entry per visible match, most recently active first."
)
async def list_chats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    chats = await ChatService(db).list_chats(current_user)
    return ChatListResponse(chats=chats)


@router.get(
    "/{match_id}/messages",
    response_model=MessageListResponse,
    summary="Get chat messages",
)
async def get_messages(
    match_id: int,
    cursor: Optional[int] = Query(None, description="Return messages with an ID below this one"),
    limit: Optional[int] = Query(None, description="Page size (1-100, default 50)"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Message history, newest first.

    - **cursor**: ID of the oldest message of the previous page
    - **limit**: Number of messages to return
    """
    return await ChatService(db).get_messages(current_user, match_id, cursor=cursor, limit=limit)


@router.post(
    "/{match_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a message",
)
@limiter.limit("30/minute")  # Max 30 messages per minute per client
async def send_message(
    request: Request,
    match_id: int,
    data: MessageCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Send a message to the match partner.

    - **content**: 1 to 1000 characters, stored verbatim
    - **message_type**: text (default) or image
    """
    return await ChatService(db).send(
        current_user,
        match_id,
        data.content,
        message_type=data.message_type,
    )


@router.put(
    "/{match_id}/read",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Mark messages as read",
)
async def mark_read(
    match_id: int,
    data: Optional[MarkReadRequest] = Body(None),
    up_to: Optional[int] = Query(None, description="Alternative to the body field"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Advance the read cursor.

    Without an ID every message currently in the chat is marked read.
    """
    up_to_message_id = up_to
    if data is not None and data.up_to_message_id is not None:
        up_to_message_id = data.up_to_message_id

    await ChatService(db).mark_read(current_user, match_id, up_to_message_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
