"""
Block API routes.
Users block others, list their blocks and lift them.
"""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.moderation import BlockCreate, BlockListResponse, BlockResponse
from app.services.moderation_service import ModerationService

router = APIRouter()


@router.post(
    "",
    response_model=BlockResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Block a user",
    description="Idempotent: blocking the same user again returns the existing block."
)
async def create_block(
    data: BlockCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Block a user.

    The pair disappears from each other's discovery and chat lists, and
    neither can send messages in a shared match.
    """
    block, _ = await ModerationService(db).create_block(
        current_user,
        blocked_id=data.blocked_id,
        reason=data.reason,
    )
    return BlockResponse.from_block(block)


@router.get(
    "",
    response_model=BlockListResponse,
    summary="List users I blocked",
)
async def list_blocks(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    blocks = await ModerationService(db).list_blocks(current_user)
    return BlockListResponse(blocks=[BlockResponse.from_block(b) for b in blocks])


@router.delete(
    "/{block_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a block",
)
async def remove_block(
    block_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Lift a block. Deleting a block that no longer exists succeeds."""
    await ModerationService(db).remove_block(current_user, block_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
