from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core import boards as board_service
from app.db.session import get_db
from app.schemas.board import BoardRead
from app.schemas.comment import CommentCreate
from app.schemas.principal import Principal

router = APIRouter(prefix="/api/boards/{board_id}/blocks/{block_id}/comments", tags=["comments"])


@router.post("", response_model=BoardRead, status_code=status.HTTP_201_CREATED)
async def add_comment(
    board_id: int,
    block_id: str,
    comment: CommentCreate,
    user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Append a comment to a block and return the whole updated board."""
    return await board_service.add_comment(db, board_id, block_id, comment, user)
