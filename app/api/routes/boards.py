import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core import boards as board_service
from app.db.session import get_db
from app.schemas.board import BoardCreate, BoardRead, BoardSummary
from app.schemas.principal import Principal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/boards", tags=["boards"])


@router.get("", response_model=List[BoardSummary])
async def list_boards(
    user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List boards the caller owns or collaborates on."""
    return await board_service.list_boards(db, user)


@router.post("", response_model=BoardRead, status_code=status.HTTP_201_CREATED)
async def create_board(
    board: BoardCreate,
    user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await board_service.create_board(db, board, user)


@router.get("/{board_id}", response_model=BoardRead)
async def get_board(
    board_id: int,
    user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Fetch the canonical board document."""
    return await board_service.get_board(db, board_id, user)


@router.patch("/{board_id}", response_model=BoardRead)
async def patch_board(
    board_id: int,
    fragment: Dict[str, Any] = Body(...),
    user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Replace each top-level field present in the body, return the merged board."""
    return await board_service.apply_patch(db, board_id, fragment, user)


@router.delete("/{board_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_board(
    board_id: int,
    user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await board_service.delete_board(db, board_id, user)
