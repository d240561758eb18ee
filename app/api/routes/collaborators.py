from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core import boards as board_service
from app.db.session import get_db
from app.schemas.board import CollaboratorRead
from app.schemas.collaborator import CollaboratorCreate
from app.schemas.principal import Principal

router = APIRouter(prefix="/api/boards/{board_id}/collaborators", tags=["collaborators"])


@router.get("", response_model=List[CollaboratorRead])
async def list_collaborators(
    board_id: int,
    user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    board = await board_service.get_board(db, board_id, user)
    return board.collaborators


@router.post("", response_model=List[CollaboratorRead], status_code=status.HTTP_201_CREATED)
async def add_collaborator(
    board_id: int,
    collaborator: CollaboratorCreate,
    user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Share the board with a user, or change their role."""
    return await board_service.add_collaborator(db, board_id, collaborator, user)


@router.delete("/{user_id}", response_model=List[CollaboratorRead])
async def remove_collaborator(
    board_id: int,
    user_id: str,
    user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await board_service.remove_collaborator(db, board_id, user_id, user)
