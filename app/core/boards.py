"""
Board persistence: load, authorize, merge and commit.

Every write goes through `commit_fields`, which runs the field-level replace
merge on the stored document, validates the result and writes the touched
columns back. Writes to the same field from concurrent requests are not
detected: whichever transaction commits last wins that field outright.
"""
import logging
from typing import Any, List, Mapping, Tuple

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import services
from app.core.edits import append_comment, clear_storyboard, new_id, set_storyboard, locate_column
from app.core.errors import AuthorizationError, NotFoundError, ValidationError
from app.core.patch import ReplaceField, dump_entities, merge_fields, parse_fragment, stamp_comments, utcnow
from app.core.validation import validate_board
from app.db.models import Board, BoardCollaborator
from app.schemas.board import BoardCreate, BoardRead, BoardSummary, CollaboratorRead, Comment
from app.schemas.collaborator import CollaboratorCreate
from app.schemas.comment import CommentCreate
from app.schemas.principal import Principal

logger = logging.getLogger(__name__)


def to_document(board: Board) -> BoardRead:
    return BoardRead(
        id=board.id,
        name=board.name,
        description=board.description,
        status=board.status,
        phases=board.phases or [],
        blocks=board.blocks or [],
        owner_id=board.owner_id,
        collaborators=[
            CollaboratorRead(user_id=c.user_id, role=c.role) for c in board.collaborators
        ],
        created_at=board.created_at,
        updated_at=board.updated_at,
    )


async def load_board(db: AsyncSession, board_id: int, for_update: bool = False) -> Board:
    """Fetch a board row, always re-reading it from the database."""
    stmt = (
        select(Board)
        .where(Board.id == board_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    board = result.scalar_one_or_none()
    if not board:
        raise NotFoundError(f"Board {board_id} not found")
    return board


def authorize(board: Board, actor: Principal, write: bool = True) -> None:
    """Owners do anything, editors read and write, viewers only read."""
    if board.owner_id == actor.user_id:
        return
    role = next((c.role for c in board.collaborators if c.user_id == actor.user_id), None)
    if role is None or (write and role != "editor"):
        logger.info(
            f"Denied {'write' if write else 'read'} access on board {board.id} to {actor.user_id}"
        )
        raise AuthorizationError(f"User {actor.user_id} may not {'edit' if write else 'view'} this board")


def require_owner(board: Board, actor: Principal) -> None:
    if board.owner_id != actor.user_id:
        raise AuthorizationError("Only the board owner may do this")


async def _reload(db: AsyncSession, board: Board) -> None:
    await db.refresh(board)
    await db.refresh(board, attribute_names=["collaborators"])


async def commit_fields(db: AsyncSession, board: Board, fields: List[ReplaceField]) -> BoardRead:
    """Merge `fields` into the locked `board` row, validate and commit."""
    document = to_document(board)
    if not fields:
        await db.commit()
        return document

    merged = merge_fields(document, fields)
    validate_board(merged)

    for field in fields:
        value = getattr(merged, field.name)
        if field.name in ("phases", "blocks"):
            value = dump_entities(value)
        elif field.name == "status":
            value = value.value
        setattr(board, field.name, value)
    board.updated_at = merged.updated_at

    await db.commit()
    await _reload(db, board)
    logger.info(f"Board {board.id}: replaced {', '.join(f.name for f in fields)}")
    return to_document(board)


# --- Read path --- #


async def get_board(db: AsyncSession, board_id: int, actor: Principal) -> BoardRead:
    board = await load_board(db, board_id)
    authorize(board, actor, write=False)
    return to_document(board)


async def list_boards(db: AsyncSession, actor: Principal) -> List[BoardSummary]:
    shared = select(BoardCollaborator.board_id).where(BoardCollaborator.user_id == actor.user_id)
    result = await db.execute(
        select(Board)
        .where(or_(Board.owner_id == actor.user_id, Board.id.in_(shared)))
        .order_by(Board.updated_at.desc(), Board.id.desc())
    )
    return [
        BoardSummary(
            id=b.id,
            name=b.name,
            status=b.status,
            owner_id=b.owner_id,
            phase_count=len(b.phases or []),
            block_count=len(b.blocks or []),
            updated_at=b.updated_at,
        )
        for b in result.scalars().all()
    ]


# --- Write path --- #


async def create_board(db: AsyncSession, data: BoardCreate, actor: Principal) -> BoardRead:
    now = utcnow()
    blocks = stamp_comments([], data.blocks, now)
    validate_board(
        BoardRead(
            id=0,
            name=data.name,
            status=data.status,
            phases=data.phases,
            blocks=blocks,
            owner_id=actor.user_id,
        )
    )

    board = Board(
        name=data.name,
        description=data.description,
        status=data.status.value,
        phases=dump_entities(data.phases),
        blocks=dump_entities(blocks),
        owner_id=actor.user_id,
        created_at=now,
        updated_at=now,
    )
    db.add(board)
    await db.commit()
    await _reload(db, board)
    logger.info(f"Created board {board.id} for {actor.user_id}")
    return to_document(board)


async def apply_patch(
    db: AsyncSession,
    board_id: int,
    fragment: Mapping[str, Any],
    actor: Principal,
) -> BoardRead:
    """Validate `fragment`, then replace each field it carries on the stored board."""
    fields = parse_fragment(fragment)
    board = await load_board(db, board_id, for_update=True)
    authorize(board, actor)
    return await commit_fields(db, board, fields)


async def delete_board(db: AsyncSession, board_id: int, actor: Principal) -> None:
    board = await load_board(db, board_id)
    require_owner(board, actor)
    await db.delete(board)
    await db.commit()
    logger.info(f"Deleted board {board_id}")


# --- Comments --- #


async def add_comment(
    db: AsyncSession,
    board_id: int,
    block_id: str,
    data: CommentCreate,
    actor: Principal,
) -> BoardRead:
    """Append a comment to one block, written as a whole `blocks` replace."""
    board = await load_board(db, board_id, for_update=True)
    authorize(board, actor)
    if data.user_id and data.user_id != actor.user_id:
        raise AuthorizationError("Cannot comment on behalf of another user")

    comment = Comment(
        id=data.id or new_id(),
        content=data.content,
        user_id=actor.user_id,
        author_name=data.author_name or actor.name,
    )
    fragment = append_comment(to_document(board), block_id, comment)
    return await commit_fields(db, board, parse_fragment(fragment))


# --- Storyboards --- #


async def attach_storyboard(
    db: AsyncSession,
    board_id: int,
    column_id: str,
    prompt: str,
    actor: Principal,
) -> Tuple[BoardRead, str]:
    """Generate an image for a column and store it with its prompt."""
    if not prompt.strip():
        raise ValidationError("Prompt must not be empty", path="prompt", expected="non-empty string")

    board = await load_board(db, board_id)
    authorize(board, actor)
    locate_column(to_document(board).phases, column_id)
    # no lock is held while the provider works
    await db.rollback()

    image_url = await services.generate_storyboard_image(prompt)

    board = await load_board(db, board_id, for_update=True)
    # access may have been revoked while the provider was working
    authorize(board, actor)
    fragment = set_storyboard(to_document(board), column_id, image_url, prompt)
    document = await commit_fields(db, board, parse_fragment(fragment))
    return document, image_url


async def detach_storyboard(
    db: AsyncSession,
    board_id: int,
    column_id: str,
    actor: Principal,
) -> BoardRead:
    board = await load_board(db, board_id, for_update=True)
    authorize(board, actor)
    fragment = clear_storyboard(to_document(board), column_id)
    return await commit_fields(db, board, parse_fragment(fragment))


async def swap_storyboard_url(
    db: AsyncSession,
    board_id: int,
    column_id: str,
    expected_url: str,
    new_url: str,
) -> bool:
    """Point a column at `new_url` if it still shows `expected_url`."""
    board = await load_board(db, board_id, for_update=True)
    document = to_document(board)
    phase, j = locate_column(document.phases, column_id)
    column = phase.columns[j]
    if column.storyboard_image_url != expected_url:
        await db.rollback()
        return False
    fragment = set_storyboard(document, column_id, new_url, column.storyboard_prompt)
    await commit_fields(db, board, parse_fragment(fragment))
    return True


# --- Sharing --- #


async def add_collaborator(
    db: AsyncSession,
    board_id: int,
    data: CollaboratorCreate,
    actor: Principal,
) -> List[CollaboratorRead]:
    board = await load_board(db, board_id, for_update=True)
    require_owner(board, actor)
    if data.user_id == board.owner_id:
        raise ValidationError("The owner cannot be added as a collaborator", path="userId")

    existing = next((c for c in board.collaborators if c.user_id == data.user_id), None)
    if existing:
        existing.role = data.role
    else:
        board.collaborators.append(
            BoardCollaborator(user_id=data.user_id, role=data.role, granted_by=actor.user_id)
        )
    await db.commit()
    await _reload(db, board)
    logger.info(f"Board {board_id}: {data.user_id} is now {data.role}")
    return to_document(board).collaborators


async def remove_collaborator(
    db: AsyncSession,
    board_id: int,
    user_id: str,
    actor: Principal,
) -> List[CollaboratorRead]:
    board = await load_board(db, board_id, for_update=True)
    require_owner(board, actor)
    existing = next((c for c in board.collaborators if c.user_id == user_id), None)
    if not existing:
        raise NotFoundError(f"User {user_id} is not a collaborator on board {board_id}")
    board.collaborators.remove(existing)
    await db.commit()
    await _reload(db, board)
    logger.info(f"Board {board_id}: removed collaborator {user_id}")
    return to_document(board).collaborators
