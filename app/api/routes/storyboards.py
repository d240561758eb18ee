import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core import boards as board_service
from app.core.services import redis_mirror_storyboard
from app.db.session import get_db
from app.schemas.board import BoardRead
from app.schemas.principal import Principal
from app.schemas.storyboard import StoryboardRequest, StoryboardResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/boards/{board_id}/columns/{column_id}", tags=["storyboards"])


@router.post("/generate-storyboard", response_model=StoryboardResponse)
async def generate_storyboard(
    request: Request,
    board_id: int,
    column_id: str,
    body: StoryboardRequest,
    user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Generate a storyboard image for a column and attach it with its prompt."""
    board, image_url = await board_service.attach_storyboard(
        db, board_id, column_id, body.prompt, user
    )

    redis = getattr(request.app.state, "redis", None)
    if redis is not None:
        # the board is already committed, a queue failure must not fail the request
        try:
            await redis_mirror_storyboard(redis, board_id, column_id, image_url)
        except Exception as e:
            logger.warning(f"Could not queue storyboard mirroring for column {column_id}: {e}")
    else:
        logger.warning(f"No job queue, storyboard for column {column_id} stays on the provider URL")

    return StoryboardResponse(
        image_url=image_url,
        prompt=body.prompt,
        column_id=column_id,
        board=board,
    )


@router.delete("/storyboard", response_model=BoardRead)
async def clear_storyboard(
    board_id: int,
    column_id: str,
    user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Detach the storyboard, clearing image URL and prompt together."""
    return await board_service.detach_storyboard(db, board_id, column_id, user)
