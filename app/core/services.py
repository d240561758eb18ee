import hashlib
import os
import sys
import logging
from typing import Optional

import requests
from openai import AsyncOpenAI, OpenAIError

from app.core.config import OPENAI_API_KEY, STORYBOARD_MODEL, STORYBOARD_SIZE
from app.core.errors import GenerationError

# Logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    stream=sys.stdout,
    force=True,
)
logger = logging.getLogger(__name__)

STORYBOARD_STYLE = (
    "Storyboard panel, black-and-white sketch, pencil drawing, comic-book/graphic novel style, "
    "consistent character style, expressive face, minimal background, no UI. Scene: "
)

_client: Optional[AsyncOpenAI] = None


def get_client() -> AsyncOpenAI:
    """Create the OpenAI client on first use so imports work without a key."""
    global _client
    if _client is None:
        _client = AsyncOpenAI(api_key=OPENAI_API_KEY, max_retries=0)
    return _client


# --- Background job helpers --- #
async def redis_mirror_storyboard(redis, board_id: int, column_id: str, image_url: str):
    await redis.enqueue_job("mirror_storyboard_image", board_id, column_id, image_url)


# --- Storyboard Generation --- #


async def generate_storyboard_image(prompt: str) -> str:
    """Generate a storyboard sketch for `prompt` and return its image URL."""
    logger.info(f"Generating storyboard image ({STORYBOARD_MODEL}) for prompt='{prompt[:60]}'")
    try:
        response = await get_client().images.generate(
            model=STORYBOARD_MODEL,
            prompt=STORYBOARD_STYLE + prompt,
            n=1,
            size=STORYBOARD_SIZE,
            quality="standard",
            style="natural",
        )
    except OpenAIError as e:
        logger.error(f"Storyboard generation failed: {e}", exc_info=True)
        code = getattr(e, "code", None)
        if code == "insufficient_quota":
            raise GenerationError("Image provider quota exceeded") from e
        if code == "invalid_api_key":
            raise GenerationError("Image provider rejected the API key") from e
        raise GenerationError(f"Failed to generate storyboard image: {e}") from e

    if not response.data or not response.data[0].url:
        raise GenerationError("Image provider returned no image")
    return response.data[0].url


def download_image(url: str) -> bytes:
    """Fetch image bytes from a remote URL."""
    response = requests.get(url, timeout=30)
    response.raise_for_status()
    return response.content


def storyboard_filename(board_id: int, column_id: str) -> str:
    """Static path for a column's mirrored image, derived from ids without using them raw."""
    digest = hashlib.sha256(f"{board_id}:{column_id}".encode()).hexdigest()
    return os.path.join("storyboards", f"{digest}.png")
