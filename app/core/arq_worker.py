import asyncio
import logging
import os
import sys
import time

from arq import cron, Worker
from arq.connections import RedisSettings

from app.core.boards import swap_storyboard_url
from app.core.config import REDIS_URL, STATIC_FILES_DIR
from app.core.errors import NotFoundError
from app.core.services import download_image, storyboard_filename
from app.db.session import async_session

# Logging configuration
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    stream=sys.stdout,
    force=True,
)
logger = logging.getLogger(__name__)


async def mirror_storyboard_image(ctx, board_id: int, column_id: str, image_url: str):
    """Background job: copy a provider image to static storage and repoint the column.

    Provider URLs expire. The column is only repointed if it still shows
    `image_url`; a newer storyboard or a cleared one is left alone.
    """
    logger.info(f"🔹 Mirroring storyboard for board {board_id}, column {column_id}")

    try:
        data = await asyncio.to_thread(download_image, image_url)
    except Exception as e:
        logger.error(f"❌ Failed to download storyboard for column {column_id}: {e}", exc_info=True)
        return False

    relative = storyboard_filename(board_id, column_id)
    root = os.path.realpath(STATIC_FILES_DIR)
    path = os.path.realpath(os.path.join(root, relative))
    if os.path.commonpath([root, path]) != root:
        logger.error(f"❌ Storyboard path {path} escapes {root}, not writing it")
        return False
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)

    local_url = "/static/" + relative.replace(os.sep, "/")
    try:
        async with async_session() as db:
            swapped = await swap_storyboard_url(db, board_id, column_id, image_url, local_url)
    except NotFoundError as e:
        logger.warning(f"⚠️ {e}, dropping mirrored image")
        os.remove(path)
        return False

    if swapped:
        logger.info(f"✅ Column {column_id} now uses {local_url}")
    else:
        logger.info(f"⏭️ Column {column_id} changed storyboard meanwhile, leaving it")
    return swapped


async def worker_heartbeat(ctx):
    redis = ctx["redis"]
    await redis.set(
        "arq:heartbeat", str(time.time()), ex=60
    )  # expire in 60 seconds


async def run_worker_forever():
    """
    Resilient loop that keeps the ARQ worker running.
    Restarts worker on failure with exponential backoff.
    """
    backoff = 1
    while True:
        try:
            worker = Worker(
                functions = [
                    mirror_storyboard_image,
                ],
                redis_settings = RedisSettings.from_dsn(REDIS_URL),
                cron_jobs = [
                    cron(worker_heartbeat, second=0),
                ],
                keep_result = 0,
                max_jobs = 5,
            )
            logger.info("🚀 Starting ARQ worker...")
            await worker.async_run()
        except asyncio.CancelledError:
            logger.warning("🌀 Worker shutdown triggered by CancelledError, safe to ignore.")
        except Exception as e:
            logger.error(f"❌ Worker crashed: {e}", exc_info=True)
            logger.info(f"🔁 Restarting worker in {backoff} seconds...")
            await asyncio.sleep(backoff)
            backoff = min(backoff * 2, 60)  # Max backoff 1 minute
        else:
            backoff = 1  # Reset backoff on clean exit


if __name__ == "__main__":
    try:
        asyncio.run(run_worker_forever())
    except KeyboardInterrupt:
        logger.info("🛑 Worker manually stopped.")
