import os
import logging
import logging.config
import asyncio
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import JSONResponse
from datetime import datetime
from sqlalchemy import text
from contextlib import asynccontextmanager

from arq import create_pool
from arq.connections import RedisSettings
from app.core.config import CORS_ORIGINS, ENV, REDIS_URL, STATIC_FILES_DIR
from app.core.errors import BoardError
from app.db.base import Base
from app.db.session import engine, async_session
from app.api.routes import boards, collaborators, comments, storyboards, system

# Load logging config if present
if os.path.exists("logging.conf"):
    logging.config.fileConfig("logging.conf", disable_existing_loggers=False)
logger = logging.getLogger("root")

DEV_ORIGINS = ["http://localhost:5173", "http://127.0.0.1:5173"]


async def connect_redis(max_retries: int = 3, base_delay: float = 1.0):
    """
    Open the arq pool, retrying with exponential backoff.
    Returns the pool or raises after all retries fail.
    """
    for attempt in range(max_retries):
        try:
            redis = await create_pool(RedisSettings.from_dsn(REDIS_URL))
            await redis.ping()
            logger.info(f"Redis connected on attempt {attempt + 1}")
            return redis
        except Exception as e:
            wait_time = base_delay * (2**attempt)
            logger.warning(f"Redis connect attempt {attempt + 1} failed: {e}")
            if attempt + 1 < max_retries:
                await asyncio.sleep(wait_time)
    raise RuntimeError("Failed to connect to Redis after multiple attempts")


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized")

    # Boards work without the queue, storyboards just stay on provider URLs
    try:
        app.state.redis = await connect_redis(max_retries=1)
    except RuntimeError:
        app.state.redis = None
        logger.warning("Starting without Redis, storyboard mirroring disabled")

    yield

    if app.state.redis is not None:
        await app.state.redis.close()
        await app.state.redis.connection_pool.disconnect()
    logger.info("Shutting down...")


app = FastAPI(
    title="Journeyboard API",
    version="1.0",
    lifespan=lifespan,
)
app.state.redis = None

origins = DEV_ORIGINS if ENV == "development" else CORS_ORIGINS
if origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info(f"CORS allowed for {', '.join(origins)}")
else:
    logger.info("No CORS origins configured - cross-origin requests blocked")

# Mirrored storyboard images
os.makedirs(STATIC_FILES_DIR, exist_ok=True)
app.mount("/static", StaticFiles(directory=STATIC_FILES_DIR), name="static")

app.include_router(boards.router)
app.include_router(comments.router)
app.include_router(storyboards.router)
app.include_router(collaborators.router)
app.include_router(system.router)


@app.exception_handler(BoardError)
async def board_error_handler(request: Request, exc: BoardError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {type(exc).__name__}: {exc}")
    return JSONResponse(content=exc.to_dict(), status_code=exc.status_code)


async def _database_status() -> str:
    async with async_session() as db:
        await db.execute(text("SELECT 1"))
    return "connected"


async def _redis_status(app: FastAPI) -> str:
    if app.state.redis is None:
        # started without a queue, boards still work
        return "disabled"
    try:
        await app.state.redis.ping()
        return "connected"
    except Exception:
        logger.warning("Redis connection lost - attempting reconnect...")
        app.state.redis = await connect_redis()
        return "reinitialized"


async def _worker_status(app: FastAPI) -> str:
    heartbeat = await app.state.redis.get("arq:heartbeat")
    if not heartbeat:
        return "not reporting"
    last_heartbeat = datetime.fromtimestamp(float(heartbeat))
    return f"running (last heartbeat {last_heartbeat.isoformat()})"


@app.api_route("/api/health", methods=["GET", "HEAD"])
async def health(request: Request):
    status = {"api": "ok", "database": None, "redis": None, "worker": None}
    http_status = 200

    try:
        status["database"] = await _database_status()
    except Exception as e:
        status["database"] = f"error: {e}"
        http_status = 503

    try:
        status["redis"] = await _redis_status(request.app)
    except Exception as e:
        status["redis"] = f"error: {e}"
        http_status = 503

    # A stopped worker only delays mirroring, it does not fail the check
    if request.app.state.redis is not None:
        try:
            status["worker"] = await _worker_status(request.app)
        except Exception as e:
            status["worker"] = f"error: {e}"

    return JSONResponse(content=status, status_code=http_status)
