import os

# Detect environment (default to production)
ENV = os.getenv("APP_ENV", "production").lower()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./journeyboard.db")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379")

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
STORYBOARD_MODEL = os.getenv("STORYBOARD_MODEL", "dall-e-3")
STORYBOARD_SIZE = os.getenv("STORYBOARD_SIZE", "1024x1024")

STATIC_FILES_DIR = os.getenv("STATIC_FILES_DIR", "static")

# Comma separated, used outside development
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]
