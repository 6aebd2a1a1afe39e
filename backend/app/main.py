from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import LOG_LEVEL
from .core.database import async_session, init_db, utcnow
from .repositories import WidgetCacheRepository
from .api.routes import router

# Configure logging
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: initialize database and drop widget cache rows past absolute expiry
    await init_db()
    async with async_session() as session:
        purged = await WidgetCacheRepository(session).purge_expired(utcnow())
    logger.info(f"Purged {purged} expired widget cache entries")

    yield


app = FastAPI(
    title="en-git Insights API",
    description="GitHub profile analytics, scoring and achievements",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routes
app.include_router(router, prefix="/api")
