"""FastAPI application main entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from .middleware import register_error_handlers  # noqa: E402
from .routes import account, ai, auth, notes, share  # noqa: E402
from ..services.config import get_config  # noqa: E402
from ..services.database import init_database  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler to run startup tasks."""
    config = get_config()
    if config.storage_backend == "sqlite":
        path = init_database(config.database_path)
        logger.info("Local note database ready", extra={"db_path": str(path)})
    else:
        logger.info(
            "Using hosted document database",
            extra={"project_id": config.firebase_project_id},
        )
    if not config.llm_api_key:
        logger.warning("LLM_API_KEY not set; AI features will return 501")
    yield


app = FastAPI(
    title="Noteify API",
    description="Personal notes with AI categorization, brainstorming, search and research",
    version="0.1.0",
    lifespan=lifespan,
)

config = get_config()

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Mount routers
app.include_router(auth.router, tags=["auth"])
app.include_router(account.router, tags=["account"])
app.include_router(notes.router, tags=["notes"])
app.include_router(ai.router, tags=["ai"])
app.include_router(share.router, tags=["share"])


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


__all__ = ["app"]
