"""Agent Chat API application.

Sessions are held in memory by backend.sessions and dropped on shutdown;
settings live in <data dir>/config.json.
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from backend.routes import router
from backend import sessions, storage

load_dotenv(Path(__file__).parent.parent / ".env")

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    sessions.reset_sessions()
    logger.info("chat sessions dropped")


def create_app(data_dir: Path | None = None) -> FastAPI:
    resolved = data_dir or Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR)))
    storage.init_storage(resolved)
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    logger.info("data dir: %s", resolved)

    app = FastAPI(title="Agent Chat", lifespan=lifespan)
    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn (uses DATA_DIR env var or default)
app = create_app()
