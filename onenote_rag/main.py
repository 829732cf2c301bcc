from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import Depends, FastAPI

from onenote_rag.api import chat, index
from onenote_rag.api.dependencies import get_rag_manager
from onenote_rag.core.config import settings
from onenote_rag.core.exceptions import BackendUnavailableError
from onenote_rag.services.rag_manager import RAGManager, build_rag_manager

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up application...")
    if getattr(app.state, "rag_manager", None) is None:
        app.state.rag_manager = build_rag_manager(settings)

    # The manager retries lazily on first use if the store is still down.
    try:
        app.state.rag_manager.initialize()
    except BackendUnavailableError as e:
        logger.warning(f"Vector store not reachable at startup: {e}")

    yield

    app.state.rag_manager.vector_store.close()
    logger.info("Shut down application.")

def create_app(rag_manager: Optional[RAGManager] = None) -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Question answering over local OneNote exports.",
        lifespan=lifespan,
    )
    app.state.rag_manager = rag_manager

    @app.get("/")
    def root():
        return {
            "message": "Welcome to the OneNote RAG Backend!",
            "documentation": "/docs",
            "version": settings.APP_VERSION
        }

    @app.get("/health")
    def health(manager: RAGManager = Depends(get_rag_manager)):
        return manager.health_check()

    app.include_router(chat.router, prefix="/chat", tags=["Chat"])
    app.include_router(index.router, prefix="/index", tags=["Index"])
    return app

app = create_app()
