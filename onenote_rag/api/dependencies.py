from fastapi import HTTPException, Request, status

from onenote_rag.core.exceptions import BackendUnavailableError
from onenote_rag.services.rag_manager import RAGManager

BACKEND_MESSAGES = {
    "qdrant": "The Qdrant vector database is unavailable. Make sure the Qdrant container is running.",
    "postgres": "The vector database is unavailable. Check the database connection settings.",
    "llm": "The LLM API is unavailable. Check the API key configuration.",
    "embedding": "The embedding API is unavailable. Check the API key configuration.",
}

def get_rag_manager(request: Request) -> RAGManager:
    return request.app.state.rag_manager

def backend_unavailable(error: BackendUnavailableError) -> HTTPException:
    detail = BACKEND_MESSAGES.get(error.backend, f"{error.backend} is unavailable.")
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)
