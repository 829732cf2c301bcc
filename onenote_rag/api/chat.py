from fastapi import APIRouter, Depends, HTTPException, status
from datetime import datetime
import logging

from onenote_rag.api.dependencies import backend_unavailable, get_rag_manager
from onenote_rag.core.exceptions import BackendUnavailableError
from onenote_rag.schemas import AskResponse, ChatRequest
from onenote_rag.services.rag_manager import RAGManager

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("", response_model=AskResponse)
def chat(request: ChatRequest, rag_manager: RAGManager = Depends(get_rag_manager)):
    """
    Answer a question from the indexed notes.
    """
    if not request.message.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Message cannot be empty."
        )

    try:
        return rag_manager.ask(request.message)
    except BackendUnavailableError as e:
        logger.error(f"Chat failed, backend unavailable: {e}")
        raise backend_unavailable(e)
    except Exception as e:
        logger.error(f"An error occurred during chat processing: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while processing your message."
        )

@router.get("")
def chat_status(rag_manager: RAGManager = Depends(get_rag_manager)):
    """Health and statistics of the chat backend."""
    return {
        "status": "OneNote RAG API is running",
        "health": rag_manager.health_check(),
        "stats": rag_manager.get_stats(),
        "timestamp": datetime.now().isoformat(),
    }
