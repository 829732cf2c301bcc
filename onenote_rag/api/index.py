from fastapi import APIRouter, Depends, HTTPException, status
from datetime import datetime
import logging

from onenote_rag.api.dependencies import backend_unavailable, get_rag_manager
from onenote_rag.core.exceptions import BackendUnavailableError
from onenote_rag.services.rag_manager import RAGManager

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("")
def reindex(rag_manager: RAGManager = Depends(get_rag_manager)):
    """
    Rescans the document folder and re-indexes every note.
    """
    try:
        report = rag_manager.index_all()
    except BackendUnavailableError as e:
        logger.error(f"Reindex failed, backend unavailable: {e}")
        raise backend_unavailable(e)
    except Exception as e:
        logger.error(f"Reindex failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Reindex failed: {e}"
        )

    return {
        "success": True,
        "message": "Local note index updated",
        "report": report,
        "stats": rag_manager.get_stats(),
    }

@router.get("")
def index_status(rag_manager: RAGManager = Depends(get_rag_manager)):
    return {
        "stats": rag_manager.get_stats(),
        "health": rag_manager.health_check(),
        "timestamp": datetime.now().isoformat(),
    }

@router.delete("")
def clear_index(rag_manager: RAGManager = Depends(get_rag_manager)):
    """
    Removes every chunk from the vector store.
    """
    try:
        rag_manager.clear_index()
    except BackendUnavailableError as e:
        logger.error(f"Clearing the index failed, backend unavailable: {e}")
        raise backend_unavailable(e)
    except Exception as e:
        logger.error(f"Clearing the index failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Clearing the index failed: {e}"
        )
    return {"success": True, "message": "Index cleared"}

@router.delete("/documents/{document_id}")
def delete_document(document_id: str, rag_manager: RAGManager = Depends(get_rag_manager)):
    """
    Removes the chunks of a single note from the vector store.
    """
    try:
        deleted = rag_manager.delete_document(document_id)
    except BackendUnavailableError as e:
        logger.error(f"Deleting {document_id} failed, backend unavailable: {e}")
        raise backend_unavailable(e)
    except Exception as e:
        logger.error(f"Deleting {document_id} failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Deleting {document_id} failed: {e}"
        )
    return {"success": True, "document_id": document_id, "deleted_chunks": deleted}
