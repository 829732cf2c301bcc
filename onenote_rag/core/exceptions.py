from typing import Optional


class RAGError(Exception):
    """Base class for errors raised by the RAG backend."""


class BackendUnavailableError(RAGError):
    """
    An external backend (vector store, embedding provider, LLM) could not be reached
    or rejected the call.

    Args:
        backend: Short backend name shown to callers, e.g. "vector_store" or "llm"
        detail: Human readable cause
    """

    def __init__(self, backend: str, detail: Optional[str] = None):
        self.backend = backend
        self.detail = detail
        message = f"{backend} unavailable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ConfigurationError(RAGError):
    """Required configuration is missing or invalid."""


class ExtractionError(RAGError):
    """Text could not be extracted from a single source file."""

    def __init__(self, path: str, detail: str):
        self.path = path
        super().__init__(f"Failed to extract text from {path}: {detail}")


class IndexingError(RAGError):
    """Chunks existed but none could be written, for a reason other than an unreachable backend."""
