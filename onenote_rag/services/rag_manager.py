from enum import Enum
from typing import List, Optional
import logging
import threading

from onenote_rag.core.exceptions import BackendUnavailableError, IndexingError
from onenote_rag.models.document import ChunkRecord, DocumentRecord
from onenote_rag.schemas import AskResponse, HealthReport, IndexReport, RAGStats, SourceSchema
from onenote_rag.services.document_source import LocalDocumentSource
from onenote_rag.services.embeddings import build_embedding_function
from onenote_rag.services.llm_service import LLMService, build_llm_service
from onenote_rag.services.vector_store import VectorStore, build_vector_store
from onenote_rag.utils.text_splitters import split_into_chunks

logger = logging.getLogger(__name__)

NO_INFORMATION_ANSWER = (
    "Sorry, I couldn't find anything relevant in your notes. "
    "Make sure the note files have been added and indexed."
)
EMPTY_COMPLETION_ANSWER = "Sorry, I couldn't generate an answer."
CONTEXT_SEPARATOR = "\n\n---\n\n"
DEFAULT_SECTION_NAME = "Default section"

SYSTEM_PROMPT_TEMPLATE = """You are a OneNote assistant that helps users find and analyse information in their own notes.

Follow these rules:
1. Answer only from the note content provided below.
2. If the notes don't contain enough information, say so honestly.
3. Quote or cite the specific notes you rely on where possible.
4. Keep the answer accurate and relevant.
5. Answer in the same language as the question.

NOTE CONTENT:
{context}"""

USER_PROMPT_TEMPLATE = """Based on the note content above, answer the following question:

{question}

Give a detailed, useful answer and cite the specific notes where possible."""

class RAGState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"

def build_system_prompt(context: str) -> str:
    return SYSTEM_PROMPT_TEMPLATE.format(context=context)

def build_user_prompt(question: str) -> str:
    return USER_PROMPT_TEMPLATE.format(question=question)

def preview(content: str, length: int) -> str:
    if len(content) <= length:
        return content
    return content[:length] + "..."

class RAGManager:
    """
    Indexes the document source into the vector store and answers questions
    over it with the LLM service.

    Initialization is lazy and happens at most once: UNINITIALIZED -> INITIALIZING -> READY.
    A failed initialization falls back to UNINITIALIZED so the next call retries.
    """

    def __init__(
        self,
        document_source: LocalDocumentSource,
        vector_store: VectorStore,
        llm_service: LLMService,
        chunk_size: int = 1000,
        top_k: int = 5,
        preview_length: int = 200,
        notebook_name: str = "Local Notes",
    ):
        self.document_source = document_source
        self.vector_store = vector_store
        self.llm_service = llm_service
        self.chunk_size = chunk_size
        self.top_k = top_k
        self.preview_length = preview_length
        self.notebook_name = notebook_name
        self._state = RAGState.UNINITIALIZED
        self._lock = threading.Lock()

    @property
    def state(self) -> RAGState:
        return self._state

    def initialize(self) -> None:
        """
        Brings the manager to READY.

        Raises:
            BackendUnavailableError: If the vector store is unreachable or unhealthy
        """
        if self._state == RAGState.READY:
            return
        with self._lock:
            if self._state == RAGState.READY:
                return
            logger.info("Initializing RAG system...")
            self._state = RAGState.INITIALIZING
            try:
                self.vector_store.initialize()
                if not self.vector_store.health_check():
                    raise BackendUnavailableError(self.vector_store.backend_name, "health check failed")
                self.document_source.initialize()
            except Exception:
                self._state = RAGState.UNINITIALIZED
                logger.error("RAG system initialization failed", exc_info=True)
                raise
            self._state = RAGState.READY
            logger.info("RAG system ready")

    def chunk_document(self, document: DocumentRecord) -> List[ChunkRecord]:
        section_name = document.file_type or DEFAULT_SECTION_NAME
        return [
            ChunkRecord(
                id=f"{document.id}_chunk_{index}",
                content=chunk,
                metadata={
                    "document_id": document.id,
                    "title": document.title,
                    "section_name": section_name,
                    "notebook_name": self.notebook_name,
                    "chunk_index": index,
                    "last_modified": document.last_modified.isoformat(),
                    "file_path": document.source_path,
                    "file_type": document.file_type,
                },
            )
            for index, chunk in enumerate(split_into_chunks(document.content, self.chunk_size))
        ]

    def index_all(self) -> IndexReport:
        """
        Rescans the whole document source and upserts every chunk.
        Unchanged documents produce the same chunk IDs, so re-indexing overwrites.
        """
        self.initialize()
        logger.info("Indexing local notes...")

        documents = self.document_source.list_all()
        if not documents:
            logger.warning("No note files found")
            return IndexReport()

        chunks = []
        for document in documents:
            chunks.extend(self.chunk_document(document))

        upsert_report = self.vector_store.upsert(chunks)
        report = IndexReport(
            documents=len(documents),
            chunks=len(chunks),
            upserted=upsert_report.upserted,
            failed_batches=upsert_report.failed_batches,
        )
        if chunks and not upsert_report.upserted:
            cause = upsert_report.errors[0] if upsert_report.errors else "unknown error"
            if upsert_report.failed_backend:
                raise BackendUnavailableError(upsert_report.failed_backend, f"every upsert batch failed: {cause}")
            raise IndexingError(f"No chunks could be indexed: {cause}")

        logger.info(f"Indexed {report.documents} notes ({report.upserted}/{report.chunks} chunks)")
        return report

    def ask(self, question: str) -> AskResponse:
        self.initialize()
        logger.info(f"Processing query: {question}")

        query_embedding = self.vector_store.embed_query(question)
        results = self.vector_store.search(query_embedding, k=self.top_k)
        if not results:
            return AskResponse(answer=NO_INFORMATION_ANSWER, sources=[], confidence=0.0)

        context = CONTEXT_SEPARATOR.join(result.content for result in results)
        answer = self.llm_service.complete(build_system_prompt(context), build_user_prompt(question))

        sources = [
            SourceSchema(
                title=result.metadata.get("title", ""),
                notebook_name=result.metadata.get("notebook_name"),
                section_name=result.metadata.get("section_name"),
                confidence=result.confidence,
                content=preview(result.content, self.preview_length),
                file_path=result.metadata.get("file_path"),
                file_type=result.metadata.get("file_type"),
            )
            for result in results
        ]
        confidence = sum(source.confidence for source in sources) / len(sources)

        logger.info(f"Query answered with {len(sources)} sources")
        return AskResponse(answer=answer or EMPTY_COMPLETION_ANSWER, sources=sources, confidence=confidence)

    def get_stats(self) -> RAGStats:
        """Never raises; returns an empty, unhealthy report on failure."""
        try:
            self.initialize()
            total_chunks = self.vector_store.count()
            file_stats = self.document_source.stats()
            return RAGStats(
                total_notes=file_stats.file_count,
                total_chunks=total_chunks,
                total_bytes=file_stats.total_bytes,
                file_types=file_stats.type_counts,
                last_modified=file_stats.most_recent_modification,
                store_healthy=self.vector_store.health_check(),
            )
        except Exception as e:
            logger.error(f"Failed to collect statistics: {e}")
            return RAGStats()

    def health_check(self) -> HealthReport:
        health = HealthReport()
        try:
            health.vector_store = self.vector_store.health_check()
            health.llm = self.llm_service.check_availability()

            try:
                self.document_source.stats()
                health.files = True
            except OSError as e:
                logger.error(f"File system check failed: {e}")

            if not (health.vector_store and health.llm and health.files):
                health.status = "degraded"
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            health.status = "unhealthy"
        return health

    def clear_index(self) -> None:
        self.initialize()
        logger.info("Clearing index...")
        self.vector_store.clear()

    def delete_document(self, document_id: str) -> Optional[int]:
        """
        Removes a document's chunks and returns how many were deleted. Stores that
        can't delete by metadata fall back to a full reindex, which refreshes chunks
        but never removes any; returns None in that case.
        """
        self.initialize()
        if not self.vector_store.supports_filtered_delete:
            logger.warning(f"{self.vector_store.backend_name} can't delete by document, reindexing instead")
            self.index_all()
            return None
        return self.vector_store.delete_document(document_id)

    def update_document(self, document_id: str) -> IndexReport:
        """Re-indexes a single note. Implemented as a full rescan."""
        logger.info(f"Updating note: {document_id}")
        return self.index_all()

def build_rag_manager(settings) -> RAGManager:
    document_source = LocalDocumentSource(
        settings.DOCUMENTS_PATH,
        settings.SUPPORTED_EXTENSIONS,
        pdf_text_extraction=settings.PDF_TEXT_EXTRACTION,
    )
    vector_store = build_vector_store(settings, build_embedding_function(settings))
    return RAGManager(
        document_source=document_source,
        vector_store=vector_store,
        llm_service=build_llm_service(settings),
        chunk_size=settings.CHUNK_SIZE,
        top_k=settings.MAX_CHUNKS_PER_QUERY,
        preview_length=settings.SOURCE_PREVIEW_LENGTH,
        notebook_name=settings.NOTEBOOK_NAME,
    )
