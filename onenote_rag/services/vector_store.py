from abc import ABC, abstractmethod
from typing import List, Sequence
import logging

from onenote_rag.core.exceptions import BackendUnavailableError, ConfigurationError
from onenote_rag.models.document import ChunkRecord, RankedResult, UpsertReport
from onenote_rag.services.embeddings import EmbeddingFunction

logger = logging.getLogger(__name__)

class VectorStore(ABC):
    """
    Persists chunk records and answers nearest-neighbour queries.

    The embedding function is fixed for the lifetime of the store, so every vector
    written to or queried from it lives in the same embedding space.
    """

    backend_name = "vector_store"
    supports_filtered_delete = False

    def __init__(self, embedding_function: EmbeddingFunction, batch_size: int = 100):
        if batch_size <= 0:
            raise ConfigurationError("batch_size must be positive")
        self.embedding_function = embedding_function
        self.batch_size = batch_size

    @property
    def dimension(self) -> int:
        return self.embedding_function.dimension

    @abstractmethod
    def initialize(self) -> None:
        """Connects and creates the collection/table if needed. Safe to call repeatedly."""

    @abstractmethod
    def _upsert_batch(self, chunks: List[ChunkRecord]) -> None:
        """
        Inserts or replaces one batch of embedded chunks.
        Raises BackendUnavailableError when the store can't be reached.
        """

    @abstractmethod
    def search(self, query_embedding: Sequence[float], k: int = 5) -> List[RankedResult]:
        """Returns at most k results, nearest first."""

    @abstractmethod
    def count(self) -> int:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass

    def delete_document(self, document_id: str) -> int:
        """
        Deletes every chunk of a document, returns the number of chunks removed.
        Only called when supports_filtered_delete is set.
        """
        raise NotImplementedError(f"{type(self).__name__} cannot delete by document")

    def close(self) -> None:
        pass

    def embed_query(self, text: str) -> List[float]:
        return self.embedding_function.embed_query(text)

    def upsert(self, chunks: Sequence[ChunkRecord]) -> UpsertReport:
        """
        Writes chunks in sequential batches of batch_size. Chunks without an
        embedding are embedded per batch. A failing batch is logged and skipped;
        the remaining batches are still written.
        """
        self.initialize()
        report = UpsertReport(total=len(chunks))
        if not chunks:
            logger.warning("No chunks to upsert")
            return report

        total_batches = (len(chunks) + self.batch_size - 1) // self.batch_size
        for batch_number, start in enumerate(range(0, len(chunks), self.batch_size), 1):
            batch = list(chunks[start:start + self.batch_size])
            try:
                self._upsert_batch(self._with_embeddings(batch))
            except Exception as e:
                logger.error(f"Batch {batch_number}/{total_batches} failed: {e}", exc_info=True)
                report.failed_batches.append(batch_number)
                report.errors.append(str(e))
                if isinstance(e, BackendUnavailableError):
                    report.failed_backend = e.backend
                continue
            report.upserted += len(batch)
            logger.info(f"Processed batch {batch_number}/{total_batches}")

        logger.info(f"Upserted {report.upserted}/{report.total} chunks into {self.backend_name}")
        return report

    def health_check(self) -> bool:
        try:
            self.initialize()
            self.count()
            return True
        except Exception as e:
            logger.error(f"{self.backend_name} health check failed: {e}")
            return False

    def _with_embeddings(self, batch: List[ChunkRecord]) -> List[ChunkRecord]:
        missing = [chunk for chunk in batch if chunk.embedding is None]
        if missing:
            vectors = self.embedding_function.embed([chunk.content for chunk in missing])
            for chunk, vector in zip(missing, vectors):
                chunk.embedding = vector
        for chunk in batch:
            if len(chunk.embedding) != self.dimension:
                raise ValueError(f"Chunk {chunk.id} has {len(chunk.embedding)} dimensions, expected {self.dimension}")
        return batch

def build_vector_store(settings, embedding_function: EmbeddingFunction) -> VectorStore:
    """Creates the vector store selected by VECTOR_STORE."""
    backend = settings.VECTOR_STORE.strip().lower()
    if backend == "qdrant":
        from onenote_rag.services.vector_db_manager import QdrantVectorStore

        return QdrantVectorStore(
            embedding_function=embedding_function,
            collection_name=settings.QDRANT_COLLECTION_NAME,
            host=settings.QDRANT_HOST,
            port=settings.QDRANT_PORT,
            location=settings.QDRANT_LOCATION,
            timeout=settings.QDRANT_TIMEOUT,
            batch_size=settings.EMBEDDING_BATCH_SIZE,
        )
    if backend in ("postgres", "relational"):
        from onenote_rag.services.relational_db_manager import RelationalVectorStore

        return RelationalVectorStore(
            embedding_function=embedding_function,
            database_url=settings.DATABASE_URL,
            read_database_url=settings.DATABASE_READ_URL,
            table_name=settings.VECTOR_TABLE_NAME,
            pool_size=settings.DB_POOL_SIZE,
            read_pool_size=settings.DB_READ_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            timeout=settings.DB_TIMEOUT,
            ivfflat_lists=settings.IVFFLAT_LISTS,
            batch_size=settings.EMBEDDING_BATCH_SIZE,
        )
    raise ConfigurationError(f"Unsupported vector store: {settings.VECTOR_STORE}")
