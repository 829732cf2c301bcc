from sqlalchemy import delete, func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.dialects import postgresql, sqlite
from onenote_rag.core.exceptions import BackendUnavailableError, ConfigurationError
from onenote_rag.database.connection import create_engines, define_chunk_table
from onenote_rag.models.document import ChunkRecord, RankedResult
from onenote_rag.services.embeddings import EmbeddingFunction
from onenote_rag.services.vector_store import VectorStore
from typing import List, Optional, Sequence
import logging
import threading

import numpy as np

logger = logging.getLogger(__name__)

INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

class RelationalVectorStore(VectorStore):
    """
    Chunk table with a pgvector column. On PostgreSQL ranking uses the `<=>` cosine
    operator backed by an ivfflat index; on SQLite (development, tests) it is an exact
    cosine scan over all rows.
    """

    backend_name = "postgres"
    supports_filtered_delete = True

    def __init__(
        self,
        embedding_function: EmbeddingFunction,
        database_url: str,
        read_database_url: Optional[str] = None,
        table_name: str = "onenote_documents",
        pool_size: int = 10,
        read_pool_size: int = 10,
        max_overflow: int = 5,
        timeout: int = 10,
        ivfflat_lists: int = 100,
        batch_size: int = 50,
    ):
        super().__init__(embedding_function, batch_size=batch_size)
        self.write_engine, self.read_engine = create_engines(
            database_url,
            read_database_url,
            pool_size=pool_size,
            read_pool_size=read_pool_size,
            max_overflow=max_overflow,
            timeout=timeout,
        )
        dialect = self.write_engine.dialect.name
        if dialect not in INSERT_BY_DIALECT:
            raise ConfigurationError(f"Unsupported database dialect for the vector store: {dialect}")
        self.dialect = dialect
        self.table = define_chunk_table(table_name, self.dimension, ivfflat_lists=ivfflat_lists)
        self._initialized = False
        self._lock = threading.Lock()

    @property
    def uses_pgvector(self) -> bool:
        return self.dialect == "postgresql"

    def initialize(self) -> None:
        if self._initialized:
            return
        with self._lock:
            if self._initialized:
                return
            try:
                with self.write_engine.begin() as conn:
                    if self.uses_pgvector:
                        conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
                    self.table.metadata.create_all(conn)
                with self.read_engine.connect() as conn:
                    conn.execute(text("SELECT 1"))
            except SQLAlchemyError as e:
                logger.error(f"Vector table initialization failed: {e}")
                raise BackendUnavailableError(self.backend_name, str(e)) from e
            self._initialized = True
            logger.info(f"Table {self.table.name} created/verified.")

    def _upsert_batch(self, chunks: List[ChunkRecord]) -> None:
        insert = INSERT_BY_DIALECT[self.dialect]
        rows = [
            {
                "id": chunk.id,
                "content": chunk.content,
                "embedding": chunk.embedding,
                "metadata": chunk.metadata,
            }
            for chunk in chunks
        ]
        stmt = insert(self.table).values(rows)
        stmt = stmt.on_conflict_do_update(
            index_elements=[self.table.c.id],
            set_={
                "content": stmt.excluded.content,
                "embedding": stmt.excluded.embedding,
                "metadata": stmt.excluded["metadata"],
                "updated_at": func.now(),
            },
        )
        try:
            with self.write_engine.begin() as conn:
                conn.execute(stmt)
        except SQLAlchemyError as e:
            raise BackendUnavailableError(self.backend_name, str(e)) from e

    def search(self, query_embedding: Sequence[float], k: int = 5) -> List[RankedResult]:
        self.initialize()
        try:
            if self.uses_pgvector:
                return self._search_pgvector(query_embedding, k)
            return self._search_exact(query_embedding, k)
        except SQLAlchemyError as e:
            logger.error(f"Vector search failed: {e}")
            raise BackendUnavailableError(self.backend_name, str(e)) from e

    def _search_pgvector(self, query_embedding: Sequence[float], k: int) -> List[RankedResult]:
        distance = self.table.c.embedding.cosine_distance(list(query_embedding))
        stmt = (
            select(self.table.c.id, self.table.c.content, self.table.c["metadata"], distance.label("distance"))
            .where(self.table.c.embedding.is_not(None))
            .order_by(distance)
            .limit(k)
        )
        with self.read_engine.connect() as conn:
            rows = conn.execute(stmt).all()
        return [
            RankedResult(id=chunk_id, content=content, metadata=metadata, distance=float(distance))
            for chunk_id, content, metadata, distance in rows
        ]

    def _search_exact(self, query_embedding: Sequence[float], k: int) -> List[RankedResult]:
        stmt = select(
            self.table.c.id, self.table.c.content, self.table.c["metadata"], self.table.c.embedding
        ).where(self.table.c.embedding.is_not(None))
        with self.read_engine.connect() as conn:
            rows = conn.execute(stmt).all()
        if not rows or k <= 0:
            return []

        matrix = np.vstack([np.asarray(embedding, dtype=np.float64) for _, _, _, embedding in rows])
        query = np.asarray(query_embedding, dtype=np.float64)
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        similarities = np.divide(matrix @ query, norms, out=np.zeros(len(rows)), where=norms > 0)
        distances = 1.0 - similarities

        results = []
        for i in np.argsort(distances, kind="stable")[:k]:
            chunk_id, content, metadata, _ = rows[i]
            results.append(RankedResult(id=chunk_id, content=content, metadata=metadata, distance=max(0.0, float(distances[i]))))
        return results

    def count(self) -> int:
        self.initialize()
        with self.read_engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(self.table)).scalar_one()

    def clear(self) -> None:
        self.initialize()
        try:
            with self.write_engine.begin() as conn:
                conn.execute(delete(self.table))
        except SQLAlchemyError as e:
            logger.error(f"Failed to clear table {self.table.name}: {e}")
            raise BackendUnavailableError(self.backend_name, str(e)) from e
        logger.info(f"Table {self.table.name} cleared.")

    def delete_document(self, document_id: str) -> int:
        self.initialize()
        stmt = delete(self.table).where(self.table.c["metadata"]["document_id"].as_string() == document_id)
        with self.write_engine.begin() as conn:
            deleted = conn.execute(stmt).rowcount
        logger.info(f"Deleted {deleted} chunks for document_id: {document_id}")
        return deleted

    def health_check(self) -> bool:
        try:
            self.initialize()
            with self.write_engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            with self.read_engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"{self.backend_name} health check failed: {e}")
            return False

    def close(self) -> None:
        self.write_engine.dispose()
        if self.read_engine is not self.write_engine:
            self.read_engine.dispose()
        self._initialized = False
        logger.info("Database connection pools closed.")
