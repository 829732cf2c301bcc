from qdrant_client import QdrantClient, models
from onenote_rag.core.exceptions import BackendUnavailableError
from onenote_rag.models.document import ChunkRecord, RankedResult
from onenote_rag.services.embeddings import EmbeddingFunction
from onenote_rag.services.vector_store import VectorStore
from typing import List, Optional, Sequence
import logging
import threading
import uuid

logger = logging.getLogger(__name__)

# Qdrant point IDs must be UUIDs; chunk IDs are mapped onto this namespace.
CHUNK_ID_NAMESPACE = uuid.UUID("6f1c1f5e-8d0b-4c43-9a53-3f3b5f1f2d10")

def point_id(chunk_id: str) -> str:
    return str(uuid.uuid5(CHUNK_ID_NAMESPACE, chunk_id))

class QdrantVectorStore(VectorStore):
    backend_name = "qdrant"
    supports_filtered_delete = True

    def __init__(
        self,
        embedding_function: EmbeddingFunction,
        collection_name: str,
        host: str = "localhost",
        port: int = 6333,
        location: Optional[str] = None,
        timeout: int = 10,
        batch_size: int = 100,
    ):
        super().__init__(embedding_function, batch_size=batch_size)
        self.collection_name = collection_name
        self.host = host
        self.port = port
        self.location = location
        self.timeout = timeout
        self.client: Optional[QdrantClient] = None
        self._initialized = False
        self._lock = threading.Lock()

    def _connect(self) -> QdrantClient:
        if self.location:
            return QdrantClient(location=self.location)
        return QdrantClient(host=self.host, port=self.port, timeout=self.timeout)

    def initialize(self) -> None:
        if self._initialized:
            return
        with self._lock:
            if self._initialized:
                return
            try:
                if self.client is None:
                    self.client = self._connect()
                self._ensure_collection_exists()
            except Exception as e:
                logger.error(f"Qdrant initialization failed: {e}")
                raise BackendUnavailableError(self.backend_name, str(e)) from e
            self._initialized = True

    def _ensure_collection_exists(self):
        """Ensures the Qdrant collection exists or creates it."""
        if self.client.collection_exists(collection_name=self.collection_name):
            logger.info(f"Connected to existing collection '{self.collection_name}'.")
            return
        self._create_collection()

    def _create_collection(self):
        logger.info(f"Creating collection '{self.collection_name}'...")
        self.client.create_collection(
            collection_name=self.collection_name,
            vectors_config=models.VectorParams(size=self.dimension, distance=models.Distance.COSINE),
        )
        self.client.create_payload_index(
            collection_name=self.collection_name,
            field_name="document_id",
            field_schema=models.PayloadSchemaType.KEYWORD,
        )
        logger.info(f"Collection '{self.collection_name}' created.")

    def _upsert_batch(self, chunks: List[ChunkRecord]) -> None:
        points = []
        for chunk in chunks:
            payload = dict(chunk.metadata)
            payload.update({
                "chunk_id": chunk.id,
                "content": chunk.content, # Store text in payload for retrieval
            })
            points.append(
                models.PointStruct(
                    id=point_id(chunk.id),
                    vector=list(chunk.embedding),
                    payload=payload
                )
            )

        try:
            operation_info = self.client.upsert(
                collection_name=self.collection_name,
                wait=True,
                points=points
            )
        except Exception as e:
            raise BackendUnavailableError(self.backend_name, str(e)) from e
        logger.debug(f"Upserted {len(points)} points to Qdrant. Status: {operation_info.status}")

    def search(self, query_embedding: Sequence[float], k: int = 5) -> List[RankedResult]:
        self.initialize()
        try:
            response = self.client.query_points(
                collection_name=self.collection_name,
                query=list(query_embedding),
                limit=k,
                with_payload=True # Retrieve the chunk text and other metadata
            )
        except Exception as e:
            logger.error(f"Qdrant search failed: {e}")
            raise BackendUnavailableError(self.backend_name, str(e)) from e

        results = []
        for hit in response.points:
            payload = dict(hit.payload or {})
            chunk_id = payload.pop("chunk_id", None)
            content = payload.pop("content", "")
            # Cosine collections report similarity; convert to distance.
            results.append(RankedResult(id=chunk_id, content=content, metadata=payload, distance=max(0.0, 1.0 - hit.score)))
        return results

    def count(self) -> int:
        self.initialize()
        return self.client.count(collection_name=self.collection_name, exact=True).count

    def clear(self) -> None:
        """Drops and recreates the collection."""
        self.initialize()
        try:
            self.client.delete_collection(collection_name=self.collection_name)
            self._create_collection()
        except Exception as e:
            logger.error(f"Failed to clear collection '{self.collection_name}': {e}")
            raise BackendUnavailableError(self.backend_name, str(e)) from e
        logger.info(f"Collection '{self.collection_name}' cleared.")

    def delete_document(self, document_id: str) -> int:
        """Deletes all chunks associated with a document_id."""
        self.initialize()
        document_filter = models.Filter(
            must=[
                models.FieldCondition(
                    key="document_id",
                    match=models.MatchValue(value=document_id)
                )
            ]
        )
        matching = self.client.count(collection_name=self.collection_name, count_filter=document_filter, exact=True).count
        if not matching:
            logger.warning(f"No chunks found for document_id: {document_id}")
            return 0

        self.client.delete(
            collection_name=self.collection_name,
            points_selector=models.FilterSelector(filter=document_filter),
            wait=True,
        )
        logger.info(f"Deleted {matching} chunks for document_id: {document_id}")
        return matching

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            self.client = None
        self._initialized = False
