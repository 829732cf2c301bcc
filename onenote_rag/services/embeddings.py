from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
import logging
import math

import numpy as np
import google.generativeai as genai

from onenote_rag.core.exceptions import BackendUnavailableError, ConfigurationError
from onenote_rag.utils.hashing import rolling_hash

logger = logging.getLogger(__name__)

def normalize(vector: np.ndarray) -> np.ndarray:
    """L2-normalizes a vector; the zero vector is returned unchanged."""
    magnitude = float(np.linalg.norm(vector))
    return vector / (magnitude or 1.0)

class EmbeddingFunction(ABC):
    """Maps texts to L2-normalized vectors of a fixed dimension."""

    name: str = "embedding"
    dimension: int

    @abstractmethod
    def embed(self, texts: Sequence[str]) -> List[List[float]]:
        """Returns one vector per text, in input order."""

    def embed_query(self, text: str) -> List[float]:
        """Embeds a question. Providers with a separate query mode override this."""
        return self.embed([text])[0]

    def check_availability(self) -> bool:
        return True

class LocalHashEmbeddingFunction(EmbeddingFunction):
    """
    Deterministic pseudo-embedding built from the text itself: its length, the
    frequency of the letters a-i, hashes of the first words, and hashes of sliding
    10-character windows. Needs no network access, but carries no learned semantics;
    two texts only land close together when they share surface features.
    """

    name = "local"
    WORD_FEATURES = 90
    WINDOW_FEATURES_OFFSET = 100
    WINDOW_SIZE = 10

    def __init__(self, dimension: int = 1536):
        if dimension <= self.WINDOW_FEATURES_OFFSET:
            raise ConfigurationError(f"Local embeddings need more than {self.WINDOW_FEATURES_OFFSET} dimensions, got {dimension}")
        self.dimension = dimension

    def embed(self, texts: Sequence[str]) -> List[List[float]]:
        logger.debug(f"Generating {len(texts)} local embeddings")
        return [self._embed_one(text).tolist() for text in texts]

    def _embed_one(self, text: str) -> np.ndarray:
        embedding = np.zeros(self.dimension, dtype=np.float64)
        if not text:
            return embedding

        words = text.lower().split() or [""]

        embedding[0] = math.tanh(len(text) / 1000)

        for i, letter in enumerate("abcdefghi"):
            embedding[i + 1] = text.count(letter) / len(text)

        for i in range(self.WORD_FEATURES):
            word = words[i % len(words)]
            embedding[i + 10] = math.tanh(rolling_hash(word) / 1_000_000_000)

        for i in range(self.WINDOW_FEATURES_OFFSET, self.dimension):
            start = (i - self.WINDOW_FEATURES_OFFSET) % len(text)
            segment = text[start:start + self.WINDOW_SIZE]
            embedding[i] = math.tanh(rolling_hash(segment, salt=i) / 2147483647)

        return normalize(embedding)

class GeminiEmbeddingFunction(EmbeddingFunction):
    """Embeddings from the Gemini embedding API."""

    name = "gemini"

    def __init__(self, api_key: Optional[str], model_name: str = "models/text-embedding-004",
                 dimension: int = 768, timeout: float = 30.0):
        if not api_key:
            raise ConfigurationError("EMBEDDING_API_KEY is required for Gemini embeddings")
        genai.configure(api_key=api_key)
        self.model_name = model_name
        self.dimension = dimension
        self.timeout = timeout

    def embed(self, texts: Sequence[str]) -> List[List[float]]:
        return self._embed(texts, task_type="retrieval_document")

    def embed_query(self, text: str) -> List[float]:
        return self._embed([text], task_type="retrieval_query")[0]

    def _embed(self, texts: Sequence[str], task_type: str) -> List[List[float]]:
        if not texts:
            return []
        try:
            result = genai.embed_content(
                model=self.model_name,
                content=list(texts),
                task_type=task_type,
                output_dimensionality=self.dimension,
                request_options={"timeout": self.timeout},
            )
        except Exception as e:
            logger.error(f"Gemini embedding request failed: {e}")
            raise BackendUnavailableError("embedding", str(e)) from e

        vectors = result["embedding"]
        if len(texts) == 1 and vectors and not isinstance(vectors[0], list):
            vectors = [vectors]
        return [normalize(np.asarray(v, dtype=np.float64)).tolist() for v in vectors]

    def check_availability(self) -> bool:
        try:
            self.embed(["ping"])
            return True
        except BackendUnavailableError:
            return False

class SentenceTransformerEmbeddingFunction(EmbeddingFunction):
    """Embeddings from a local sentence-transformers model."""

    name = "sentence_transformers"

    def __init__(self, model_name: str = "all-MiniLM-L6-v2"):
        from sentence_transformers import SentenceTransformer

        self.model = SentenceTransformer(model_name)
        self.dimension = self.model.get_sentence_embedding_dimension()
        logger.info(f"Loaded embedding model: {model_name} ({self.dimension} dimensions)")

    def embed(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []
        embeddings = self.model.encode(list(texts), normalize_embeddings=True, convert_to_numpy=True)
        return embeddings.tolist()

def build_embedding_function(settings) -> EmbeddingFunction:
    """Creates the embedding function selected by EMBEDDING_PROVIDER."""
    provider = settings.EMBEDDING_PROVIDER.strip().lower()
    if provider == "local":
        return LocalHashEmbeddingFunction(dimension=settings.EMBEDDING_DIMENSION)
    if provider == "gemini":
        return GeminiEmbeddingFunction(
            api_key=settings.EMBEDDING_API_KEY,
            model_name=settings.EMBEDDING_MODEL_NAME,
            dimension=settings.EMBEDDING_DIMENSION,
            timeout=settings.EMBEDDING_TIMEOUT,
        )
    if provider == "sentence_transformers":
        return SentenceTransformerEmbeddingFunction(model_name=settings.EMBEDDING_MODEL_NAME)
    raise ConfigurationError(f"Unsupported embedding provider: {settings.EMBEDDING_PROVIDER}")
