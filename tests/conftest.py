import pytest
from pathlib import Path

from onenote_rag.services.document_source import LocalDocumentSource
from onenote_rag.services.embeddings import LocalHashEmbeddingFunction
from onenote_rag.services.llm_service import LLMService
from onenote_rag.services.rag_manager import RAGManager
from onenote_rag.services.relational_db_manager import RelationalVectorStore
from onenote_rag.services.vector_db_manager import QdrantVectorStore


class FakeLLMService(LLMService):
    """Records prompts and returns a canned answer."""

    provider = "fake"

    def __init__(self, answer: str = "Answer from notes", available: bool = True):
        self.answer = answer
        self.available = available
        self.calls = []

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        return self.answer

    def check_availability(self) -> bool:
        return self.available


@pytest.fixture
def embedding_function():
    return LocalHashEmbeddingFunction(dimension=256)


@pytest.fixture
def qdrant_store(embedding_function):
    store = QdrantVectorStore(
        embedding_function=embedding_function,
        collection_name="test_notes",
        location=":memory:",
        batch_size=2,
    )
    yield store
    store.close()


@pytest.fixture
def relational_store(embedding_function, tmp_path: Path):
    store = RelationalVectorStore(
        embedding_function=embedding_function,
        database_url=f"sqlite:///{tmp_path / 'vectors.db'}",
        table_name="test_notes",
        batch_size=2,
    )
    yield store
    store.close()


@pytest.fixture(params=["qdrant", "relational"])
def vector_store(request):
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def notes_dir(tmp_path: Path) -> Path:
    path = tmp_path / "onenote"
    path.mkdir()
    return path


@pytest.fixture
def document_source(notes_dir: Path):
    return LocalDocumentSource(notes_dir, [".docx", ".pdf", ".txt", ".html", ".md"])


@pytest.fixture
def fake_llm():
    return FakeLLMService()


@pytest.fixture
def rag_manager(document_source, vector_store, fake_llm):
    return RAGManager(
        document_source=document_source,
        vector_store=vector_store,
        llm_service=fake_llm,
        chunk_size=1000,
        top_k=5,
        preview_length=200,
    )


def make_long_note(sentences: int = 60) -> str:
    # ~40 character sentences, no blank lines
    return " ".join(f"Sentence number {i:03d} is part of this note." for i in range(sentences))
