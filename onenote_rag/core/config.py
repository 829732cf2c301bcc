from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pathlib import Path
from typing import Annotated, Optional
import os
from dotenv import load_dotenv
# Load environment variables from .env file
load_dotenv()

BASE_DIR = Path(__file__).parent.parent.parent

class Settings(BaseSettings):
    # Application settings
    APP_NAME: str = "OneNote RAG Backend"
    APP_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Document source settings
    DOCUMENTS_PATH: str = str(BASE_DIR / "data" / "onenote")
    # Comma separated in the environment: SUPPORTED_EXTENSIONS=.docx,.pdf,.txt
    SUPPORTED_EXTENSIONS: Annotated[list[str], NoDecode] = [".docx", ".pdf", ".txt", ".html", ".md"]
    PDF_TEXT_EXTRACTION: bool = False  # PDFs are indexed as a placeholder unless enabled
    NOTEBOOK_NAME: str = "Local Notes"

    # Chunking
    CHUNK_SIZE: int = 1000

    # Embedding settings
    EMBEDDING_PROVIDER: str = "local"  # Options: "local", "gemini", "sentence_transformers"
    EMBEDDING_MODEL_NAME: str = "models/text-embedding-004"
    EMBEDDING_DIMENSION: int = 1536
    EMBEDDING_API_KEY: Optional[str] = os.getenv("GOOGLE_API_KEY")
    EMBEDDING_BATCH_SIZE: int = 50
    EMBEDDING_TIMEOUT: float = 30.0

    # Vector store backend
    VECTOR_STORE: str = "qdrant"  # Options: "qdrant", "postgres"

    # Vector DB settings (Qdrant)
    QDRANT_HOST: str = "localhost"
    QDRANT_PORT: int = 6333
    QDRANT_LOCATION: Optional[str] = None  # e.g. ":memory:" for an embedded store
    QDRANT_COLLECTION_NAME: str = "onenote_documents"
    QDRANT_TIMEOUT: int = 10

    # Relational vector store (pgvector); SQLite works for local development
    DATABASE_URL: str = f"sqlite:///{BASE_DIR}/data/vectors.db"
    DATABASE_READ_URL: Optional[str] = None  # Defaults to DATABASE_URL
    DB_POOL_SIZE: int = 10
    DB_READ_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 5
    DB_TIMEOUT: int = 10
    VECTOR_TABLE_NAME: str = "onenote_documents"
    IVFFLAT_LISTS: int = 100

    # LLM settings
    LLM_PROVIDER: str = "gemini"  # Options: "gemini", "openai"
    LLM_API_KEY: Optional[str] = os.getenv("GOOGLE_API_KEY")
    LLM_MODEL: str = "gemini-2.5-flash-lite"
    LLM_TEMPERATURE: float = 0.7
    LLM_MAX_TOKENS: int = 1000
    LLM_TIMEOUT: float = 60.0

    # RAG settings
    MAX_CHUNKS_PER_QUERY: int = 5
    SOURCE_PREVIEW_LENGTH: int = 200

    @field_validator("SUPPORTED_EXTENSIONS", mode="before")
    @classmethod
    def split_extensions(cls, value):
        if isinstance(value, str):
            return [ext.strip() for ext in value.split(",") if ext.strip()]
        return value

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
