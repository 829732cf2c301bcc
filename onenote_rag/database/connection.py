# onenote_rag/database/connection.py
from sqlalchemy import create_engine, Column, DateTime, Index, JSON, MetaData, String, Table, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Engine
from pgvector.sqlalchemy import Vector
from typing import Optional, Tuple


def define_chunk_table(table_name: str, dimension: int, ivfflat_lists: int = 100, metadata: Optional[MetaData] = None) -> Table:
    """
    One row per chunk: id, content, embedding vector(dimension), metadata json and timestamps.
    The ivfflat and GIN indexes are only created on PostgreSQL.
    """
    metadata = metadata if metadata is not None else MetaData()
    table = Table(
        table_name,
        metadata,
        Column("id", String(255), primary_key=True),
        Column("content", Text, nullable=False),
        Column("embedding", Vector(dimension)),
        Column("metadata", JSON().with_variant(JSONB(), "postgresql"), nullable=False),
        Column("created_at", DateTime(timezone=True), server_default=func.now()),
        Column("updated_at", DateTime(timezone=True), server_default=func.now(), onupdate=func.now()),
    )
    Index(
        f"{table_name}_embedding_idx",
        table.c.embedding,
        postgresql_using="ivfflat",
        postgresql_with={"lists": ivfflat_lists},
        postgresql_ops={"embedding": "vector_cosine_ops"},
    ).ddl_if(dialect="postgresql")
    Index(
        f"{table_name}_metadata_idx",
        table.c["metadata"],
        postgresql_using="gin",
    ).ddl_if(dialect="postgresql")
    return table


def _create_engine(url: str, pool_size: int, max_overflow: int, timeout: int) -> Engine:
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=timeout,
        pool_pre_ping=True,
        connect_args={"connect_timeout": timeout},
    )


def create_engines(
    write_url: str,
    read_url: Optional[str] = None,
    pool_size: int = 10,
    read_pool_size: int = 10,
    max_overflow: int = 5,
    timeout: int = 10,
) -> Tuple[Engine, Engine]:
    """Returns (write_engine, read_engine); they are the same engine when no read URL is configured."""
    write_engine = _create_engine(write_url, pool_size, max_overflow, timeout)
    if not read_url or read_url == write_url:
        return write_engine, write_engine
    read_engine = _create_engine(read_url, read_pool_size, max_overflow, timeout)
    return write_engine, read_engine
