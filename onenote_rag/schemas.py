from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime

class SourceSchema(BaseModel):
    title: str
    notebook_name: Optional[str] = None
    section_name: Optional[str] = None
    confidence: float = Field(..., ge=0.0, le=1.0)
    content: str = Field(..., description="Preview of the matching chunk")
    file_path: Optional[str] = None
    file_type: Optional[str] = None

class AskResponse(BaseModel):
    answer: str
    sources: List[SourceSchema] = []
    confidence: float = Field(0.0, ge=0.0, le=1.0, description="Mean confidence of the sources")

class IndexReport(BaseModel):
    documents: int = 0
    chunks: int = 0
    upserted: int = 0
    failed_batches: List[int] = []

class RAGStats(BaseModel):
    total_notes: int = 0
    total_chunks: int = 0
    total_bytes: int = 0
    file_types: Dict[str, int] = {}
    last_modified: Optional[datetime] = None
    store_healthy: bool = False

class HealthReport(BaseModel):
    status: str = Field("healthy", description="healthy, degraded or unhealthy")
    vector_store: bool = False
    llm: bool = False
    files: bool = False

class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, description="User question")
