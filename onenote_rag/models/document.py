from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

class DocumentRecord(BaseModel):
    id: str = Field(..., description="Stable ID derived from the file path.")
    title: str
    content: str
    last_modified: datetime
    source_path: str
    file_type: str
    size: int = 0

class ChunkRecord(BaseModel):
    id: str = Field(..., description="'{document_id}_chunk_{index}'")
    content: str
    embedding: Optional[List[float]] = None  # Filled by the vector store when missing
    metadata: Dict[str, Any] = {}

class RankedResult(BaseModel):
    id: Optional[str] = None
    content: str
    metadata: Dict[str, Any] = {}
    distance: float = Field(..., description="Cosine distance, nearest first.")

    @property
    def confidence(self) -> float:
        return min(1.0, max(0.0, 1.0 - self.distance))

class FileStats(BaseModel):
    file_count: int = 0
    total_bytes: int = 0
    type_counts: Dict[str, int] = {}
    most_recent_modification: Optional[datetime] = None

class UpsertReport(BaseModel):
    total: int = 0
    upserted: int = 0
    failed_batches: List[int] = []
    errors: List[str] = []
    failed_backend: Optional[str] = None  # Set when a batch failed because a backend was unreachable
