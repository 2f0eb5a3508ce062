"""
API models for request/response schemas.

Pydantic models for type-safe API communication.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class IngestRequest(BaseModel):
    """Request model for adding text to the knowledge base."""
    text: Optional[str] = Field(default=None, description="Raw text to chunk, embed and store")


class IngestResponse(BaseModel):
    """Response model for ingest."""
    success: bool = Field(default=True)
    chunks_inserted: int = Field(..., description="Number of chunks stored")
    superseded_old_chunks: int = Field(..., description="Number of older near-duplicate chunks superseded")


class QueryRequest(BaseModel):
    """Request model for RAG queries."""
    query: Optional[str] = Field(default=None, description="The question to ask the RAG system")


class QueryResponse(BaseModel):
    """Response model for RAG queries."""
    success: bool = Field(default=True)
    query: str = Field(..., description="The question as received")
    retrieved_data: List[str] = Field(..., description="Texts of the chunks the answer was grounded on")
    answer: str = Field(..., description="The generated or cached answer")
    cached: bool = Field(..., description="Whether the answer came from the cache")
    semantic_cache: Optional[bool] = Field(default=None, description="Set only when a similar cached query matched")


class ErrorResponse(BaseModel):
    """Response model for errors."""
    success: bool = Field(default=False)
    message: str = Field(..., description="Error message")


class HealthResponse(BaseModel):
    """Response model for health checks."""
    status: str = Field(..., description="Overall system status")
    components: Dict[str, Any] = Field(..., description="Component health status")
    timestamp: str = Field(..., description="Health check timestamp")


class StatsResponse(BaseModel):
    """Response model for system statistics."""
    store: Dict[str, Any] = Field(..., description="Document store statistics")
    configuration: Dict[str, Any] = Field(..., description="System configuration")
