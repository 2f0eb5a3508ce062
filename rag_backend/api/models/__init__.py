"""
API models module initialization.

Exports all Pydantic models for API communication.
"""

from .schemas import (
    IngestRequest,
    IngestResponse,
    QueryRequest,
    QueryResponse,
    ErrorResponse,
    HealthResponse,
    StatsResponse
)

__all__ = [
    "IngestRequest",
    "IngestResponse",
    "QueryRequest",
    "QueryResponse",
    "ErrorResponse",
    "HealthResponse",
    "StatsResponse"
]
