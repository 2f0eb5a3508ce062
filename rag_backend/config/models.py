"""
Pydantic models for the domain records and type safety.

Chunks are a tagged union: an ``ActiveChunk`` becomes a ``SupersededChunk``
exactly once, when a near-duplicate replaces it. The flat
``is_superseded`` / ``superseded_by`` store representation only exists at the
store boundary (``to_record`` / ``chunk_from_record``).
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from typing_extensions import Annotated


def utc_now() -> datetime:
    """Timezone-aware current time used for every persisted timestamp."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class _ChunkBase(BaseModel):
    """Fields shared by every chunk state."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    text: str
    embedding: List[float]
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def is_superseded(self) -> bool:
        return False

    @property
    def superseded_by(self) -> Optional[str]:
        return None

    def to_record(self) -> Dict[str, Any]:
        """Flatten the chunk into the persisted document shape."""
        return {
            "id": self.id,
            "text": self.text,
            "embedding": list(self.embedding),
            "created_at": self.created_at,
            "is_superseded": self.is_superseded,
            "superseded_by": self.superseded_by,
        }


class ActiveChunk(_ChunkBase):
    """A chunk that is eligible for retrieval."""

    status: Literal["active"] = "active"

    def supersede(self, replaced_by: str) -> "SupersededChunk":
        """Return the superseded version of this chunk, linked to ``replaced_by``."""
        return SupersededChunk(
            id=self.id,
            text=self.text,
            embedding=self.embedding,
            created_at=self.created_at,
            replaced_by=replaced_by,
        )


class SupersededChunk(_ChunkBase):
    """A chunk replaced by a newer near-duplicate; kept for audit, never retrieved."""

    status: Literal["superseded"] = "superseded"
    replaced_by: str

    @property
    def is_superseded(self) -> bool:
        return True

    @property
    def superseded_by(self) -> Optional[str]:
        return self.replaced_by


Chunk = Annotated[Union[ActiveChunk, SupersededChunk], Field(discriminator="status")]

_chunk_adapter = TypeAdapter(Chunk)


def chunk_from_record(record: Dict[str, Any]) -> Union[ActiveChunk, SupersededChunk]:
    """
    Build a chunk from its flat store representation.

    Args:
        record: Mapping with ``id``, ``text``, ``embedding``, ``created_at``,
            ``is_superseded`` and ``superseded_by``

    Returns:
        ActiveChunk or SupersededChunk
    """
    data = {
        "id": str(record["id"]),
        "text": record["text"],
        "embedding": record.get("embedding") or [],
        "created_at": record.get("created_at") or utc_now(),
    }
    if record.get("is_superseded"):
        data["status"] = "superseded"
        data["replaced_by"] = record.get("superseded_by") or ""
    else:
        data["status"] = "active"
    return _chunk_adapter.validate_python(data)


class CacheEntry(BaseModel):
    """A previously generated answer stored for reuse."""

    id: str = Field(default_factory=new_id)
    query: str
    embedding: Optional[List[float]] = None
    answer: str
    created_at: datetime = Field(default_factory=utc_now)
    last_accessed: datetime = Field(default_factory=utc_now)


class RetrievalCandidate(BaseModel):
    """A chunk considered for one query, with its per-dimension scores."""

    id: str
    text: str
    embedding: Optional[List[float]] = None
    vector_score: float = 0.0
    keyword_score: float = 0.0
    combined_score: float = 0.0


class TextInput(BaseModel):
    """Raw chunk that was already a string."""

    kind: Literal["text"] = "text"
    text: str


class BinaryInput(BaseModel):
    """Raw chunk that arrived as UTF-8 bytes."""

    kind: Literal["binary"] = "binary"
    data: bytes

    @property
    def text(self) -> str:
        return self.data.decode("utf-8")


class StructuredInput(BaseModel):
    """Raw chunk that arrived as an object carrying a ``text`` or ``content`` field."""

    kind: Literal["structured"] = "structured"
    text: str


ChunkInput = Annotated[Union[TextInput, BinaryInput, StructuredInput], Field(discriminator="kind")]
