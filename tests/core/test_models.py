"""
Tests for the chunk state union and its store representation.
"""

import pytest
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from rag_backend.config.models import (
    ActiveChunk,
    BinaryInput,
    ChunkInput,
    SupersededChunk,
    TextInput,
    chunk_from_record,
)
from rag_backend.core.data.validators import decode_chunk_input


class TestChunkStates:
    """Test suite for ActiveChunk / SupersededChunk."""

    def test_supersede_should_keep_identity_and_link(self) -> None:
        # Arrange
        chunk = ActiveChunk(text="old", embedding=[1.0, 0.0])

        # Act
        superseded = chunk.supersede("new-id")

        # Assert
        assert isinstance(superseded, SupersededChunk)
        assert superseded.id == chunk.id
        assert superseded.created_at == chunk.created_at
        assert superseded.is_superseded is True
        assert superseded.superseded_by == "new-id"

    def test_superseded_chunk_cannot_be_superseded_again(self) -> None:
        superseded = ActiveChunk(text="old", embedding=[1.0]).supersede("new-id")
        assert not hasattr(superseded, "supersede")

    def test_chunks_should_be_immutable(self) -> None:
        chunk = ActiveChunk(text="old", embedding=[1.0])
        with pytest.raises(PydanticValidationError):
            chunk.text = "changed"


class TestRecordConversion:
    """Test suite for to_record / chunk_from_record."""

    def test_active_record_should_be_flat(self) -> None:
        record = ActiveChunk(id="c1", text="t", embedding=[0.5]).to_record()

        assert record["is_superseded"] is False
        assert record["superseded_by"] is None
        assert "status" not in record

    @pytest.mark.parametrize("chunk", [
        ActiveChunk(id="c1", text="t", embedding=[0.5]),
        ActiveChunk(id="c2", text="t", embedding=[0.5]).supersede("c3"),
    ])
    def test_record_should_rebuild_the_same_chunk(self, chunk) -> None:
        assert chunk_from_record(chunk.to_record()) == chunk


class TestChunkInput:
    """Test suite for the decoded chunk-input union."""

    def test_union_should_dispatch_on_kind(self) -> None:
        decoded = TypeAdapter(ChunkInput).validate_python({"kind": "binary", "data": b"caf\xc3\xa9"})
        assert isinstance(decoded, BinaryInput)
        assert decoded.text == "café"

    def test_decoder_should_produce_union_members(self) -> None:
        decoded = decode_chunk_input("plain")
        assert TypeAdapter(ChunkInput).validate_python(decoded.model_dump()) == TextInput(text="plain")
