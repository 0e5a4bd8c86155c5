"""Unit tests for data models."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from blog_indexer.models import (
    Chunk,
    EmbeddingResponse,
    IndexDocument,
    IndexUploadResponse,
    Post,
    RagDocument,
    SearchResponse,
)


class TestPost:
    """Tests for Post model."""

    def test_post_creation_minimal(self):
        """Test post creation with only an id."""
        post = Post(id=1)
        assert post.title == ""
        assert post.categories == []
        assert post.tags == []
        assert post.view_count == 0
        assert post.key == "1"

    def test_relations_flattened(self, sample_post):
        """Test joined category/tag rows become display names."""
        assert sample_post.categories == ["Dev"]
        assert sample_post.tags == ["python"]

    def test_relation_shapes(self):
        """Test all supported relation shapes and drop of unnamed rows."""
        post = Post(
            id=1,
            categories=["Plain", {"name": "Direct"}, {"category_id": {"name": "Nested"}}, {"id": 9}],
            tags=[{"tag_id": {"id": 1, "name": "t"}}, None, 3],
        )
        assert post.categories == ["Plain", "Direct", "Nested"]
        assert post.tags == ["t"]

    def test_null_counts_become_zero(self):
        """Test null counters are normalized."""
        post = Post(id=1, view_count=None, like_count=None)
        assert post.view_count == 0
        assert post.like_count == 0

    def test_user_id_stringified(self, sample_post):
        """Test numeric user ids are stored as strings."""
        assert sample_post.user_id == "7"

    def test_extra_fields_ignored(self):
        """Test unknown columns are ignored."""
        post = Post(id=1, unknown_column="x")
        assert not hasattr(post, "unknown_column")

    def test_created_or_now(self, sample_post):
        """Test created_or_now prefers the stored timestamp."""
        assert sample_post.created_or_now() == sample_post.created_at

        before = datetime.now(UTC)
        assert Post(id=1).created_or_now() >= before

    @pytest.mark.parametrize("blank", ["", "   "])
    def test_blank_timestamps_are_missing(self, blank):
        """Test empty timestamp strings are read as missing values."""
        post = Post(id=1, created_at=blank, updated_at=blank)
        assert post.created_at is None
        assert post.updated_at is None

    def test_json_safe_roundtrip(self, sample_post):
        """Test json-safe dump can be validated back."""
        restored = Post.model_validate(sample_post.model_dump_json_safe())
        assert restored == sample_post


class TestChunk:
    """Tests for Chunk model."""

    def test_doc_id(self):
        """Test RAG key format is post id and sequence number."""
        chunk = Chunk(source_post_id=42, sequence_number=3, text="x")
        assert chunk.doc_id == "42_3"

    def test_negative_sequence_rejected(self):
        """Test sequence numbers start at zero."""
        with pytest.raises(ValidationError):
            Chunk(source_post_id=1, sequence_number=-1, text="x")


class TestIndexDocument:
    """Tests for IndexDocument."""

    def test_from_post(self, sample_post):
        """Test blog index document mirrors the post."""
        doc = IndexDocument.from_post(sample_post, "Hello world", [0.5, 0.5])

        assert doc.id == "42"
        assert doc.content == "Hello world"
        assert doc.user_id == "7"
        assert doc.categories == ["Dev"]
        assert doc.tags == ["python"]
        assert doc.created_at == "2024-05-01T09:30:00+00:00"
        assert doc.content_vector == [0.5, 0.5]

    def test_upload_action_omits_missing_timestamps(self):
        """Test missing timestamps are not sent as null."""
        doc = IndexDocument.from_post(Post(id=5), "text", [0.1])

        action = doc.to_upload_action()

        assert action["@search.action"] == "upload"
        assert "created_at" not in action
        assert "updated_at" not in action
        assert action["cover_image_url"] == ""

    def test_naive_timestamps_sent_as_utc(self):
        """Test timestamps without a timezone are sent with a UTC offset."""
        post = Post(id=1, created_at="2024-05-01T10:00:00", updated_at="2024-05-02T08:00:00")

        doc = IndexDocument.from_post(post, "text", [0.1])

        assert doc.created_at == "2024-05-01T10:00:00+00:00"
        assert doc.updated_at == "2024-05-02T08:00:00+00:00"

    def test_offset_timestamps_converted_to_utc(self):
        """Test timestamps in another zone are converted to UTC."""
        post = Post(id=1, created_at="2024-05-01T18:30:00+09:00")

        doc = IndexDocument.from_post(post, "text", [0.1])

        assert doc.created_at == "2024-05-01T09:30:00+00:00"

    def test_blank_timestamp_post_is_indexable(self):
        """Test a post with empty timestamp strings still builds a document."""
        doc = IndexDocument.from_post(Post(id=1, created_at="", updated_at=""), "text", [0.1])

        action = doc.to_upload_action()
        assert "created_at" not in action
        assert "updated_at" not in action


class TestRagDocument:
    """Tests for RagDocument."""

    def test_from_chunk(self):
        """Test RAG document fields come from the chunk."""
        created = datetime(2024, 5, 1, tzinfo=UTC)
        chunk = Chunk(
            source_post_id=42,
            sequence_number=0,
            text="piece",
            full_text="whole",
            created_at=created,
            embedding=[1.0],
        )

        doc = RagDocument.from_chunk(chunk)

        assert doc.key == "42_0"
        assert doc.chunk == "piece"
        assert doc.full_text == "whole"
        assert doc.source == "blog"
        assert doc.created_at == created.isoformat()

    def test_from_chunk_naive_created_at(self):
        """Test a naive chunk timestamp is sent with a UTC offset."""
        chunk = Chunk(
            source_post_id=42,
            sequence_number=0,
            text="piece",
            created_at=datetime(2024, 5, 1, 10, 0),
            embedding=[1.0],
        )

        assert RagDocument.from_chunk(chunk).created_at == "2024-05-01T10:00:00+00:00"

    def test_from_chunk_requires_embedding(self):
        """Test chunks must be embedded first."""
        with pytest.raises(ValueError):
            RagDocument.from_chunk(Chunk(source_post_id=1, sequence_number=0, text="x"))


class TestResponses:
    """Tests for upstream response schemas."""

    def test_embedding_response_vector(self):
        """Test vector is the first embedding."""
        parsed = EmbeddingResponse.model_validate({"data": [{"embedding": [0.1, 0.2]}]})
        assert parsed.vector == [0.1, 0.2]

    @pytest.mark.parametrize(
        "payload",
        [{}, {"data": []}, {"data": [{"embedding": []}]}, {"data": [{}]}],
    )
    def test_embedding_response_rejects_missing_fields(self, payload):
        """Test required fields are not defaulted."""
        with pytest.raises(ValidationError):
            EmbeddingResponse.model_validate(payload)

    def test_upload_response_failed(self):
        """Test failed and succeeded keys are split."""
        parsed = IndexUploadResponse.model_validate(
            {
                "value": [
                    {"key": "1", "status": True, "errorMessage": None, "statusCode": 201},
                    {"key": "2", "status": False, "errorMessage": "bad", "statusCode": 400},
                ]
            }
        )
        assert parsed.succeeded_keys == ["1"]
        assert [r.key for r in parsed.failed] == ["2"]
        assert parsed.failed[0].error_message == "bad"

    def test_search_response_aliases(self):
        """Test OData keys map to fields."""
        parsed = SearchResponse.model_validate(
            {
                "@odata.count": 2,
                "value": [{"id": "1"}, {"id": "2"}],
                "@search.facets": {"tags": [{"value": "py", "count": 2}]},
            }
        )
        assert parsed.count == 2
        assert parsed.facets["tags"][0].count == 2
