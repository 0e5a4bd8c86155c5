"""Tests for configuration module."""

from pathlib import Path

import pytest

from blog_indexer.config import (
    ChunkingSettings,
    EmbeddingSettings,
    OutboxSettings,
    SchedulerSettings,
    SearchSettings,
    Settings,
    get_settings,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove variables a developer shell might set."""
    for name in (
        "SEARCH_ENDPOINT",
        "SEARCH_API_KEY",
        "SEARCH_INDEX_NAME",
        "RAG_INDEX_NAME",
        "AZURE_OPENAI_ENDPOINT",
        "AZURE_OPENAI_API_KEY",
        "AZURE_OPENAI_EMBEDDING_DEPLOYMENT",
        "EMBEDDING_URL",
        "EMBEDDING_DIMENSION",
        "CHUNK_SIZE",
        "CHUNK_OVERLAP",
        "CHUNK_STRATEGY",
        "DATA_DIR",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


class TestSearchSettings:
    """Tests for SearchSettings."""

    def test_default_values(self):
        """Test SearchSettings default values."""
        settings = SearchSettings()
        assert settings.endpoint == ""
        assert settings.index_name == "blog-index"
        assert settings.rag_index_name == "rag-index"
        assert settings.api_version == "2020-06-30"
        assert settings.is_configured is False

    def test_from_environment(self, monkeypatch):
        """Test values are read from environment variables."""
        monkeypatch.setenv("SEARCH_ENDPOINT", "https://search.example.com")
        monkeypatch.setenv("SEARCH_API_KEY", "secret")
        monkeypatch.setenv("SEARCH_INDEX_NAME", "posts")

        settings = SearchSettings()

        assert settings.endpoint == "https://search.example.com"
        assert settings.index_name == "posts"
        assert settings.is_configured is True


class TestEmbeddingSettings:
    """Tests for EmbeddingSettings."""

    def test_default_values(self):
        """Test EmbeddingSettings default values."""
        settings = EmbeddingSettings()
        assert settings.api_version == "2023-05-15"
        assert settings.dimension is None
        assert settings.max_workers == 4

    def test_url_from_deployment(self, monkeypatch):
        """Test url is composed from endpoint and deployment."""
        monkeypatch.setenv("AZURE_OPENAI_ENDPOINT", "https://openai.example.com/")
        monkeypatch.setenv("AZURE_OPENAI_EMBEDDING_DEPLOYMENT", "text-embedding")

        settings = EmbeddingSettings()

        assert settings.url == "https://openai.example.com/openai/deployments/text-embedding/embeddings"

    def test_explicit_url_wins(self, monkeypatch):
        """Test EMBEDDING_URL overrides the composed url."""
        monkeypatch.setenv("AZURE_OPENAI_ENDPOINT", "https://openai.example.com")
        monkeypatch.setenv("EMBEDDING_URL", "https://embed.example.com/v1/embeddings")

        assert EmbeddingSettings().url == "https://embed.example.com/v1/embeddings"


class TestChunkingSettings:
    """Tests for ChunkingSettings."""

    def test_default_values(self):
        """Test ChunkingSettings default values."""
        settings = ChunkingSettings()
        assert settings.chunk_size == 1200
        assert settings.chunk_overlap == 200
        assert settings.strategy == "window"

    def test_invalid_values_not_rejected_here(self, monkeypatch):
        """Test bad chunk params load; the chunker validates them."""
        monkeypatch.setenv("CHUNK_SIZE", "100")
        monkeypatch.setenv("CHUNK_OVERLAP", "100")

        settings = ChunkingSettings()

        assert settings.chunk_size == settings.chunk_overlap == 100


class TestOutboxSettings:
    """Tests for OutboxSettings."""

    def test_default_values(self):
        """Test OutboxSettings default values."""
        settings = OutboxSettings()
        assert settings.backoff_seconds == 600
        assert settings.max_attempts == 5
        assert settings.batch_size == 50


class TestSchedulerSettings:
    """Tests for SchedulerSettings."""

    def test_default_values(self):
        """Test SchedulerSettings default values."""
        settings = SchedulerSettings()
        assert settings.enabled is False
        assert settings.interval_seconds == 60
        assert settings.timezone == "Asia/Seoul"
        assert settings.max_workers == 1


class TestSettings:
    """Tests for main Settings class."""

    def test_default_values(self):
        """Test Settings default values."""
        settings = Settings()
        assert settings.app_name == "blog-indexer"
        assert settings.debug is False
        assert settings.log_level == "INFO"
        assert settings.data_dir == Path("data")

    def test_sub_settings_initialization(self):
        """Test that sub-settings are properly initialized."""
        settings = Settings()
        assert isinstance(settings.search, SearchSettings)
        assert isinstance(settings.embedding, EmbeddingSettings)
        assert isinstance(settings.chunking, ChunkingSettings)
        assert isinstance(settings.outbox, OutboxSettings)
        assert isinstance(settings.scheduler, SchedulerSettings)

    def test_data_dir_from_environment(self, monkeypatch, tmp_path):
        """Test DATA_DIR is honored."""
        monkeypatch.setenv("DATA_DIR", str(tmp_path / "state"))
        assert Settings().data_dir == tmp_path / "state"

    def test_ensure_data_dir_creates_nested_directory(self, monkeypatch, tmp_path):
        """Test ensure_data_dir creates missing directories."""
        nested = tmp_path / "a" / "b"
        monkeypatch.setenv("DATA_DIR", str(nested))

        result = Settings().ensure_data_dir()

        assert nested.is_dir()
        assert result == nested

    def test_get_settings_fresh_instance(self):
        """Test get_settings builds a new instance each call."""
        assert get_settings() is not get_settings()
