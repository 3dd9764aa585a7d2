"""
Tests for MemoryService and module initialization.
"""

import asyncio
import os
import tempfile
from unittest.mock import AsyncMock, MagicMock

import pytest

from aleph_memory.core.config import AppConfig
from aleph_memory.core.errors import ConfigError, EmbeddingError, MemoryNotFoundError
from aleph_memory.vector.embeddings import DeterministicHashEmbedding
from aleph_memory.vector.index import InMemoryVectorStore
from aleph_memory.vector.service import MemoryService, initialize_memory_module
from aleph_memory.vector.types import MemoryFilter


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def service():
    provider = DeterministicHashEmbedding(dimension=64)
    return MemoryService(InMemoryVectorStore(provider), provider)


def test_remember_embeds_and_stores(service):
    """Test remember computes the embedding and fills metadata."""
    item = run(service.remember("Apple is a fruit", source="notes", tags=["fruit"],
                                extra={"color": "red"}, timestamp=42))

    assert item.embedding == service.embedding_provider.embed_text("Apple is a fruit")
    assert item.metadata.source == "notes"
    assert item.metadata.tags == ["fruit"]
    assert item.metadata.extra == {"color": "red"}
    assert item.metadata.timestamp == 42
    assert run(service.require(item.id)) == item


def test_remember_defaults_timestamp_to_now(service):
    item = run(service.remember("Apple is a fruit"))
    assert item.metadata.timestamp > 1_600_000_000_000
    assert item.metadata.source == "user"


def test_remember_propagates_embedding_errors():
    """Test provider failures reach the caller as EmbeddingError."""
    provider = MagicMock()
    provider.get_embedding = AsyncMock(side_effect=EmbeddingError("down"))
    service = MemoryService(InMemoryVectorStore(provider), provider)

    with pytest.raises(EmbeddingError):
        run(service.remember("Apple is a fruit"))


def test_recall_uses_text_search(service):
    """Test recall returns the exact-text match first and honours filters."""
    run(service.remember("the quick brown fox", source="a"))
    run(service.remember("lorem ipsum dolor", source="b"))

    results = run(service.recall("the quick brown fox", limit=2))
    assert results[0].item.text == "the quick brown fox"
    assert results[0].score == pytest.approx(1.0)

    filtered = run(service.recall("the quick brown fox", memory_filter=MemoryFilter(source="b")))
    assert [r.item.text for r in filtered] == ["lorem ipsum dolor"]


def test_require_missing(service):
    with pytest.raises(MemoryNotFoundError, match="missing-id"):
        run(service.require("missing-id"))


def test_revise_merges_and_stamps(service):
    """Test revise re-embeds text, keeps other metadata and refreshes the timestamp."""
    item = run(service.remember("Apple is a fruit", tags=["fruit"], timestamp=1))

    revised = run(service.revise(item.id, text="Car is a vehicle", metadata={"tags": ["vehicle"]}))

    assert revised.text == "Car is a vehicle"
    assert revised.embedding == service.embedding_provider.embed_text("Car is a vehicle")
    assert revised.metadata.tags == ["vehicle"]
    assert revised.metadata.source == "user"
    assert revised.metadata.timestamp > 1


def test_revise_missing(service):
    with pytest.raises(MemoryNotFoundError):
        run(service.revise("missing-id", text="x"))


def test_forget(service):
    item = run(service.remember("Apple is a fruit"))

    run(service.forget(item.id))

    assert run(service.store.get(item.id)) is None
    with pytest.raises(MemoryNotFoundError):
        run(service.forget(item.id))


def test_stats(service):
    run(service.remember("Apple is a fruit", source="notes", tags=["fruit"], timestamp=10))
    run(service.remember("Car is a vehicle", source="web", tags=["vehicle"], timestamp=20))

    stats = run(service.stats())

    assert stats.total_items == 2
    assert stats.oldest_timestamp == 10
    assert stats.newest_timestamp == 20


def test_initialize_memory_module_persists():
    """Test the module wires provider and store and reloads persisted memories."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        config = AppConfig(
            embedding_provider="hash",
            hash_embed_dim=32,
            vector_db_path=os.path.join(tmp_dir, "vector_db"),
            log_level="error",
        )

        service = run(initialize_memory_module(config))
        item = run(service.remember("Apple is a fruit"))

        reloaded = run(initialize_memory_module(config))
        assert run(reloaded.require(item.id)) == item
        assert reloaded.embedding_provider.get_dimensions() == 32


def test_initialize_memory_module_rejects_bad_config():
    with pytest.raises(ConfigError):
        run(initialize_memory_module(AppConfig(embedding_provider="gemini", log_level="error")))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
