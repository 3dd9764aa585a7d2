"""
High-level memory service: embeds text before storing it and turns
"not found" results into MemoryNotFoundError for callers that need a hard failure.
"""

import time
from typing import Any, Dict, List, Optional

from ..core.config import AppConfig, get_config
from ..core.errors import MemoryNotFoundError
from ..util.logging import StructuredLogger, configure_logging, logger as default_logger
from .embeddings import IEmbeddingProvider, create_embedding_provider
from .index import IVectorStore, InMemoryVectorStore
from .types import MemoryFilter, MemoryItem, MemoryMetadata, MemoryStats, SearchResult


def _now_ms() -> int:
    return int(time.time() * 1000)


class MemoryService:
    """
    Glue between an embedding provider and a vector store.
    Wraps the store's CRUD surface with text-first helpers.
    """

    def __init__(self, store: IVectorStore, embedding_provider: IEmbeddingProvider,
                 logger: Optional[StructuredLogger] = None):
        self.store = store
        self.embedding_provider = embedding_provider
        self.logger = logger or default_logger

    async def remember(self, text: str, source: str = "user", tags: Optional[List[str]] = None,
                       extra: Optional[Dict[str, Any]] = None,
                       timestamp: Optional[int] = None) -> MemoryItem:
        """
        Embed `text` and store it.

        Args:
            text: Content to remember
            source: Provenance label
            tags: Categorization tags
            extra: Additional metadata key/value pairs
            timestamp: Epoch milliseconds, defaults to now

        Raises:
            EmbeddingError: the provider could not embed the text
        """
        embedding = await self.embedding_provider.get_embedding(text)
        metadata = MemoryMetadata(
            timestamp=timestamp if timestamp is not None else _now_ms(),
            source=source,
            tags=list(tags or []),
            extra=dict(extra or {}),
        )
        return await self.store.add(text, metadata, embedding)

    async def recall(self, query: str, limit: int = 5,
                     memory_filter: Optional[MemoryFilter] = None) -> List[SearchResult]:
        """Return the memories closest in meaning to `query`."""
        return await self.store.search_by_text(query, limit, memory_filter)

    async def require(self, memory_id: str) -> MemoryItem:
        item = await self.store.get(memory_id)
        if item is None:
            raise MemoryNotFoundError(memory_id)
        return item

    async def revise(self, memory_id: str, text: Optional[str] = None,
                     metadata: Optional[Dict[str, Any]] = None) -> MemoryItem:
        """Update a memory, stamping the update time unless a timestamp is given."""
        changes = dict(metadata or {})
        changes.setdefault("timestamp", _now_ms())

        item = await self.store.update(memory_id, text=text, metadata=changes)
        if item is None:
            raise MemoryNotFoundError(memory_id)
        return item

    async def forget(self, memory_id: str) -> None:
        if not await self.store.delete(memory_id):
            raise MemoryNotFoundError(memory_id)

    async def stats(self) -> MemoryStats:
        return await self.store.get_stats()


async def initialize_memory_module(config: Optional[AppConfig] = None,
                                   logger: Optional[StructuredLogger] = None) -> MemoryService:
    """
    Build the provider and store from configuration and load persisted state.

    Raises:
        ConfigError: configuration is invalid or the provider cannot be created
    """
    config = config or get_config()
    logger = logger or configure_logging(config.log_level)

    embedding_provider = create_embedding_provider(config, logger=logger)
    store = InMemoryVectorStore(
        embedding_provider,
        persist_path=config.vector_db_path,
        logger=logger,
    )
    await store.initialize()

    logger.log_operation("memory.initialize", "success", {
        "provider": embedding_provider.name,
        "dimensions": embedding_provider.get_dimensions(),
        "persist_path": config.vector_db_path,
    })
    return MemoryService(store, embedding_provider, logger=logger)
