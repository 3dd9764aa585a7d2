"""
Vector memory store - owns the memory collection, ranks items by cosine
similarity and keeps a best-effort JSON snapshot on disk.
"""

from abc import ABC, abstractmethod
import asyncio
import copy
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..core.errors import EmbeddingError, VectorStoreError
from ..util.logging import StructuredLogger, logger as default_logger
from .embeddings import IEmbeddingProvider
from .snapshot import read_snapshot, write_snapshot
from .types import MemoryFilter, MemoryItem, MemoryMetadata, MemoryStats, SearchResult

DEFAULT_SEARCH_LIMIT = 10


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Zero-norm vectors score 0.0. Differing lengths raise VectorStoreError.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape:
        raise VectorStoreError(f"Vector dimensions don't match: {a.size} vs {b.size}")

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.dot(a, b) / (norm_a * norm_b))


def matches_filter(item: MemoryItem, memory_filter: MemoryFilter) -> bool:
    """Check an item against every clause set on the filter."""
    metadata = item.metadata

    if memory_filter.tags:
        if not any(tag in metadata.tags for tag in memory_filter.tags):
            return False

    if memory_filter.source is not None and metadata.source != memory_filter.source:
        return False

    if memory_filter.from_date is not None and metadata.timestamp < memory_filter.from_date:
        return False
    if memory_filter.to_date is not None and metadata.timestamp > memory_filter.to_date:
        return False

    for key, value in memory_filter.extra.items():
        if not metadata.has(key) or metadata.get(key) != value:
            return False

    return True


class IVectorStore(ABC):
    """Abstract interface for vector memory stores."""

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the store, loading any persisted state."""
        pass

    @abstractmethod
    async def add(self, text: str, metadata: MemoryMetadata, embedding: List[float]) -> MemoryItem:
        """Store a new item and return it with its generated id."""
        pass

    @abstractmethod
    async def get(self, item_id: str) -> Optional[MemoryItem]:
        """Return the item or None."""
        pass

    @abstractmethod
    async def update(self, item_id: str, text: Optional[str] = None,
                     embedding: Optional[List[float]] = None,
                     metadata: Optional[Dict[str, object]] = None) -> Optional[MemoryItem]:
        """Apply a partial update; None if the item does not exist."""
        pass

    @abstractmethod
    async def delete(self, item_id: str) -> bool:
        """Remove an item; False if it did not exist."""
        pass

    @abstractmethod
    async def search(self, query_embedding: Sequence[float], limit: int = DEFAULT_SEARCH_LIMIT,
                     memory_filter: Optional[MemoryFilter] = None) -> List[SearchResult]:
        """Rank stored items by similarity to the query vector."""
        pass

    @abstractmethod
    async def search_by_text(self, text: str, limit: int = DEFAULT_SEARCH_LIMIT,
                             memory_filter: Optional[MemoryFilter] = None) -> List[SearchResult]:
        """Embed the text and rank stored items against it."""
        pass

    @abstractmethod
    async def get_stats(self) -> MemoryStats:
        """Aggregate statistics over all stored items."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Remove every item."""
        pass


class InMemoryVectorStore(IVectorStore):
    """
    In-memory implementation of IVectorStore.

    The dict held here is authoritative for the running process. When a
    persist path is set, every mutation rewrites the snapshot file; a failed
    write is logged and the operation still succeeds. Items handed to callers
    are always deep copies.

    There is no per-item locking: operations that await the embedding provider
    or the filesystem may interleave, and the last write to complete wins.
    Snapshot writes are serialized, each one carrying the collection as it
    stands when the write starts.
    """

    def __init__(self, embedding_provider: IEmbeddingProvider, persist_path: Optional[str] = None,
                 logger: Optional[StructuredLogger] = None):
        """
        Args:
            embedding_provider: Provider used by search_by_text and text updates
            persist_path: Snapshot file location, or None for a purely in-memory store
            logger: Structured logger for diagnostic events
        """
        self.embedding_provider = embedding_provider
        self.persist_path = persist_path
        self.logger = logger or default_logger
        self._items: Dict[str, MemoryItem] = {}
        self._initialized = False
        self._persist_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Create the snapshot directory and load a prior snapshot, once."""
        if self._initialized:
            return

        if self.persist_path:
            try:
                Path(self.persist_path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise VectorStoreError(f"Failed to initialize vector store: {e}") from e

            try:
                loaded = await asyncio.to_thread(read_snapshot, self.persist_path)
            except (OSError, ValueError, RecursionError) as e:
                self.logger.log_snapshot_event("load", self.persist_path, "discarded", {"error": str(e)[:200]})
                loaded = None

            self._items = loaded or {}
            if loaded is not None:
                self.logger.log_snapshot_event("load", self.persist_path, details={"items": len(self._items)})

        self._initialized = True

    def _dimension(self, exclude_id: Optional[str] = None) -> Optional[int]:
        """Embedding length shared by the stored items, None when nothing to compare with."""
        for item_id, item in self._items.items():
            if item_id != exclude_id:
                return len(item.embedding)
        return None

    def _check_embedding(self, embedding: Sequence[float], exclude_id: Optional[str] = None) -> List[float]:
        try:
            vector = [float(v) for v in embedding]
        except (TypeError, ValueError) as e:
            raise VectorStoreError("Embedding must be a sequence of numbers") from e
        if not vector:
            raise VectorStoreError("Embedding must not be empty")

        expected = self._dimension(exclude_id)
        if expected is not None and len(vector) != expected:
            raise VectorStoreError(f"Vector dimensions don't match: {len(vector)} vs {expected}")
        return vector

    async def add(self, text: str, metadata: MemoryMetadata, embedding: List[float]) -> MemoryItem:
        """
        Add a memory item; the embedding must already be computed.

        Returns:
            Copy of the stored item, including its generated id
        """
        item = MemoryItem(
            id=str(uuid.uuid4()),
            text=text,
            metadata=copy.deepcopy(metadata),
            embedding=self._check_embedding(embedding),
        )

        self._items[item.id] = item
        self.logger.log_vector_operation("add", item.id, {"source": metadata.source})
        await self._persist()

        return copy.deepcopy(item)

    async def get(self, item_id: str) -> Optional[MemoryItem]:
        item = self._items.get(item_id)
        return copy.deepcopy(item) if item is not None else None

    async def update(self, item_id: str, text: Optional[str] = None,
                     embedding: Optional[List[float]] = None,
                     metadata: Optional[Dict[str, object]] = None) -> Optional[MemoryItem]:
        """
        Update a memory item.

        Text replaces the stored text. New text without an explicit embedding is
        re-embedded before anything is committed. Metadata keys are shallow-merged
        into the existing metadata (a given 'tags' list replaces the old one).

        Returns:
            Copy of the updated item, or None if the id is unknown

        Raises:
            VectorStoreError: re-embedding failed, the embedding has the wrong length
                or a standard metadata field has the wrong type; the stored item
                is left unchanged
        """
        item = self._items.get(item_id)
        if item is None:
            return None

        new_metadata = item.metadata.merged(metadata) if metadata else copy.deepcopy(item.metadata)

        new_embedding = item.embedding
        if embedding is not None:
            new_embedding = self._check_embedding(embedding, exclude_id=item_id)
        elif text is not None and text != item.text:
            try:
                computed = await self.embedding_provider.get_embedding(text)
            except EmbeddingError as e:
                self.logger.log_vector_operation("update", item_id, {"error": str(e)[:200]}, status="failed")
                raise VectorStoreError(f"Failed to generate embedding for updated text: {e}") from e
            new_embedding = self._check_embedding(computed, exclude_id=item_id)

        updated = MemoryItem(
            id=item_id,
            text=text if text is not None else item.text,
            metadata=new_metadata,
            embedding=list(new_embedding),
        )

        self._items[item_id] = updated
        self.logger.log_vector_operation("update", item_id, {"embedding_changed": new_embedding is not item.embedding})
        await self._persist()

        return copy.deepcopy(updated)

    async def delete(self, item_id: str) -> bool:
        if item_id not in self._items:
            return False

        del self._items[item_id]
        self.logger.log_vector_operation("delete", item_id)
        await self._persist()
        return True

    async def search(self, query_embedding: Sequence[float], limit: int = DEFAULT_SEARCH_LIMIT,
                     memory_filter: Optional[MemoryFilter] = None) -> List[SearchResult]:
        """
        Search for memory items by vector similarity.

        Filtering happens before scoring; results are sorted by descending
        cosine similarity and truncated to `limit`.

        Raises:
            VectorStoreError: query length differs from a candidate's embedding length
        """
        results = []
        for item in self._items.values():
            if memory_filter is not None and not matches_filter(item, memory_filter):
                continue

            score = cosine_similarity(query_embedding, item.embedding)
            results.append(SearchResult(item=item, score=score))

        results.sort(key=lambda r: r.score, reverse=True)

        return [
            SearchResult(item=copy.deepcopy(r.item), score=r.score)
            for r in results[:max(limit, 0)]
        ]

    async def search_by_text(self, text: str, limit: int = DEFAULT_SEARCH_LIMIT,
                             memory_filter: Optional[MemoryFilter] = None) -> List[SearchResult]:
        """Embed `text` with the configured provider, then search."""
        try:
            query_embedding = await self.embedding_provider.get_embedding(text)
        except EmbeddingError as e:
            raise VectorStoreError(f"Failed to search by text: {e}") from e

        return await self.search(query_embedding, limit, memory_filter)

    async def get_stats(self) -> MemoryStats:
        if not self._items:
            return MemoryStats.empty()

        timestamps = [item.metadata.timestamp for item in self._items.values()]
        sources: List[str] = []
        tags: List[str] = []
        for item in self._items.values():
            if item.metadata.source and item.metadata.source not in sources:
                sources.append(item.metadata.source)
            for tag in item.metadata.tags:
                if tag not in tags:
                    tags.append(tag)

        return MemoryStats(
            total_items=len(self._items),
            unique_sources=sources,
            unique_tags=tags,
            oldest_timestamp=min(timestamps),
            newest_timestamp=max(timestamps),
        )

    async def clear(self) -> None:
        count = len(self._items)
        self._items.clear()
        self.logger.log_vector_operation("clear", None, {"removed": count})
        await self._persist()

    async def _persist(self) -> None:
        """Write the whole collection to the snapshot file, if configured."""
        if not self.persist_path:
            return

        async with self._persist_lock:
            items = list(self._items.values())
            try:
                await asyncio.to_thread(write_snapshot, self.persist_path, items)
            except (OSError, TypeError, ValueError) as e:
                self.logger.log_snapshot_event("write", self.persist_path, "failed", {"error": str(e)[:200]})
