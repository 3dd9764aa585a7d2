"""
Data model for the vector memory store.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ..core.errors import VectorStoreError

# Values allowed in the extra metadata / filter side-maps
Primitive = Union[str, int, float, bool, None]

STANDARD_METADATA_FIELDS = ("timestamp", "source", "tags")


def _check_standard_field(key: str, value: Any) -> None:
    if key == "timestamp":
        valid = isinstance(value, int) and not isinstance(value, bool)
    elif key == "source":
        valid = isinstance(value, str)
    else:
        valid = isinstance(value, list) and all(isinstance(tag, str) for tag in value)

    if not valid:
        raise VectorStoreError(f"Invalid metadata value for '{key}': {value!r}")


@dataclass
class MemoryMetadata:
    """Metadata associated with a memory item."""

    timestamp: int
    """Creation / last update instant, epoch milliseconds"""

    source: str
    """Provenance label"""

    tags: List[str] = field(default_factory=list)
    """Categorization tags, order kept, duplicates not removed"""

    extra: Dict[str, Primitive] = field(default_factory=dict)
    """Additional caller-supplied key/value pairs"""

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a standard field or an extra key."""
        if key in STANDARD_METADATA_FIELDS:
            return getattr(self, key)
        return self.extra.get(key, default)

    def has(self, key: str) -> bool:
        return key in STANDARD_METADATA_FIELDS or key in self.extra

    def merged(self, changes: Dict[str, Any]) -> 'MemoryMetadata':
        """
        Return a copy with the given keys overwritten (shallow merge).

        Raises:
            VectorStoreError: a standard field is given a value of the wrong type
        """
        merged = copy.deepcopy(self)
        for key, value in changes.items():
            if key in STANDARD_METADATA_FIELDS:
                _check_standard_field(key, value)
                setattr(merged, key, copy.deepcopy(value))
            else:
                merged.extra[key] = value
        return merged

    def to_dict(self) -> Dict[str, Any]:
        """Flatten extras next to the standard fields for JSON serialization."""
        data = dict(self.extra)
        data["timestamp"] = self.timestamp
        data["source"] = self.source
        data["tags"] = list(self.tags)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MemoryMetadata':
        extra = {k: v for k, v in data.items() if k not in STANDARD_METADATA_FIELDS}
        return cls(
            timestamp=int(data.get("timestamp", 0)),
            source=data.get("source", ""),
            tags=list(data.get("tags") or []),
            extra=extra,
        )


@dataclass
class MemoryItem:
    """A memory item stored in the vector store."""

    id: str
    text: str
    metadata: MemoryMetadata
    embedding: List[float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "metadata": self.metadata.to_dict(),
            "embedding": list(self.embedding),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MemoryItem':
        return cls(
            id=data["id"],
            text=data["text"],
            metadata=MemoryMetadata.from_dict(data["metadata"]),
            embedding=[float(v) for v in data["embedding"]],
        )


@dataclass
class MemoryFilter:
    """
    Conjunctive predicate over metadata.

    tags matches when the item shares any tag with the list; source is exact;
    from_date/to_date are inclusive bounds; every extra key must be present in
    the item metadata with an equal value. Unset clauses are skipped.
    """

    tags: Optional[List[str]] = None
    source: Optional[str] = None
    from_date: Optional[int] = None
    to_date: Optional[int] = None
    extra: Dict[str, Primitive] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MemoryFilter':
        """Build a filter from adapter-style keys (fromDate/toDate accepted)."""
        known = {"tags", "source", "from_date", "to_date", "fromDate", "toDate"}
        return cls(
            tags=data.get("tags"),
            source=data.get("source"),
            from_date=data.get("from_date", data.get("fromDate")),
            to_date=data.get("to_date", data.get("toDate")),
            extra={k: v for k, v in data.items() if k not in known},
        )


@dataclass
class SearchResult:
    """A memory item paired with its cosine similarity to the query."""

    item: MemoryItem
    score: float


@dataclass
class MemoryStats:
    """Aggregate snapshot of the store contents."""

    total_items: int
    unique_sources: List[str]
    unique_tags: List[str]
    oldest_timestamp: int
    newest_timestamp: int

    @classmethod
    def empty(cls) -> 'MemoryStats':
        return cls(
            total_items=0,
            unique_sources=[],
            unique_tags=[],
            oldest_timestamp=0,
            newest_timestamp=0,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalItems": self.total_items,
            "uniqueSources": list(self.unique_sources),
            "uniqueTags": list(self.unique_tags),
            "oldestTimestamp": self.oldest_timestamp,
            "newestTimestamp": self.newest_timestamp,
        }
