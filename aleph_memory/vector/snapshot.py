"""
On-disk snapshot of the vector store: one JSON array holding every memory item.
Read and written as a whole; no incremental appends.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, StrictFloat, StrictInt, field_validator

from .types import MemoryItem


class SnapshotMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    timestamp: int
    source: str = ""
    tags: List[str] = []


class SnapshotItem(BaseModel):
    id: str
    text: str
    metadata: SnapshotMetadata
    embedding: List[Union[StrictFloat, StrictInt]]

    @field_validator('id')
    @classmethod
    def id_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('id cannot be empty')
        return v


def read_snapshot(path: str) -> Optional[Dict[str, MemoryItem]]:
    """
    Load a snapshot file.

    Returns:
        Mapping of id -> MemoryItem, or None if the file does not exist

    Raises:
        OSError, ValueError (json.JSONDecodeError, pydantic.ValidationError)
        when the file is present but unreadable or malformed
    """
    if not os.path.exists(path):
        return None

    with open(path, 'r', encoding='utf-8') as f:
        raw = json.load(f)

    if not isinstance(raw, list):
        raise ValueError(f"snapshot root must be a JSON array, got {type(raw).__name__}")

    items = {}
    dimension = None
    for entry in raw:
        record = SnapshotItem.model_validate(entry)
        if not record.embedding:
            raise ValueError(f"snapshot item {record.id} has an empty embedding")
        if dimension is None:
            dimension = len(record.embedding)
        elif len(record.embedding) != dimension:
            raise ValueError(
                f"snapshot item {record.id} has {len(record.embedding)} dimensions, expected {dimension}"
            )
        items[record.id] = MemoryItem.from_dict(record.model_dump())
    return items


def write_snapshot(path: str, items: List[MemoryItem]) -> None:
    """Replace the snapshot file with the given items."""
    target = Path(path)
    with tempfile.NamedTemporaryFile('w', encoding='utf-8', dir=target.parent,
                                     prefix=target.name + ".", suffix=".tmp", delete=False) as f:
        tmp_path = f.name
        try:
            json.dump([item.to_dict() for item in items], f)
        except (TypeError, ValueError):
            f.close()
            os.unlink(tmp_path)
            raise

    try:
        os.replace(tmp_path, target)
    except OSError:
        os.unlink(tmp_path)
        raise
