"""
Vector memory - embedding providers, the in-memory vector store and its snapshot.
"""

# Package initialization for vector module
from .index import IVectorStore, InMemoryVectorStore, cosine_similarity, matches_filter
from .types import MemoryItem, MemoryMetadata, MemoryFilter, SearchResult, MemoryStats
from .embeddings import (
    IEmbeddingProvider,
    GeminiEmbeddingProvider,
    OllamaEmbeddingProvider,
    DeterministicHashEmbedding,
    create_embedding_provider,
)
from .service import MemoryService, initialize_memory_module

__all__ = [
    'IVectorStore',
    'InMemoryVectorStore',
    'cosine_similarity',
    'matches_filter',
    'MemoryItem',
    'MemoryMetadata',
    'MemoryFilter',
    'SearchResult',
    'MemoryStats',
    'IEmbeddingProvider',
    'GeminiEmbeddingProvider',
    'OllamaEmbeddingProvider',
    'DeterministicHashEmbedding',
    'create_embedding_provider',
    'MemoryService',
    'initialize_memory_module',
]
