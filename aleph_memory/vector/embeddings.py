"""
Embedding providers. Each provider turns text into a fixed-dimension vector.
Providers are stateless per call and know nothing about the vector store.
"""

from abc import ABC, abstractmethod
import asyncio
import hashlib
import re
from typing import Any, Dict, List, Optional

import requests

from ..core.config import AppConfig
from ..core.errors import ConfigError, EmbeddingError
from ..util.logging import StructuredLogger, logger as default_logger

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
GEMINI_DIMENSIONS = 768

OLLAMA_DEFAULT_DIMENSIONS = 384
OLLAMA_MODEL_DIMENSIONS = {
    "nomic-embed-text": 768,
    "mxbai-embed-large": 1024,
    "all-minilm": 384,
}


class IEmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    name: str = "abstract"

    @abstractmethod
    async def get_embedding(self, text: str) -> List[float]:
        """Generate embedding vector for given text."""
        pass

    @abstractmethod
    def get_dimensions(self) -> int:
        """Get the dimension of the embedding vectors."""
        pass


def _as_vector(values: Any) -> List[float]:
    """Validate a decoded embedding payload and return it as a list of floats."""
    if not isinstance(values, list):
        raise ValueError("embedding is not an array")
    vector = []
    for value in values:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"embedding contains a non-numeric value: {value!r}")
        vector.append(float(value))
    return vector


def _describe_http_error(response: requests.Response) -> str:
    message = f"HTTP error {response.status_code}"
    try:
        return f"{message}: {response.json()}"
    except ValueError:
        return f"{message}: {response.text}"


class HTTPEmbeddingProvider(IEmbeddingProvider):
    """
    Shared request/normalization logic for providers reached over HTTP.

    Subclasses build the request and pick the vector out of the JSON body.
    Any failure (status, body shape, transport) comes out as EmbeddingError.
    """

    display_name = "HTTP"

    def __init__(self, timeout: float = 30.0, logger: Optional[StructuredLogger] = None):
        self.timeout = timeout
        self.logger = logger or default_logger

    @abstractmethod
    def _build_request(self, text: str) -> Dict[str, Any]:
        """Return keyword arguments for requests.post."""
        pass

    @abstractmethod
    def _extract_embedding(self, data: Dict[str, Any]) -> List[float]:
        """Pull the vector out of a decoded response body."""
        pass

    def _request_embedding(self, text: str) -> List[float]:
        try:
            response = requests.post(timeout=self.timeout, **self._build_request(text))
            if not response.ok:
                raise ValueError(_describe_http_error(response))

            data = response.json()
            if not isinstance(data, dict):
                raise ValueError(f"Unexpected response format from {self.display_name} API: {data}")
            return self._extract_embedding(data)

        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            self.logger.log_embedding_request(self.name, "failed", {"error": str(e)[:200]})
            raise EmbeddingError(f"Failed to get embedding from {self.display_name}: {e}") from e

    async def get_embedding(self, text: str) -> List[float]:
        """Generate embedding vector via the remote API."""
        vector = await asyncio.to_thread(self._request_embedding, text)
        self.logger.log_embedding_request(self.name, details={"dimensions": len(vector)})
        return vector


class GeminiEmbeddingProvider(HTTPEmbeddingProvider):
    """Google Gemini embeddings, authenticated with an API key."""

    name = "gemini"
    display_name = "Gemini"

    def __init__(self, api_key: str, model: str = "embedding-001", timeout: float = 30.0,
                 api_base: str = GEMINI_API_BASE, logger: Optional[StructuredLogger] = None):
        super().__init__(timeout, logger)
        self.api_key = api_key
        self.model = model
        self.api_base = api_base.rstrip("/")

    def get_dimensions(self) -> int:
        return GEMINI_DIMENSIONS

    def _build_request(self, text: str) -> Dict[str, Any]:
        return {
            "url": f"{self.api_base}/models/{self.model}:embedContent",
            "params": {"key": self.api_key},
            "headers": {"Content-Type": "application/json"},
            "json": {
                "model": f"models/{self.model}",
                "content": {"parts": [{"text": text}]},
            },
        }

    def _extract_embedding(self, data: Dict[str, Any]) -> List[float]:
        embedding = data.get("embedding")
        if not isinstance(embedding, dict) or "values" not in embedding:
            raise ValueError(f"Unexpected response format from Gemini API: {data}")
        return _as_vector(embedding["values"])


class OllamaEmbeddingProvider(HTTPEmbeddingProvider):
    """Embeddings from a locally reachable Ollama server."""

    name = "ollama"
    display_name = "Ollama"

    def __init__(self, base_url: str, model: str, timeout: float = 30.0,
                 logger: Optional[StructuredLogger] = None):
        super().__init__(timeout, logger)
        self.base_url = base_url[:-1] if base_url.endswith("/") else base_url
        self.model = model

    def get_dimensions(self) -> int:
        # Tags like "nomic-embed-text:latest" share the base model's size
        base_model = self.model.split(":", 1)[0]
        return OLLAMA_MODEL_DIMENSIONS.get(base_model, OLLAMA_DEFAULT_DIMENSIONS)

    def _build_request(self, text: str) -> Dict[str, Any]:
        return {
            "url": f"{self.base_url}/api/embeddings",
            "headers": {"Content-Type": "application/json"},
            "json": {"model": self.model, "prompt": text},
        }

    def _extract_embedding(self, data: Dict[str, Any]) -> List[float]:
        if not isinstance(data.get("embedding"), list):
            raise ValueError(f"Unexpected response format from Ollama API: {data}")
        return _as_vector(data["embedding"])


class DeterministicHashEmbedding(IEmbeddingProvider):
    """Deterministic hash-based embedding provider for offline use and testing.

    Each lowercased word is hashed into one of `dimension` buckets with a
    hash-derived sign, so texts sharing words point in similar directions
    without any model dependency.
    """

    name = "hash"

    def __init__(self, dimension: int = 384):
        self.dimension = dimension

    def embed_text(self, text: str) -> List[float]:
        """Generate deterministic embedding vector using hash function."""
        vector = [0.0] * self.dimension
        for token in re.findall(r"\w+", text.lower()):
            digest = hashlib.md5(token.encode()).digest()
            bucket = int.from_bytes(digest[:4], "big") % self.dimension
            sign = 1.0 if digest[4] & 1 else -1.0
            vector[bucket] += sign
        return vector

    async def get_embedding(self, text: str) -> List[float]:
        return self.embed_text(text)

    def get_dimensions(self) -> int:
        return self.dimension


def create_embedding_provider(config: AppConfig,
                              logger: Optional[StructuredLogger] = None) -> IEmbeddingProvider:
    """
    Create the embedding provider named by the configuration.

    Raises:
        ConfigError: provider unknown or a required parameter is missing
    """
    if config.embedding_provider == "gemini":
        if not config.gemini_api_key:
            raise ConfigError("GEMINI_API_KEY is required for the Gemini embedding provider")
        return GeminiEmbeddingProvider(
            config.gemini_api_key,
            model=config.gemini_model,
            timeout=config.embedding_timeout_sec,
            logger=logger,
        )
    elif config.embedding_provider == "ollama":
        return OllamaEmbeddingProvider(
            config.ollama_base_url,
            config.ollama_model,
            timeout=config.embedding_timeout_sec,
            logger=logger,
        )
    elif config.embedding_provider == "hash":
        return DeterministicHashEmbedding(config.hash_embed_dim)
    else:
        raise ConfigError(f"Unsupported embedding provider: {config.embedding_provider}")
