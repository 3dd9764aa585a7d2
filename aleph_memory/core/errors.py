"""
Error types for the memory store and its embedding providers.
Every public store operation either returns a value or raises one of these.
"""

from typing import Any, Dict


class AppError(Exception):
    """Base class for application-specific errors."""

    @property
    def name(self) -> str:
        return type(self).__name__


class ConfigError(AppError):
    """Invalid or missing configuration. Fatal at startup, never retried."""

    def __init__(self, message: str):
        super().__init__(f"Configuration error: {message}")


class EmbeddingError(AppError):
    """An embedding provider call failed (HTTP status, payload shape or transport)."""

    def __init__(self, message: str):
        super().__init__(f"Embedding error: {message}")


class VectorStoreError(AppError):
    """A store operation was aborted; the store keeps its prior state."""

    def __init__(self, message: str):
        super().__init__(f"Vector store error: {message}")


class MemoryNotFoundError(AppError):
    """Raised where a missing memory must be a hard failure."""

    def __init__(self, memory_id: str):
        self.memory_id = memory_id
        super().__init__(f"Memory with ID '{memory_id}' not found")


class ValidationError(AppError):
    """A caller-supplied parameter is invalid."""

    def __init__(self, message: str):
        super().__init__(f"Validation error: {message}")


def format_error_response(error: Any) -> Dict[str, str]:
    """
    Format an error for adapter responses.

    Args:
        error: Exception (or anything else) raised by an operation

    Returns:
        Dict with 'error' (kind) and 'details' (message)
    """
    if isinstance(error, AppError):
        return {"error": error.name, "details": str(error)}

    if isinstance(error, Exception):
        return {"error": "UnexpectedError", "details": str(error)}

    return {"error": "UnknownError", "details": str(error)}
