"""
Structured logging for memory store operations.
Events are emitted as 'Operation: <op>, Status: <status>, Details: {...}' lines.
"""

import logging
from typing import Any, Dict, Optional

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class StructuredLogger:
    """Structured logger for vector store, snapshot and embedding events."""

    def __init__(self, name: str = "aleph_memory", level: str = "info"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(LOG_LEVELS.get(level, logging.INFO))

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def set_level(self, level: str) -> None:
        """Set the threshold from a config level name (debug|info|warn|error)."""
        self.logger.setLevel(LOG_LEVELS.get(level, logging.INFO))

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None,
                      level: int = logging.INFO):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        self.logger.log(level, message)

    def log_vector_operation(self, operation: str, record_id: Optional[str], details: Dict[str, Any] = None, status: str = "success"):
        """Log a vector store operation."""
        log_details = {"record_id": record_id}
        if details:
            log_details.update(details)

        level = logging.INFO if status == "success" else logging.WARNING
        self.log_operation(f"vector.{operation}", status, log_details, level=level)

    def log_snapshot_event(self, action: str, path: str, status: str = "success", details: Dict[str, Any] = None):
        """Log a snapshot load or write."""
        log_details = {"path": path}
        if details:
            log_details.update(details)

        if status == "success":
            level = logging.INFO
        elif status == "failed":
            level = logging.ERROR
        else:
            level = logging.WARNING
        self.log_operation(f"snapshot.{action}", status, log_details, level=level)

    def log_embedding_request(self, provider: str, status: str = "success", details: Dict[str, Any] = None):
        """Log an embedding provider call."""
        log_details = {"provider": provider}
        if details:
            log_details.update(details)

        level = logging.DEBUG if status == "success" else logging.WARNING
        self.log_operation("embedding.request", status, log_details, level=level)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


# Global logger instance
logger = StructuredLogger()


def configure_logging(level: str) -> StructuredLogger:
    """Apply a config log level to the global logger and return it."""
    logger.set_level(level)
    return logger
