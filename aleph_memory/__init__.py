"""
aleph-memory: semantic memory store with pluggable embedding providers.
"""

from .core.config import VERSION

__version__ = VERSION
