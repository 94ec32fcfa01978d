"""
CyberPath Storage - per-learner state behind one interface.

This module provides:
- ProgressStore: abstract interface consumed by the engines
- MemoryStore: in-process implementation
- SQLiteStore: SQLite-backed implementation
"""

from .base import ProgressStore
from .memory import MemoryStore
from .sqlite import SQLiteStore

__all__ = [
    "ProgressStore",
    "MemoryStore",
    "SQLiteStore",
]
