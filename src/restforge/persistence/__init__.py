"""Persistence layer - document stores."""

from restforge.persistence.adapter import DocumentStore
from restforge.persistence.config import DatabaseConfig, create_store
from restforge.persistence.memory import MemoryStore
from restforge.persistence.sql import SQLDocumentStore

__all__ = [
    "DatabaseConfig",
    "DocumentStore",
    "MemoryStore",
    "SQLDocumentStore",
    "create_store",
]
