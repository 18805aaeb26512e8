"""Data store backends."""

from taskhub.storage.base import DataStore
from taskhub.storage.memory import InMemoryDataStore
from taskhub.storage.sqlalchemy import SQLAlchemyDataStore

__all__ = [
    "DataStore",
    "InMemoryDataStore",
    "SQLAlchemyDataStore",
]
