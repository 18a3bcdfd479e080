"""Data store collaborators."""

from folio.store.base import DataStore, RangeRead, Record
from folio.store.memory import InMemoryDataStore

__all__ = ["DataStore", "InMemoryDataStore", "RangeRead", "Record"]
