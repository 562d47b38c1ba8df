"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import BatchPersistenceContext, Entity, EntityStore, PlaceholderWriter
from .reporting import DiffJsonSink, TabularSink
from .unit_of_work import ImportRepositories, ImportUnitOfWork

__all__ = [
    "BatchPersistenceContext",
    "DiffJsonSink",
    "Entity",
    "EntityStore",
    "ImportRepositories",
    "ImportUnitOfWork",
    "PlaceholderWriter",
    "TabularSink",
]
