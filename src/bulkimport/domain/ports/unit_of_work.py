"""Transaction boundary handed to an import run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from bulkimport.domain.ports.persistence import (
        BatchPersistenceContext,
        EntityStore,
        PlaceholderWriter,
    )


@dataclass(slots=True)
class ImportRepositories:
    """The three ports an import phase works with, sharing one transaction."""

    store: EntityStore
    placeholders: PlaceholderWriter
    batch: BatchPersistenceContext


@runtime_checkable
class ImportUnitOfWork(Protocol):
    """Context manager exposing the import ports; phases commit or roll back explicitly.

    Leaving the context with an exception discards whatever was not committed.
    """

    @property
    def repositories(self) -> ImportRepositories: ...

    def __enter__(self) -> ImportUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
