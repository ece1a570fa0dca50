"""Unit of Work port - transactional boundary."""

from contextlib import AbstractAsyncContextManager
from typing import Protocol

from doctrack.application.ports.repositories.document_repository import DocumentRepository


class UnitOfWork(Protocol):
    """Unit of Work - manages transaction and repository access."""

    @property
    def documents(self) -> DocumentRepository: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class UnitOfWorkFactory(Protocol):
    """Callable returning an async context manager that yields a UnitOfWork.

    Leaving the context commits; an exception rolls back. Store failures
    surface as StoreError.
    """

    def __call__(self) -> AbstractAsyncContextManager[UnitOfWork]: ...
