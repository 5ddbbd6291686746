"""Blocking facade over the async repository."""

import asyncio
from collections.abc import AsyncGenerator, Coroutine, Iterable, Iterator, Mapping
from types import TracebackType
from typing import Any, Generic, TypeVar

from mongorepository.db.repositories.base import EntityT
from mongorepository.db.repositories.query import Query
from mongorepository.db.repositories.repository import KeyT, MongoRepository
from mongorepository.utils.logger import get_logger

logger = get_logger(__name__)

ResultT = TypeVar("ResultT")


_EXHAUSTED: Any = object()


async def _next(iterator: AsyncGenerator[ResultT, None]) -> ResultT:
    try:
        return await anext(iterator)
    except StopAsyncIteration:
        return _EXHAUSTED


class BlockingRepository(Generic[EntityT, KeyT]):
    """
    Runs every repository operation to completion on a private event loop.

    For scripts and other synchronous callers. The wrapped repository and its
    Motor client are bound to this wrapper's loop, so do not share them with
    async code, and do not call the wrapper from inside a running loop.

    Usage:
        with BlockingRepository(MongoRepository(Person, uri)) as repo:
            repo.add(Person(name="Ada"))
            for person in repo:
                print(person.name)
    """

    def __init__(self, repository: MongoRepository[EntityT, KeyT]) -> None:
        self._repository = repository
        self._runner = asyncio.Runner()

    def _run(self, coroutine: Coroutine[Any, Any, ResultT]) -> ResultT:
        return self._runner.run(coroutine)

    @property
    def repository(self) -> MongoRepository[EntityT, KeyT]:
        """Return the wrapped async repository."""
        return self._repository

    @property
    def collection_name(self) -> str:
        return self._repository.collection_name

    @property
    def collection(self) -> Any:
        """Raw Motor collection, see MongoRepository.collection."""
        return self._repository.collection

    def query(self) -> Query[EntityT]:
        return self._repository.query()

    def where(self, predicate: Mapping[str, Any]) -> Query[EntityT]:
        return self._repository.where(predicate)

    def iterate(self, query: Query[EntityT] | None = None) -> Iterator[EntityT]:
        """Lazily iterate a query (default: the whole collection)."""
        iterator = (query or self._repository.query()).__aiter__()
        try:
            while (entity := self._run(_next(iterator))) is not _EXHAUSTED:
                yield entity
        finally:
            self._run(iterator.aclose())

    def __iter__(self) -> Iterator[EntityT]:
        return self.iterate()

    def to_list(
        self, query: Query[EntityT], *, timeout: float | None = None
    ) -> list[EntityT]:
        return self._run(query.to_list(timeout=timeout))

    def get_by_id(self, entity_id: KeyT, *, timeout: float | None = None) -> EntityT:
        return self._run(self._repository.get_by_id(entity_id, timeout=timeout))

    def count(self, *, timeout: float | None = None) -> int:
        return self._run(self._repository.count(timeout=timeout))

    def exists(
        self, predicate: Mapping[str, Any], *, timeout: float | None = None
    ) -> bool:
        return self._run(self._repository.exists(predicate, timeout=timeout))

    def add(self, entity: EntityT, *, timeout: float | None = None) -> EntityT:
        return self._run(self._repository.add(entity, timeout=timeout))

    def add_many(
        self, entities: Iterable[EntityT], *, timeout: float | None = None
    ) -> list[EntityT]:
        return self._run(self._repository.add_many(entities, timeout=timeout))

    def update(self, entity: EntityT, *, timeout: float | None = None) -> EntityT:
        return self._run(self._repository.update(entity, timeout=timeout))

    def update_many(
        self, entities: Iterable[EntityT], *, timeout: float | None = None
    ) -> list[EntityT]:
        return self._run(self._repository.update_many(entities, timeout=timeout))

    def delete(self, entity_id: KeyT, *, timeout: float | None = None) -> int:
        return self._run(self._repository.delete(entity_id, timeout=timeout))

    def delete_entity(self, entity: EntityT, *, timeout: float | None = None) -> int:
        return self._run(self._repository.delete_entity(entity, timeout=timeout))

    def delete_where(
        self, predicate: Mapping[str, Any], *, timeout: float | None = None
    ) -> int:
        return self._run(self._repository.delete_where(predicate, timeout=timeout))

    def delete_all(self, *, timeout: float | None = None) -> int:
        return self._run(self._repository.delete_all(timeout=timeout))

    def close(self) -> None:
        """Close the repository's client and the private event loop."""
        self._repository.close()
        self._runner.close()
        logger.debug(
            "Closed blocking repository [collection=%s]", self.collection_name
        )

    def __enter__(self) -> "BlockingRepository[EntityT, KeyT]":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
