"""Lazy, composable queries over a repository's collection."""

from collections.abc import AsyncGenerator, Mapping
from typing import TYPE_CHECKING, Any, Generic

from pymongo import ASCENDING

from mongorepository.db.repositories.base import EntityT

if TYPE_CHECKING:
    from mongorepository.db.repositories.base import BaseRepository


class Query(Generic[EntityT]):
    """
    An immutable description of a find over one collection.

    Nothing is sent to the server until the query is iterated or one of
    ``to_list``, ``first``, ``count`` or ``exists`` is awaited. Every
    iteration opens a new cursor, so a query can be iterated any number of
    times. Composition methods return new queries and leave this one as is.

    Usage:
        adults = repo.where({"age": {"$gte": 18}}).sort("name").limit(10)
        async for person in adults:
            ...
    """

    def __init__(
        self,
        repository: "BaseRepository[EntityT]",
        filter: Mapping[str, Any] | None = None,
        sort: tuple[tuple[str, int], ...] = (),
        skip: int = 0,
        limit: int = 0,
    ) -> None:
        self._repository = repository
        self._filter: dict[str, Any] = dict(filter or {})
        self._sort = sort
        self._skip = skip
        self._limit = limit

    def _copy(self, **changes: Any) -> "Query[EntityT]":
        state: dict[str, Any] = {
            "filter": self._filter,
            "sort": self._sort,
            "skip": self._skip,
            "limit": self._limit,
        }
        state.update(changes)
        return Query(self._repository, **state)

    @property
    def element_type(self) -> type[EntityT]:
        """Return the entity class produced by this query."""
        return self._repository.entity_type

    @property
    def filter(self) -> dict[str, Any]:
        """Return a copy of the MongoDB filter document."""
        return dict(self._filter)

    def where(self, predicate: Mapping[str, Any]) -> "Query[EntityT]":
        """Narrow the query; predicates combine with ``$and``."""
        if not predicate:
            return self
        if not self._filter:
            return self._copy(filter=dict(predicate))
        return self._copy(filter={"$and": [self._filter, dict(predicate)]})

    def sort(self, field: str, direction: int = ASCENDING) -> "Query[EntityT]":
        """Append a sort key (pymongo.ASCENDING or pymongo.DESCENDING)."""
        return self._copy(sort=(*self._sort, (field, direction)))

    def skip(self, count: int) -> "Query[EntityT]":
        if count < 0:
            raise ValueError("skip must be >= 0")
        return self._copy(skip=count)

    def limit(self, count: int) -> "Query[EntityT]":
        """Limit the number of results, 0 means no limit."""
        if count < 0:
            raise ValueError("limit must be >= 0")
        return self._copy(limit=count)

    def _cursor(self) -> Any:
        cursor = self._repository.collection.find(
            self._filter,
            batch_size=self._repository.settings.database.cursor_batch_size,
        )
        if self._sort:
            cursor = cursor.sort(list(self._sort))
        if self._skip:
            cursor = cursor.skip(self._skip)
        if self._limit:
            cursor = cursor.limit(self._limit)
        return cursor

    async def __aiter__(self) -> AsyncGenerator[EntityT, None]:
        async for document in self._cursor():
            yield self._repository.from_document(document)

    async def to_list(self, *, timeout: float | None = None) -> list[EntityT]:
        """Materialize all matching entities."""
        documents = await self._repository._execute(
            "find", lambda: self._cursor().to_list(length=None), timeout
        )
        return [self._repository.from_document(document) for document in documents]

    async def first(self, *, timeout: float | None = None) -> EntityT | None:
        """Return the first matching entity, or None."""
        single = self.limit(1)
        documents = await self._repository._execute(
            "find_first", lambda: single._cursor().to_list(length=1), timeout
        )
        if not documents:
            return None
        return self._repository.from_document(documents[0])

    async def count(self, *, timeout: float | None = None) -> int:
        """Count matching documents, honouring skip and limit."""
        options: dict[str, int] = {}
        if self._skip:
            options["skip"] = self._skip
        if self._limit:
            options["limit"] = self._limit
        count = await self._repository._execute(
            "count_documents",
            lambda: self._repository.collection.count_documents(
                self._filter, **options
            ),
            timeout,
        )
        return int(count)

    async def exists(self, *, timeout: float | None = None) -> bool:
        """Return whether at least one document matches the filter."""
        document = await self._repository._execute(
            "find_one",
            lambda: self._repository.collection.find_one(self._filter, {"_id": 1}),
            timeout,
        )
        return document is not None

    def __repr__(self) -> str:
        return (
            f"Query({self.element_type.__name__}, filter={self._filter!r}, "
            f"sort={list(self._sort)!r}, skip={self._skip}, limit={self._limit})"
        )
