"""Generic entity repository for MongoDB collections."""

from collections.abc import AsyncGenerator, Iterable, Mapping
from time import perf_counter
from types import TracebackType
from typing import Any, Generic, TypeVar

from mongorepository.db.repositories.base import BaseRepository, EntityT
from mongorepository.db.repositories.query import Query
from mongorepository.exceptions import (
    EntityNotFoundError,
    InvalidIdentifierError,
    MultipleEntitiesFoundError,
)
from mongorepository.utils.logger import get_logger

logger = get_logger(__name__)

KeyT = TypeVar("KeyT")


class MongoRepository(BaseRepository[EntityT], Generic[EntityT, KeyT]):
    """
    CRUD and query operations for one entity type in one collection.

    Every operation is a coroutine and accepts an optional ``timeout`` in
    seconds (default: MONGODB_OPERATION_TIMEOUT). The timeout is
    enforced by the driver (``pymongo.timeout``). Cancelling the awaiting task
    stops the wait but cannot recall an operation already sent to the server.
    Driver errors propagate unchanged.

    Usage:
        repo: MongoRepository[Person, str] = MongoRepository(
            Person, "mongodb://localhost:27017/app"
        )
        person = await repo.add(Person(name="Ada", age=36))
        same = await repo.get_by_id(person.id)
    """

    async def __aenter__(self) -> "MongoRepository[EntityT, KeyT]":
        """Context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Context manager exit."""
        self.close()

    async def ping(self, *, timeout: float | None = None) -> None:
        """
        Check that the server is reachable.

        Raises:
            pymongo.errors.ConnectionFailure: If the server cannot be reached
        """
        await self._execute(
            "ping", lambda: self.collection.database.command("ping"), timeout
        )

    # ==================== Queries ====================

    def query(self) -> Query[EntityT]:
        """Return a lazy query over every entity in the collection."""
        return Query(self)

    def where(self, predicate: Mapping[str, Any]) -> Query[EntityT]:
        """Return a lazy query over the entities matching a filter document."""
        return self.query().where(predicate)

    def __aiter__(self) -> AsyncGenerator[EntityT, None]:
        return self.query().__aiter__()

    # ==================== Reads ====================

    async def get_by_id(
        self, entity_id: KeyT, *, timeout: float | None = None
    ) -> EntityT:
        """
        Return the single entity with the given identifier.

        Args:
            entity_id: Identifier of the entity

        Returns:
            The entity

        Raises:
            InvalidIdentifierError: If the identifier cannot be converted
            EntityNotFoundError: If no document matches
            MultipleEntitiesFoundError: If more than one document matches
        """
        id_filter = self.id_filter(entity_id)
        documents = await self._execute(
            "get_by_id",
            lambda: self.collection.find(id_filter).limit(2).to_list(length=2),
            timeout,
        )

        if not documents:
            logger.warning(
                "Entity not found [collection=%s, id=%s]",
                self.collection_name,
                entity_id,
            )
            raise EntityNotFoundError(self.collection_name, entity_id)
        if len(documents) > 1:
            logger.error(
                "Duplicate _id in collection [collection=%s, id=%s]",
                self.collection_name,
                entity_id,
            )
            raise MultipleEntitiesFoundError(self.collection_name, entity_id)

        return self.from_document(documents[0])

    async def count(self, *, timeout: float | None = None) -> int:
        """Count all documents in the collection."""
        count = await self._execute(
            "count", lambda: self.collection.count_documents({}), timeout
        )
        return int(count)

    async def exists(
        self, predicate: Mapping[str, Any], *, timeout: float | None = None
    ) -> bool:
        """Return whether any document matches the filter document."""
        return await self.where(predicate).exists(timeout=timeout)

    # ==================== Writes ====================

    async def add(self, entity: EntityT, *, timeout: float | None = None) -> EntityT:
        """
        Insert a new entity.

        The store assigns an identifier when ``entity.id`` is None; it is
        written back to the entity, which is returned.
        """
        document = self.to_document(entity)
        result = await self._execute(
            "insert_one",
            lambda: self.collection.insert_one(document),
            timeout,
        )
        entity.id = self._key.from_store(result.inserted_id)
        logger.info(
            "Added entity [collection=%s, id=%s]", self.collection_name, entity.id
        )
        return entity

    async def add_many(
        self, entities: Iterable[EntityT], *, timeout: float | None = None
    ) -> list[EntityT]:
        """
        Insert several entities in one batched call.

        Partial failures are reported by the driver (BulkWriteError); no
        atomicity is added on top.
        """
        batch = list(entities)
        if not batch:
            logger.debug(
                "add_many called with no entities [collection=%s]",
                self.collection_name,
            )
            return []

        documents = [self.to_document(e) for e in batch]
        start_time = perf_counter()
        result = await self._execute(
            "insert_many",
            lambda: self.collection.insert_many(documents),
            timeout,
        )
        for entity, inserted_id in zip(batch, result.inserted_ids, strict=True):
            entity.id = self._key.from_store(inserted_id)

        elapsed = perf_counter() - start_time
        logger.info(
            "Added %d entities [collection=%s, time=%.2fms]",
            len(batch),
            self.collection_name,
            elapsed * 1000,
        )
        return batch

    async def update(
        self, entity: EntityT, *, timeout: float | None = None
    ) -> EntityT:
        """
        Upsert an entity.

        An entity without identifier is added. Otherwise the document with
        the same identifier is replaced, or inserted when none exists.
        """
        if entity.id is None:
            return await self.add(entity, timeout=timeout)

        id_filter = self.id_filter(entity.id)
        document = self.to_document(entity)
        await self._execute(
            "replace_one",
            lambda: self.collection.replace_one(id_filter, document, upsert=True),
            timeout,
        )
        logger.info(
            "Upserted entity [collection=%s, id=%s]", self.collection_name, entity.id
        )
        return entity

    async def update_many(
        self, entities: Iterable[EntityT], *, timeout: float | None = None
    ) -> list[EntityT]:
        """
        Upsert entities one after another, one round-trip each.

        Not atomic: if an upsert fails, earlier entities stay written and
        later ones are not attempted. ``timeout`` applies per entity.
        """
        updated: list[EntityT] = []
        for entity in entities:
            updated.append(await self.update(entity, timeout=timeout))
        return updated

    # ==================== Deletes ====================

    async def delete(self, entity_id: KeyT, *, timeout: float | None = None) -> int:
        """
        Delete the entity with the given identifier.

        Deleting an identifier that does not exist is not an error.

        Returns:
            Number of deleted documents (0 or 1)
        """
        id_filter = self.id_filter(entity_id)
        result = await self._execute(
            "delete_one",
            lambda: self.collection.delete_one(id_filter),
            timeout,
        )
        if result.deleted_count == 0:
            logger.debug(
                "Nothing to delete [collection=%s, id=%s]",
                self.collection_name,
                entity_id,
            )
        return int(result.deleted_count)

    async def delete_entity(
        self, entity: EntityT, *, timeout: float | None = None
    ) -> int:
        """
        Delete the given entity by its identifier.

        Raises:
            InvalidIdentifierError: If the entity has no identifier
        """
        if entity.id is None:
            raise InvalidIdentifierError(
                f"Cannot delete {type(entity).__name__} without an identifier"
            )
        return await self.delete(entity.id, timeout=timeout)

    async def delete_where(
        self, predicate: Mapping[str, Any], *, timeout: float | None = None
    ) -> int:
        """
        Delete every entity matching the filter document.

        Returns:
            Number of deleted documents
        """
        filter_doc = dict(predicate)
        result = await self._execute(
            "delete_many", lambda: self.collection.delete_many(filter_doc), timeout
        )
        logger.info(
            "Deleted %d entities [collection=%s]",
            result.deleted_count,
            self.collection_name,
        )
        return int(result.deleted_count)

    async def delete_all(self, *, timeout: float | None = None) -> int:
        """Delete every entity in the collection."""
        return await self.delete_where({}, timeout=timeout)
