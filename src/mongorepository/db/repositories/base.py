"""Base repository class with shared collection binding and entity mapping."""

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from contextlib import nullcontext
from time import perf_counter
from typing import Any, Generic, Self, TypeVar

import pymongo
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection

from mongorepository.db.connection import default_connection_string, get_collection
from mongorepository.exceptions import ConfigurationError
from mongorepository.keys import KeyStrategy
from mongorepository.models import KeyedEntity, MongoUrl, collection_name_for
from mongorepository.settings import Settings
from mongorepository.utils.logger import get_logger

logger = get_logger(__name__)

EntityT = TypeVar("EntityT", bound=KeyedEntity)
ResultT = TypeVar("ResultT")


class BaseRepository(Generic[EntityT]):
    """Base class binding an entity type to one MongoDB collection."""

    def __init__(
        self,
        entity_type: type[EntityT],
        connection_string: str | None = None,
        collection_name: str | None = None,
        *,
        collection: AsyncIOMotorCollection | None = None,
        key: KeyStrategy | None = None,
        settings: Settings | None = None,
    ) -> None:
        """
        Bind the repository to its collection.

        Without ``connection_string`` (and without ``collection``) the
        default connection string from MONGO_SERVER_SETTINGS is used.
        Without ``collection_name`` the name is derived from the entity type.

        Args:
            entity_type: Entity class stored in the collection
            connection_string: MongoDB connection string naming the database
            collection_name: Explicit collection name
            collection: Already-resolved collection handle (client not owned)
            key: Identifier strategy, defaults to ``entity_type.key_strategy``
            settings: Library settings, defaults to environment configuration

        Raises:
            ConfigurationError: If no connection target can be resolved
        """
        self.settings = settings or Settings()
        self._entity_type = entity_type
        self._key = key or entity_type.key_strategy
        self._client: AsyncIOMotorClient | None = None

        if collection is not None:
            if connection_string is not None or collection_name is not None:
                raise ConfigurationError(
                    "Pass either a collection handle or a connection target, not both"
                )
            self._collection = collection
            return

        if connection_string is None:
            connection_string = default_connection_string(self.settings)

        self._client, self._collection = get_collection(
            connection_string,
            collection_name or collection_name_for(entity_type),
            self.settings,
        )

    @classmethod
    def from_url(
        cls,
        entity_type: type[EntityT],
        url: MongoUrl,
        collection_name: str | None = None,
        *,
        key: KeyStrategy | None = None,
        settings: Settings | None = None,
    ) -> Self:
        """Create a repository from a structured MongoUrl."""
        return cls(
            entity_type,
            url.connection_string,
            collection_name,
            key=key,
            settings=settings,
        )

    @classmethod
    def from_collection(
        cls,
        entity_type: type[EntityT],
        collection: AsyncIOMotorCollection,
        *,
        key: KeyStrategy | None = None,
        settings: Settings | None = None,
    ) -> Self:
        """Create a repository on an existing collection handle, sharing its client."""
        return cls(entity_type, collection=collection, key=key, settings=settings)

    @property
    def collection_name(self) -> str:
        """Return the name of the bound collection."""
        return str(self._collection.name)

    @property
    def collection(self) -> AsyncIOMotorCollection:
        """
        Return the raw Motor collection for advanced operations.

        Anything done through this handle bypasses the repository's entity
        mapping and identifier conversion. Prefer repository operations.
        """
        return self._collection

    @property
    def entity_type(self) -> type[EntityT]:
        """Return the entity class stored in the collection."""
        return self._entity_type

    @property
    def key(self) -> KeyStrategy:
        """Return the identifier strategy."""
        return self._key

    def id_filter(self, entity_id: Any) -> dict[str, Any]:
        """
        Build the equality filter on ``_id`` for an identifier.

        Raises:
            InvalidIdentifierError: If the key cannot be converted
        """
        return {"_id": self._key.to_store(entity_id)}

    def to_document(self, entity: EntityT) -> dict[str, Any]:
        """Convert an entity to the document stored in the collection."""
        document = entity.model_dump(by_alias=True, exclude={"id"})
        if entity.id is not None:
            document = {"_id": self._key.to_store(entity.id), **document}
        return document

    def from_document(self, document: Mapping[str, Any]) -> EntityT:
        """Convert a stored document to an entity."""
        data = dict(document)
        if "_id" in data:
            data["id"] = self._key.from_store(data.pop("_id"))
        return self._entity_type.model_validate(data)

    async def _execute(
        self,
        operation: str,
        call: Callable[[], Awaitable[ResultT]],
        timeout: float | None = None,
    ) -> ResultT:
        """
        Run a driver call with timing, logging and the operation timeout.

        ``call`` starts the driver operation and is invoked inside
        ``pymongo.timeout``. Motor runs the operation on its executor with a
        copy of the current context, so the deadline travels with it and the
        driver sends ``maxTimeMS`` to the server. The ``asyncio.timeout``
        around the await only stops the caller from waiting; an operation
        already on the wire is bounded by the driver deadline, not cancelled.

        Driver errors are logged and re-raised unchanged.
        """
        if timeout is None:
            timeout = self.settings.database.operation_timeout

        deadline = pymongo.timeout(timeout) if timeout is not None else nullcontext()

        start_time = perf_counter()
        try:
            with deadline:
                async with asyncio.timeout(timeout):
                    result = await call()
        except Exception as e:
            elapsed = perf_counter() - start_time
            logger.error(
                "%s failed [collection=%s, time=%.2fms]: %s",
                operation,
                self.collection_name,
                elapsed * 1000,
                e,
            )
            raise

        elapsed = perf_counter() - start_time
        logger.debug(
            "%s [collection=%s, time=%.2fms]",
            operation,
            self.collection_name,
            elapsed * 1000,
        )
        return result

    def close(self) -> None:
        """Close the MongoDB client if this repository created it."""
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info(
                "Closed MongoDB connection [collection=%s]", self.collection_name
            )
