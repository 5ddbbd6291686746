"""Collection administration for a repository's collection."""

from typing import Any

from pymongo import ASCENDING

from mongorepository.db.repositories.base import BaseRepository, EntityT
from mongorepository.utils.logger import get_logger

logger = get_logger(__name__)

IndexKeys = str | list[tuple[str, Any]]


class RepositoryManager(BaseRepository[EntityT]):
    """
    Collection-level operations (existence, dropping, indexes).

    Built exactly like a MongoRepository and bound to the same collection.
    Kept separate so routine data access cannot drop collections by accident.
    """

    async def exists(self, *, timeout: float | None = None) -> bool:
        """Return whether the collection exists in its database."""
        names = await self._execute(
            "list_collection_names",
            lambda: self.collection.database.list_collection_names(),
            timeout,
        )
        return self.collection_name in names

    async def drop(self, *, timeout: float | None = None) -> None:
        """Drop the collection together with its documents and indexes."""
        await self._execute("drop", lambda: self.collection.drop(), timeout)
        logger.warning("Dropped collection [collection=%s]", self.collection_name)

    async def is_capped(self, *, timeout: float | None = None) -> bool:
        """Return whether the collection is capped."""
        options = await self._execute(
            "options", lambda: self.collection.options(), timeout
        )
        return bool(options.get("capped", False))

    async def ensure_index(
        self,
        keys: IndexKeys,
        *,
        unique: bool = False,
        sparse: bool = False,
        name: str | None = None,
        background: bool = False,
        timeout: float | None = None,
    ) -> str:
        """
        Create an index unless it already exists.

        Args:
            keys: Field name (ascending) or list of (field, direction) pairs
            unique: Reject documents with duplicate index keys
            sparse: Only index documents containing the indexed fields
            name: Index name, defaults to the driver-generated one
            background: Build the index in the background (ignored by servers
                from 4.2 on, which always use an optimized build)

        Returns:
            Name of the index
        """
        if isinstance(keys, str):
            keys = [(keys, ASCENDING)]

        options: dict[str, Any] = {
            "unique": unique,
            "sparse": sparse,
            "background": background,
        }
        if name is not None:
            options["name"] = name

        index_name = await self._execute(
            "create_index",
            lambda: self.collection.create_index(keys, **options),
            timeout,
        )
        logger.info(
            "Ensured index [collection=%s, index=%s]", self.collection_name, index_name
        )
        return str(index_name)

    async def drop_index(self, name: str, *, timeout: float | None = None) -> None:
        """Drop an index by name."""
        await self._execute(
            "drop_index", lambda: self.collection.drop_index(name), timeout
        )
        logger.info(
            "Dropped index [collection=%s, index=%s]", self.collection_name, name
        )

    async def drop_all_indexes(self, *, timeout: float | None = None) -> None:
        """Drop every index except the mandatory one on ``_id``."""
        await self._execute(
            "drop_indexes", lambda: self.collection.drop_indexes(), timeout
        )
        logger.info("Dropped all indexes [collection=%s]", self.collection_name)

    async def get_indexes(
        self, *, timeout: float | None = None
    ) -> dict[str, dict[str, Any]]:
        """Return index information keyed by index name."""
        indexes = await self._execute(
            "index_information", lambda: self.collection.index_information(), timeout
        )
        return dict(indexes)

    async def index_exists(self, name: str, *, timeout: float | None = None) -> bool:
        """Return whether an index with the given name exists."""
        return name in await self.get_indexes(timeout=timeout)
