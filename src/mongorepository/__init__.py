"""Generic typed repositories over MongoDB collections."""

from mongorepository.db.repositories import (
    BlockingRepository,
    MongoRepository,
    Query,
    RepositoryManager,
)
from mongorepository.exceptions import (
    ConfigurationError,
    EntityNotFoundError,
    InvalidIdentifierError,
    MongoRepositoryError,
    MultipleEntitiesFoundError,
    SingleResultError,
)
from mongorepository.keys import KeyStrategy, ObjectIdKey, OpaqueKey
from mongorepository.models import Entity, KeyedEntity, MongoUrl, collection_name_for

__all__ = [
    "BlockingRepository",
    "ConfigurationError",
    "Entity",
    "EntityNotFoundError",
    "InvalidIdentifierError",
    "KeyStrategy",
    "KeyedEntity",
    "MongoRepository",
    "MongoRepositoryError",
    "MongoUrl",
    "MultipleEntitiesFoundError",
    "ObjectIdKey",
    "OpaqueKey",
    "Query",
    "RepositoryManager",
    "SingleResultError",
    "collection_name_for",
]
