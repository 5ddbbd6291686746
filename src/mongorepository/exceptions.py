"""Domain-specific exceptions for mongorepository.

This module defines the errors raised by the repository layer itself.
Errors reported by the MongoDB driver (``pymongo.errors.*``) are never
wrapped: they reach the caller unchanged, so callers handle network
failures, duplicate keys and write conflicts with the driver's own types.
"""


class MongoRepositoryError(Exception):
    """Base exception for all mongorepository errors.

    All custom exceptions in the mongorepository package inherit from
    this base class.
    """


class ConfigurationError(MongoRepositoryError):
    """Invalid or missing connection configuration.

    Raised while constructing a repository, before any round-trip to the
    server has been attempted.

    Examples:
        - No connection string given and MONGO_SERVER_SETTINGS is unset
        - Connection string does not name a database and MONGO_DATABASE is unset
        - Both a connection string and a MongoUrl were given
    """


class InvalidIdentifierError(MongoRepositoryError, ValueError):
    """A key cannot be converted to the stored identifier representation.

    Raised while building an identifier filter, so the operation fails
    before anything is sent to the server.

    Examples:
        - "not-an-object-id" passed for an entity stored with ObjectId keys
        - None passed where an identifier is required
    """


class SingleResultError(MongoRepositoryError):
    """An operation expecting exactly one document did not get exactly one."""

    def __init__(self, collection_name: str, key: object, message: str) -> None:
        super().__init__(message)
        self.collection_name = collection_name
        self.key = key


class EntityNotFoundError(SingleResultError, LookupError):
    """No document matches the requested identifier."""

    def __init__(self, collection_name: str, key: object) -> None:
        super().__init__(
            collection_name,
            key,
            f"No document with _id={key!r} in collection {collection_name!r}",
        )


class MultipleEntitiesFoundError(SingleResultError):
    """More than one document matches the requested identifier.

    This is a data-integrity problem in the store: the repository never
    picks one of the matches arbitrarily.
    """

    def __init__(self, collection_name: str, key: object) -> None:
        super().__init__(
            collection_name,
            key,
            f"More than one document with _id={key!r} in collection "
            f"{collection_name!r}",
        )
