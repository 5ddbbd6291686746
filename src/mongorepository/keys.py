"""Identifier conversion between caller keys and stored ``_id`` values.

A repository is bound to exactly one ``KeyStrategy`` when it is built.
``ObjectIdKey`` is for entities whose ``_id`` is a native ``bson.ObjectId``
(exposed to Python code as its hex string); ``OpaqueKey`` stores the key
exactly as given.
"""

from typing import Any, Protocol

from bson import ObjectId
from bson.errors import InvalidId

from mongorepository.exceptions import InvalidIdentifierError


class KeyStrategy(Protocol):
    """Converts identifiers to and from their stored representation."""

    def to_store(self, key: Any) -> Any:
        """Return the ``_id`` value to store or filter on for ``key``."""
        ...

    def from_store(self, value: Any) -> Any:
        """Return the entity-side identifier for a stored ``_id`` value."""
        ...


class OpaqueKey:
    """Pass-through strategy for application-chosen keys (str, int, UUID...)."""

    def to_store(self, key: Any) -> Any:
        if key is None:
            raise InvalidIdentifierError("Identifier must not be None")
        return key

    def from_store(self, value: Any) -> Any:
        return value

    def __repr__(self) -> str:
        return "OpaqueKey()"


class ObjectIdKey:
    """Strategy for ``_id`` values stored as native ObjectIds."""

    def to_store(self, key: Any) -> ObjectId:
        if isinstance(key, ObjectId):
            return key
        if key is None:
            raise InvalidIdentifierError("Identifier must not be None")
        if not isinstance(key, str):
            raise InvalidIdentifierError(
                f"{key!r} is not an ObjectId hex string ({type(key).__name__})"
            )
        try:
            return ObjectId(key)
        except InvalidId as e:
            raise InvalidIdentifierError(
                f"{key!r} is not a valid ObjectId: {e}"
            ) from e

    def from_store(self, value: Any) -> Any:
        if isinstance(value, ObjectId):
            return str(value)
        return value

    def __repr__(self) -> str:
        return "ObjectIdKey()"
