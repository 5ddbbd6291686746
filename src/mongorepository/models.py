from typing import Any, ClassVar
from urllib.parse import quote_plus, urlencode

from pydantic import BaseModel, ConfigDict, SecretStr
from pymongo import uri_parser

from mongorepository.keys import KeyStrategy, ObjectIdKey, OpaqueKey

SRV_SCHEME = "mongodb+srv://"
STANDARD_SCHEME = "mongodb://"


class KeyedEntity(BaseModel):
    """
    Base class for entities identified by an application-chosen key.

    The key is stored unchanged as the document's ``_id``. Narrow the type in
    subclasses, e.g. ``id: str | None = None``. ``id is None`` means the
    entity has not been persisted yet.
    """

    model_config = ConfigDict(populate_by_name=True)

    # Identifier conversion used by repositories bound to this type
    key_strategy: ClassVar[KeyStrategy] = OpaqueKey()

    # Overrides the collection name derived from the class name
    collection_name: ClassVar[str | None] = None

    id: Any = None


class Entity(KeyedEntity):
    """
    Base class for entities whose ``_id`` is a native ObjectId.

    Python code sees the identifier as its 24-character hex string; it is
    converted to and from ``bson.ObjectId`` at the repository boundary.
    """

    key_strategy: ClassVar[KeyStrategy] = ObjectIdKey()

    id: str | None = None


_ENTITY_BASES: tuple[type, ...] = (KeyedEntity, Entity)


def collection_name_for(entity_type: type[KeyedEntity]) -> str:
    """
    Derive the collection name for an entity type.

    Priority:
    1. ``collection_name`` class attribute
    2. Name of the class directly below Entity/KeyedEntity in the hierarchy,
       so ``Manager(Employee)`` is stored alongside ``Employee``
    3. The class name itself
    """
    explicit = getattr(entity_type, "collection_name", None)
    if explicit:
        return str(explicit)

    for cls in entity_type.__mro__:
        if cls in _ENTITY_BASES:
            break
        if any(base in _ENTITY_BASES for base in cls.__bases__):
            return cls.__name__

    return entity_type.__name__


class MongoUrl(BaseModel):
    """
    Structured form of a MongoDB connection string.

    ``hosts`` are kept in connection-string form: ``host:port``, IPv6
    literals in brackets (``[::1]:27017``) and Unix socket paths
    percent-encoded (``%2Ftmp%2Fmongodb-27017.sock``).
    """

    model_config = ConfigDict(frozen=True)

    hosts: tuple[str, ...] = ("localhost:27017",)
    username: str | None = None
    password: SecretStr | None = None
    database: str | None = None
    options: dict[str, Any] = {}
    srv: bool = False

    @classmethod
    def parse(cls, connection_string: str) -> "MongoUrl":
        """
        Parse a connection string without contacting any server.

        SRV records are not resolved: a ``mongodb+srv://`` string keeps its
        single host name and is rendered back with the SRV scheme.

        Raises:
            pymongo.errors.InvalidURI: If the string is not a MongoDB URI
        """
        srv = connection_string.startswith(SRV_SCHEME)
        if srv:
            connection_string = STANDARD_SCHEME + connection_string[len(SRV_SCHEME) :]

        parsed = uri_parser.parse_uri(connection_string, validate=False)

        hosts = tuple(
            _host_string(host, None if srv else port)
            for host, port in parsed["nodelist"]
        )

        password = parsed.get("password")
        return cls(
            hosts=hosts,
            username=parsed.get("username"),
            password=SecretStr(password) if password is not None else None,
            database=parsed.get("database"),
            options=dict(parsed.get("options") or {}),
            srv=srv,
        )

    @property
    def connection_string(self) -> str:
        """Render the URL back to a connection string usable by the driver."""
        scheme = SRV_SCHEME if self.srv else STANDARD_SCHEME

        credentials = ""
        if self.username is not None:
            credentials = quote_plus(self.username)
            if self.password is not None:
                credentials += ":" + quote_plus(self.password.get_secret_value())
            credentials += "@"

        url = f"{scheme}{credentials}{','.join(self.hosts)}/{self.database or ''}"

        if self.options:
            query = urlencode(
                [(key, _option_value(value)) for key, value in self.options.items()],
                doseq=True,
            )
            url += f"?{query}"

        return url


def _host_string(host: str, port: int | None) -> str:
    if host.endswith(".sock"):
        return quote_plus(host)
    if ":" in host:
        host = f"[{host}]"
    return host if port is None else f"{host}:{port}"


def _option_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list | tuple):
        return [_option_value(item) for item in value]
    return value
