"""MongoDB connection resolution for repositories using Motor (async driver)."""

from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo.errors import ConfigurationError as DriverConfigurationError

from mongorepository.exceptions import ConfigurationError
from mongorepository.settings import Settings
from mongorepository.utils.logger import get_logger

logger = get_logger(__name__)


def default_connection_string(settings: Settings) -> str:
    """
    Return the process-wide default connection string.

    Raises:
        ConfigurationError: If MONGO_SERVER_SETTINGS is not configured
    """
    connection_string = settings.mongo.server_settings
    if not connection_string:
        raise ConfigurationError(
            "No connection string given and MONGO_SERVER_SETTINGS is not set"
        )
    return connection_string


def create_client(connection_string: str, settings: Settings) -> AsyncIOMotorClient:
    """
    Create an async Motor client with the configured timeouts.

    The client connects lazily; a malformed connection string is rejected
    here by the driver (InvalidURI / ConfigurationError).
    """
    return AsyncIOMotorClient(
        connection_string,
        serverSelectionTimeoutMS=settings.database.server_selection_timeout_ms,
        connectTimeoutMS=settings.database.connect_timeout_ms,
        socketTimeoutMS=settings.database.socket_timeout_ms,
    )


def get_collection(
    connection_string: str, collection_name: str, settings: Settings
) -> tuple[AsyncIOMotorClient, AsyncIOMotorCollection]:
    """
    Resolve a collection handle from a connection string.

    The database is the one named in the connection string, falling back
    to MONGO_DATABASE.

    Args:
        connection_string: MongoDB connection string
        collection_name: Name of the collection to bind
        settings: Library settings

    Returns:
        The owning client and the collection handle

    Raises:
        ConfigurationError: If no database name can be determined
    """
    client = create_client(connection_string, settings)

    try:
        database: Any = client.get_default_database(default=settings.mongo.database)
    except DriverConfigurationError as e:
        client.close()
        logger.error("❌ No database configured for %s: %s", collection_name, e)
        raise ConfigurationError(
            "Connection string does not name a database and MONGO_DATABASE is not set"
        ) from e

    logger.debug(
        "Resolved collection [database=%s, collection=%s]",
        database.name,
        collection_name,
    )
    return client, database[collection_name]
