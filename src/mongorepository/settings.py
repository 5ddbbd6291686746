from pydantic_settings import BaseSettings, SettingsConfigDict


class MongoServerSettings(BaseSettings):
    """Default connection target used when a repository gets no explicit one."""

    model_config = SettingsConfigDict(
        env_prefix="MONGO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # MONGO_SERVER_SETTINGS: connection string, e.g. mongodb://localhost/app
    server_settings: str | None = None

    # Used when the connection string does not name a database
    database: str | None = None


class DatabaseSettings(BaseSettings):
    """MongoDB driver and operation settings."""

    model_config = SettingsConfigDict(
        env_prefix="MONGODB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Connection timeouts (milliseconds)
    server_selection_timeout_ms: int = 5000
    connect_timeout_ms: int = 10000
    socket_timeout_ms: int = 30000

    # Per-operation timeout (seconds), None disables it
    operation_timeout: float | None = None

    # Query settings
    cursor_batch_size: int = 1000


class Settings:
    """
    Top-level library configuration.

    Environment variables and ``.env`` are read when an instance is created,
    so each repository built without explicit settings sees the current
    environment.
    """

    def __init__(self) -> None:
        self.mongo = MongoServerSettings()
        self.database = DatabaseSettings()
