from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Any

class Settings(BaseSettings):
    # App
    APP_NAME: str = "example-servers/mongodb"
    APP_VERSION: str = "0.1.0"
    PROTOCOL_VERSION: str = "2024-11-05"

    # MongoDB
    MONGODB_URL: str | None = None
    MONGODB_DEFAULT_DB: str = "test"
    MONGODB_CONNECT_TIMEOUT_MS: int = 50000
    MONGODB_SOCKET_TIMEOUT_MS: int = 30000
    MONGODB_SERVER_SELECTION_TIMEOUT_MS: int = 50000
    PRECONNECT: bool = True

    # Resources
    RESOURCE_SCHEME: str = "mongodb"
    READ_RESOURCE_LIMIT: int = 10

    # Transport
    MAX_MESSAGE_BYTES: int = 16 * 1024 * 1024

    # Sideband log
    LOG_DIR: str = "logs"
    LOG_FILE: str = "server.log"
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    def client_options(self) -> dict[str, Any]:
        """Keyword options handed unmodified to the Motor client."""
        return {
            "connectTimeoutMS": self.MONGODB_CONNECT_TIMEOUT_MS,
            "socketTimeoutMS": self.MONGODB_SOCKET_TIMEOUT_MS,
            "serverSelectionTimeoutMS": self.MONGODB_SERVER_SELECTION_TIMEOUT_MS,
            # SRV lookups and topology discovery stay on
            "directConnection": False,
            "retryWrites": False,
            "retryReads": False,
        }

@lru_cache()
def get_settings() -> Settings:
    return Settings()
