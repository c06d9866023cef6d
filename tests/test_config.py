"""Tests for application settings."""

from mongo_mcp.config import Settings


def test_defaults():
    settings = Settings()

    assert settings.RESOURCE_SCHEME == "mongodb"
    assert settings.READ_RESOURCE_LIMIT == 10
    assert settings.LOG_DIR == "logs"
    assert settings.LOG_FILE == "server.log"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("MONGODB_URL", "mongodb://env-host:27017/app")
    monkeypatch.setenv("MONGODB_CONNECT_TIMEOUT_MS", "1500")

    settings = Settings()

    assert settings.MONGODB_URL == "mongodb://env-host:27017/app"
    assert settings.client_options()["connectTimeoutMS"] == 1500


def test_client_options_table():
    options = Settings().client_options()

    assert options == {
        "connectTimeoutMS": 50000,
        "socketTimeoutMS": 30000,
        "serverSelectionTimeoutMS": 50000,
        "directConnection": False,
        "retryWrites": False,
        "retryReads": False,
    }


def test_message_limit_default():
    assert Settings().MAX_MESSAGE_BYTES == 16 * 1024 * 1024
