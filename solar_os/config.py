"""
Application configuration.
This module defines the configuration settings for the Solar OS store, including the database that holds the
durable state slot, the storage key of the snapshot, audit and logging settings. It uses environment variables
where deployments differ and defaults for local use.
"""

import os
from pathlib import Path

# Project root (one level above the solar_os package)
BASE_DIR = Path(__file__).resolve().parent.parent


class Config:
    """Base configuration shared by all environments."""

    # Database: SQLite file next to the project (holds state_slots + audit_logs)
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'solar_os.db'}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Key of the single snapshot slot (kept identical to the browser-era storage key)
    STATE_STORAGE_KEY = os.environ.get("SOLAR_OS_STORAGE_KEY", "solar_os_data")

    # Seed illustrative records when the slot is empty
    STATE_SEED_ON_EMPTY = True

    # Create tables at startup (no migration step needed for local installs)
    STATE_AUTO_CREATE_TABLES = True

    AUDIT_ENABLED = True

    LOG_LEVEL = os.environ.get("SOLAR_OS_LOG_LEVEL", "INFO")

    APP_NAME = "Solar OS"


class TestConfig(Config):
    """In-memory database, verbose logs."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    STATE_STORAGE_KEY = "solar_os_test"
    LOG_LEVEL = "DEBUG"
