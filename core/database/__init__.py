# vipgate/core/database/__init__.py
from typing import Dict, Any
from .base import DatabaseService
from .sqlite import SQLiteDatabase


class DatabaseFactory:
    """
    Database factory to create different database instances based on configuration.
    """

    @staticmethod
    def create_database(config: Dict[str, Any]) -> DatabaseService:
        """
        Creates a database service instance based on the provided configuration.
        Args:
            config: Database configuration dictionary.
                    Expected keys: "type" ("sqlite" or "memory"),
                                   and other type-specific settings.
        Raises:
            ValueError: If the specified database type is not supported.
        """
        db_type = config.get("type", "sqlite").lower()

        if db_type == "sqlite":
            return SQLiteDatabase(config)
        elif db_type == "memory":
            return SQLiteDatabase({**config, "path": ":memory:"})
        else:
            raise ValueError(f"Unsupported database type: {db_type}")

__all__ = [
    "DatabaseService",
    "SQLiteDatabase",
    "DatabaseFactory",
]
