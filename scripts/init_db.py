# scripts/init_db.py
import argparse
import logging
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.config import get_config_manager
from core.database import DatabaseFactory
from core.database.schema import TABLE_DEFINITIONS, INDEX_DEFINITIONS
from core.users.service import UserService

logger = logging.getLogger(f"vipgate.{__name__}")


def initialize_database(config_path=None, create_admin: bool = True) -> bool:
    """Creates all tables and indexes and, optionally, the bootstrap admin."""
    config = get_config_manager(config_path)
    db_config = config.get_config("database", {"type": "sqlite", "path": "data/db/vipgate.db"})
    db = DatabaseFactory.create_database(db_config)

    logger.info(f"Initializing database at: {db_config.get('path')}")
    if not db.connect():
        logger.error("Database initialization failed: could not connect.")
        return False
    try:
        logger.info(f"Tables ensured: {', '.join(TABLE_DEFINITIONS)}")
        logger.info(f"Indexes ensured: {len(INDEX_DEFINITIONS)}")
        if create_admin:
            admin = UserService(db, config).ensure_bootstrap_admin(
                config.get_config("bootstrap.admin_password", "password")
            )
            if admin is None:
                logger.info("Users already exist; bootstrap admin not created.")
    finally:
        db.disconnect()

    logger.info("Database initialization completed successfully.")
    return True


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")
    parser = argparse.ArgumentParser(description="Create the vipgate database schema.")
    parser.add_argument("--config", default=None, help="Path to the YAML configuration file")
    parser.add_argument("--no-admin", action="store_true", help="Do not create the bootstrap admin")
    args = parser.parse_args()
    sys.exit(0 if initialize_database(args.config, create_admin=not args.no_admin) else 1)
