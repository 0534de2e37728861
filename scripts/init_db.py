from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv

from library_attendance.config import get_settings_module
from library_attendance.database.bootstrap import apply_schema, list_tables
from library_attendance.logging_setup import configure_logging

logger = logging.getLogger("library_attendance.scripts.init_db")


def main() -> None:
    load_dotenv(override=False)
    configure_logging("INFO")
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config)
    tables = list_tables(db_config)
    logger.info(
        "OK: Applied schema.sql -> %s@%s:%s/%s (tables=%d)",
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
        len(tables),
    )


if __name__ == "__main__":
    main()
