from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .attendance.controller import register as register_attendance
from .config import get_settings_module
from .container import Container, build_container, build_repository
from .core.enums import StoreBackend
from .database.bootstrap import apply_schema, list_tables
from .logging_setup import configure_logging
from .reports.controller import register as register_reports

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    if container is None:
        backend = str(getattr(settings, "STORE_BACKEND", StoreBackend.MEMORY.value)).lower()
        db_config = getattr(settings, "DB_CONFIG")
        logger.info("settings=%s store=%s", settings_module, backend)

        if backend == StoreBackend.MYSQL.value and bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(
            attendance_repo=build_repository(backend=backend, db_config=db_config),
            history_limit=int(getattr(settings, "HISTORY_LIMIT", 50)),
        )

    app.extensions["library_attendance"] = container

    register_attendance(app, container)
    register_reports(app, container)

    return app


def run() -> None:
    app = create_app()
    app.run(debug=app.config["DEBUG"])
