from __future__ import annotations

import importlib
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_cors import CORS
from flask_socketio import SocketIO

from config import get_settings_module

from .database.bootstrap import apply_schema, ensure_admin_user, list_tables

from .container import Container, build_container
from .admin.controller import register as register_admin
from .attendance.controller import register as register_attendance
from .classes.controller import register as register_classes
from .realtime.socketio_notifier import SocketIODashboardNotifier, register as register_realtime
from .students.controller import register as register_students
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    for noisy in ("werkzeug", "engineio", "socketio"):
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    db_config = getattr(settings, "DB_CONFIG")

    if container is None:
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)) and getattr(settings, "ADMIN_EMAIL", ""):
            ensure_admin_user(
                db_config,
                name=getattr(settings, "ADMIN_NAME", "Administrator"),
                email=settings.ADMIN_EMAIL,
                password=settings.ADMIN_PASSWORD,
            )
        container = build_container(settings)

    origins = list(getattr(settings, "CORS_ORIGINS", ["*"]))
    CORS(app, resources={r"/api/*": {"origins": origins}, r"/uploads/*": {"origins": "*"}})
    socketio = SocketIO(app, cors_allowed_origins=origins)

    dashboard = SocketIODashboardNotifier(socketio, container.stats)
    container.notifier.attach(dashboard)
    register_realtime(socketio, dashboard)

    @app.route("/", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"success": True, "message": "Class attendance API is running"})

    register_users(app, container)
    register_classes(app, container)
    register_students(app, container)
    register_attendance(app, container)
    register_admin(app, container)

    app.extensions["container"] = container
    return app


def run() -> None:
    app = create_app()
    socketio: SocketIO = app.extensions["socketio"]
    socketio.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "5000")),
        debug=app.config["DEBUG"],
        allow_unsafe_werkzeug=bool(app.config["DEBUG"]),
    )
