from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.class_attendance.class_attendance.database.bootstrap import apply_schema, ensure_admin_user, list_tables

logger = logging.getLogger("init_db")


def main() -> None:
    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    tables = list_tables(db_config)
    logger.info(
        "applied schema.sql -> %s@%s:%s/%s (tables=%d)",
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
        len(tables),
    )

    if "--with-admin" in sys.argv[1:]:
        if not getattr(settings, "ADMIN_EMAIL", "") or not getattr(settings, "ADMIN_PASSWORD", ""):
            raise SystemExit("ADMIN_EMAIL and ADMIN_PASSWORD must be set to create the admin account")
        ensure_admin_user(
            db_config,
            name=getattr(settings, "ADMIN_NAME", "Administrator"),
            email=settings.ADMIN_EMAIL,
            password=settings.ADMIN_PASSWORD,
        )


if __name__ == "__main__":
    main()
