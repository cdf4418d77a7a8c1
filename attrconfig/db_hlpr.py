import logging
import os

from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from attrconfig.entities import Base

load_dotenv()

logger = logging.getLogger("attrconfig_backend")

# --- Configuration ---
DATABASE_URL        = os.environ.get("DATABASE_URL", "")
DB_HOST             = os.environ.get("DB_HOST", "localhost")
DB_PORT             = int(os.environ.get("DB_PORT", "5432"))
DB_NAME             = os.environ.get("DB_NAME", "")
DB_USER             = os.environ.get("DB_USER", "")
DB_PASSWORD         = os.environ.get("DB_PASSWORD", "")
SQLITE_PATH         = os.environ.get("SQLITE_PATH", "attribute_config.db")

IS_LOCAL_DB = (DB_HOST == "localhost")


def build_db_url() -> str:
    if DATABASE_URL:
        return DATABASE_URL
    if IS_LOCAL_DB:
        return f"sqlite:///{SQLITE_PATH}"
    if not DB_PASSWORD:
        raise RuntimeError("DB_HOST is remote but no DB_PASSWORD is configured")
    return f"postgresql+pg8000://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_db_engine(url: str | None = None):
    url = url or build_db_url()

    if url.startswith("sqlite"):
        logger.info(f"[DB] Using SQLite URL: {url}")
        engine = create_engine(url, connect_args={"check_same_thread": False})
        # membership rows rely on ON DELETE CASCADE
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    logger.info(f"[DB] Connecting to Postgres host {DB_HOST}:{DB_PORT}/{DB_NAME}")

    # pg8000 supports 'timeout' in seconds
    return create_engine(
        url,
        connect_args={"timeout": 10},  # fail in 10s instead of hanging forever
        pool_pre_ping=True,
    )


def create_session_factory(url: str | None = None) -> sessionmaker:
    engine = get_db_engine(url)
    Base.metadata.create_all(engine)
    return sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )
