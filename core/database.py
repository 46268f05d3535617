# core/database.py
from pathlib import Path

from sqlalchemy.engine import Engine, make_url
from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy.exc import SQLAlchemyError

from core.config import Config
from core.logger import get_logger

log = get_logger("DB")


def create_db_engine(url: str) -> Engine:
    """Create an engine, making sure a SQLite file has a directory to live in."""
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database not in (None, "", ":memory:"):
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, echo=False)


try:
    engine = create_db_engine(Config.DB_URL)
except (SQLAlchemyError, OSError) as exc:
    log.error(f"Failed to initialize database engine: {exc}")
    engine = None


def _resolve(target: Engine | None) -> Engine:
    target = target if target is not None else engine
    if target is None:
        raise RuntimeError("Database engine is not available; session cannot be created.")
    return target


def init_db(target: Engine | None = None) -> None:
    from models import Post  # noqa: F401 - registers the table on SQLModel.metadata

    target = _resolve(target)
    try:
        SQLModel.metadata.create_all(target)
        log.info(f"Database initialized at {target.url}")
    except SQLAlchemyError as exc:
        log.error(f"Failed to create database tables: {exc}")
        raise


def get_session(target: Engine | None = None) -> Session:
    target = _resolve(target)
    try:
        return Session(target, expire_on_commit=False)
    except SQLAlchemyError as exc:
        log.error(f"Failed to open database session: {exc}")
        raise


if __name__ == "__main__":
    init_db()
