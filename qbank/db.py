"""Item store engine, session factory and the request-scoped session dependency."""

from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .config import get_settings


settings = get_settings()


class Base(DeclarativeBase):
    """Declarative base of the item tables."""

    pass


def _connect_args(url: str) -> dict:
    # TestClient serves requests from a worker thread
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(settings.database_url, connect_args=_connect_args(settings.database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    """Yield a session for one API request; ``ItemService`` commits its own writes."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
