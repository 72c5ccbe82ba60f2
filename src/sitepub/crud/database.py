from __future__ import annotations
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

# Register table metadata
import sitepub.crud.tables  # noqa: F401


def make_engine(db_url: str):
    """Engine for db_url; in-memory SQLite shares one connection across sessions."""
    if db_url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            db_url, echo=False,
            connect_args={"check_same_thread": False}, poolclass=StaticPool,
        )
    if db_url.startswith("sqlite"):
        return create_engine(db_url, echo=False, connect_args={"check_same_thread": False})
    return create_engine(db_url, echo=False)


def init_db(engine, reset: bool = False) -> None:
    if reset:
        SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
