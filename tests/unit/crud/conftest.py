"""Shared fixtures for crud unit tests"""

import pytest
from sqlmodel import Session, SQLModel

from sitepub.crud.database import init_db, make_engine
from sitepub.crud.sql_repo import SQLProfileService, SQLService


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = make_engine("sqlite://")
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture(name="sql_service")
def sql_service_fixture(session):
    return SQLService(session)


@pytest.fixture(name="sql_profile_service")
def sql_profile_service_fixture(session):
    return SQLProfileService(session)
