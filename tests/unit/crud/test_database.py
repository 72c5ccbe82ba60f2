"""Unit tests for crud/database.py"""

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from sitepub.crud.database import init_db, make_engine


SQLITE_MEM = "sqlite://"

EXPECTED_TABLES = {
    "sites", "sections", "layouts", "tags", "content_tags", "settings",
    "images", "content_images", "contributors", "contents", "profiles",
}


def test_make_engine_returns_engine():
    assert isinstance(make_engine(SQLITE_MEM), Engine)


def test_init_db_creates_tables():
    engine = make_engine(SQLITE_MEM)
    init_db(engine)
    assert EXPECTED_TABLES <= set(inspect(engine).get_table_names())


def test_init_db_reset_recreates(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(engine)
    init_db(engine, reset=True)
    assert EXPECTED_TABLES <= set(inspect(engine).get_table_names())
