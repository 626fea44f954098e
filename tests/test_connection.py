"""Tests for catalog engine setup and session handling."""

import pytest
from sqlalchemy import text

from acs_explorer.database.connection import create_catalog_engine, make_session_factory, session_scope


def test_sqlite_parent_directory_is_created(tmp_path):
    db_path = tmp_path / "nested" / "dir" / "vars.db"
    engine = create_catalog_engine(f"sqlite:///{db_path}")
    try:
        with engine.connect() as conn:
            assert conn.execute(text("SELECT 1")).scalar() == 1
    finally:
        engine.dispose()
    assert db_path.parent.is_dir()


def test_session_scope_rolls_back_ddl(engine):
    factory = make_session_factory(engine)

    with pytest.raises(RuntimeError):
        with session_scope(factory) as session:
            session.execute(text("CREATE TABLE scratch (id INTEGER)"))
            raise RuntimeError("abort")

    with session_scope(factory) as session:
        names = session.execute(text("SELECT name FROM sqlite_master WHERE type = 'table'")).scalars().all()
    assert "scratch" not in names


def test_session_scope_commits(engine):
    factory = make_session_factory(engine)

    with session_scope(factory) as session:
        session.execute(text("CREATE TABLE scratch (id INTEGER)"))
        session.execute(text("INSERT INTO scratch (id) VALUES (1)"))

    with session_scope(factory) as session:
        assert session.execute(text("SELECT count(*) FROM scratch")).scalar() == 1
