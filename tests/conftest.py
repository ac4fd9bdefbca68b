import pytest
from sqlmodel import SQLModel, create_engine

import models  # noqa: F401  registers the tables on SQLModel.metadata


@pytest.fixture(autouse=True)
def fresh_db(tmp_path, monkeypatch):
    """Each test runs against a fresh SQLite file."""
    import db as db_mod
    new_engine = create_engine(
        f"sqlite:///{tmp_path}/test.db", echo=False, connect_args={"check_same_thread": False}
    )
    monkeypatch.setattr(db_mod, "engine", new_engine)
    SQLModel.metadata.create_all(new_engine)
    yield new_engine
    SQLModel.metadata.drop_all(new_engine)
    new_engine.dispose()
