from sqlmodel import create_engine, Session
from sqlmodel import SQLModel
from config import get_settings

DATABASE_URL = get_settings().database_url

# SQLite needs check_same_thread=False; Postgres does not
_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, echo=False, connect_args=_connect_args)


def init_db():
    # table classes register themselves on SQLModel.metadata when imported
    import models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session():
    return Session(engine)
