# app/database.py
from fastapi import Request
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session

from app.core.config import Settings


def _with_sslmode(db_url: str) -> str:
    """
    Append sslmode=require to Postgres URLs if it is not already present.
    """
    if not db_url.startswith("postgres") or "sslmode=" in db_url:
        return db_url
    if "?" in db_url:
        return db_url + "&sslmode=require"
    return db_url + "?sslmode=require"


def build_engine(settings: Settings) -> Engine:
    """
    Build the SQLAlchemy engine for the configured database.

    - pool_pre_ping=True: validate connections before using them
    - pool_size / max_overflow come from settings so a hosted pooler
      with a client cap can be respected

    SQLite (local dev / tests) gets check_same_thread=False because
    FastAPI runs sync path operations on a threadpool.
    """
    db_url = settings.DATABASE_URL

    if db_url.startswith("sqlite"):
        return create_engine(
            db_url,
            echo=False,
            connect_args={"check_same_thread": False},
        )

    return create_engine(
        _with_sslmode(db_url),
        echo=False,  # set to True if you want to debug SQL queries
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
    )


def create_db_and_tables(engine: Engine) -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    SQLModel.metadata.create_all(engine)


def get_session(request: Request):
    """
    FastAPI dependency that yields a SQLModel Session bound to the
    engine owned by the running application (`app.state.engine`).

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    with Session(request.app.state.engine) as session:
        yield session
