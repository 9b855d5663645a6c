# backend/trusted_refs/db.py
import os
from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, DeclarativeBase

# --- SQLAlchemy Base ---------------------------------------------------------
class Base(DeclarativeBase):
    pass

# --- Engine / Session --------------------------------------------------------
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    "postgresql+psycopg://trusted_refs:devpass@db:5432/trusted_refs",
)


def make_engine(url: str) -> Engine:
    # SQLite connections are shared with the threadpool FastAPI runs sync routes in
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    # pool_pre_ping avoids “stale” connections on container restarts
    return create_engine(url, pool_pre_ping=True, future=True, connect_args=connect_args)


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(
        bind=bind,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
        future=True,
    )


engine = make_engine(DATABASE_URL)
SessionLocal = make_session_factory(engine)

# FastAPI dependency
def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# Used by the /health route
def healthcheck(db: Session) -> dict:
    db.execute(text("SELECT 1"))
    return {"status": "ok"}
