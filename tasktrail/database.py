"""Engine and session factory for the task, user and audit tables."""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from tasktrail.config import DATABASE_URL


def _connect_args(url: str) -> dict:
    # sqlite connections are shared across the threadpool FastAPI runs sync routes in
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(DATABASE_URL, connect_args=_connect_args(DATABASE_URL), pool_pre_ping=True)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

Base = declarative_base()


def get_db():
    """Request-scoped session, closed once the response is sent."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
