from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker


def build_database_url(
    user: str,
    password: str,
    host: str,
    port: str,
    db_name: str,
    override: Optional[str] = None,
) -> str:
    """Build the SQLAlchemy URL, preferring an explicit override."""
    if override:
        return override
    return f"postgresql://{user}:{password}@{host}:{port}/{db_name}"


def create_db_engine(database_url: str) -> Engine:
    """Create an engine; SQLite URLs get thread-shareable connections."""
    if database_url.startswith("sqlite"):
        return create_engine(database_url, echo=False, connect_args={"check_same_thread": False})
    return create_engine(database_url, echo=False, pool_pre_ping=True)


def create_session_factory(engine: Engine) -> sessionmaker:
    """Get a session factory bound to the engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def session_scope(session_factory: sessionmaker) -> Iterator[Session]:
    """Yield a session and always close it."""
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
