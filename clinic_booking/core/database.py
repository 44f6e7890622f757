from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from typing import Generator
from .config import settings

def _connect_args(database_url: str) -> dict:
    """Driver options that put a timeout on every statement."""
    backend = make_url(database_url).get_backend_name()
    if backend == "postgresql":
        return {"options": f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}"}
    if backend == "sqlite":
        return {
            "check_same_thread": False,
            "timeout": settings.DB_STATEMENT_TIMEOUT_MS / 1000,
        }
    return {}

def build_engine(database_url: str):
    """Create the pooled engine shared by every request of the process."""
    return create_engine(
        database_url,
        connect_args=_connect_args(database_url),
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,  # Recycle connections after 30 minutes
        pool_pre_ping=True,
    )

engine = build_engine(settings.get_database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Database dependency
def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# Database initialization
def init_db(bind=None):
    """Initialize database tables."""
    from ..models import appointment, doctor, user  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
