"""
Database connection and session management.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from kyc_core.config import settings


def build_engine(database_url: str, echo: bool = False):
    """Create an engine; SQLite connections are shared across request threads."""
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(
        database_url,
        pool_pre_ping=True,  # Verify connections before using
        echo=echo,
        connect_args=connect_args,
    )


# Create SQLAlchemy engine
engine = build_engine(settings.database_url, echo=settings.log_level == "DEBUG")

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for ORM models
Base = declarative_base()


def get_db():
    """
    Dependency for FastAPI routes to get database session.

    Usage:
        @app.get("/items")
        def read_items(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None) -> None:
    """Create all tables (development only - use Alembic in production)."""
    import kyc_core.models  # noqa: F401  (registers models with Base.metadata)

    Base.metadata.create_all(bind=bind or engine)
