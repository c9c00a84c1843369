import logging

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from nfc_wallet.models import Base

logger = logging.getLogger(__name__)

# =========================
# ENGINE CONFIGURATION
# =========================

def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    PostgreSQL in deployment; SQLite for local runs and tests.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every session sees an empty db
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, **kwargs)

    return create_engine(
        database_url,
        pool_pre_ping=True,  # Check connections before using them
        pool_size=5,
        max_overflow=10,
        pool_recycle=3600,
        echo=echo,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


# =========================
# DATABASE FUNCTIONS
# =========================

def get_db(request: Request):
    """
    FastAPI dependency to provide a DB session to routes.
    Usage:
        def my_route(db: Session = Depends(get_db)):
            ...
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def init_db(engine: Engine):
    """Create all tables based on registered models."""
    Base.metadata.create_all(bind=engine)
    logger.info("✅ Database tables created")


def drop_db(engine: Engine):
    Base.metadata.drop_all(bind=engine)
    logger.warning("⚠️  All tables dropped")


def check_connection(engine: Engine) -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("✅ Database connection successful")
        return True
    except Exception as e:
        logger.error(f"❌ Database connection failed: {e}")
        return False
