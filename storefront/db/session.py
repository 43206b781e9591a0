import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker

from storefront.core.config import settings

logger = logging.getLogger(__name__)


def engine_options(database_url: str) -> dict:
    """
    create_engine kwargs per backend. SQLite (local runs, seed scripts) is
    shared with FastAPI's threadpool; PostgreSQL connections are pinged
    before checkout.
    """
    if make_url(database_url).get_backend_name() == "sqlite":
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL))

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


def get_db():
    """Request-scoped session: commit when the handler returns, roll back when it raises."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception as exc:
        db.rollback()
        logger.debug("Rolled back request transaction: %r", exc)
        raise
    finally:
        db.close()
