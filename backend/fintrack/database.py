# backend/fintrack/database.py
"""
Engine, request sessions and the database health report.

PostgreSQL runs on a QueuePool sized from settings (DB_POOL_SIZE,
DB_POOL_MAX_OVERFLOW, DB_POOL_RECYCLE, DB_POOL_PRE_PING). SQLite is only
accepted in the test environment and shares a single in-memory connection.

The health report covers more than connectivity: valuations read prices
straight from the assets table, so it also says how many assets carry a
price and when prices were last written.
"""

import logging
from collections.abc import Iterator
from typing import Any

from sqlalchemy import create_engine, func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from fintrack.config import settings
from fintrack.models import Asset

logger = logging.getLogger(__name__)

# Seconds a request waits for a pooled connection before failing
POOL_TIMEOUT_SECONDS = 30


def _engine_options() -> dict[str, Any]:
    if settings.is_sqlite:
        logger.info("Using in-memory SQLite (test environment)")
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }

    logger.info(
        f"Using PostgreSQL pool: size={settings.db_pool_size} "
        f"overflow={settings.db_pool_max_overflow} recycle={settings.db_pool_recycle}s "
        f"pre_ping={settings.db_pool_pre_ping}"
    )
    return {
        "poolclass": QueuePool,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_pool_max_overflow,
        "pool_recycle": settings.db_pool_recycle,
        "pool_pre_ping": settings.db_pool_pre_ping,
        "pool_timeout": POOL_TIMEOUT_SECONDS,
    }


engine = create_engine(settings.database_url, echo=settings.debug, **_engine_options())
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    """
    FastAPI dependency: one session per request.

    A request that fails mid-transaction is rolled back before the session
    goes back to the pool, releasing any row locks taken by calibration.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def check_database_health(db: Session) -> dict[str, Any]:
    """
    Connectivity and price data status.

    Returns:
        {"status": "healthy", "dialect", "pool", "assets": {"total",
        "priced", "last_price_update"}} or {"status": "unhealthy", "error"}
    """
    try:
        db.execute(text("SELECT 1"))
        total, priced, last_update = db.execute(
            select(
                func.count(Asset.id),
                func.count(Asset.current_price),
                func.max(Asset.updated_at),
            )
        ).one()
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return {"status": "unhealthy", "error": str(e)}

    bind = db.get_bind()
    return {
        "status": "healthy",
        "dialect": bind.dialect.name,
        "pool": bind.pool.status(),
        "assets": {
            "total": total,
            "priced": priced,
            "last_price_update": last_update.isoformat() if last_update else None,
        },
    }
