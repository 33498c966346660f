import logging
import os
import time

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import DATABASE_URL

logger = logging.getLogger(__name__)

# Server databases only; SQLite keeps SQLAlchemy's default pool
POOL_OPTIONS = {
    "pool_pre_ping": True,
    "pool_size": int(os.getenv("DB_POOL_SIZE", "20")),
    "max_overflow": int(os.getenv("DB_MAX_OVERFLOW", "30")),
    "pool_timeout": int(os.getenv("DB_POOL_TIMEOUT", "30")),
    "pool_recycle": int(os.getenv("DB_POOL_RECYCLE", "300")),
}
LOG_SLOW_QUERIES = os.getenv("DB_LOG_SLOW_QUERIES", "true").lower() == "true"
SLOW_QUERY_SECONDS = float(os.getenv("DB_SLOW_QUERY_THRESHOLD", "1.0"))


def build_engine(url: str, **overrides):
    """Engine for ``url``; keyword overrides win over the pool defaults"""
    if url.startswith("sqlite"):
        # Requests are served from a thread pool, connections move between threads
        options = {"connect_args": {"check_same_thread": False}}
    else:
        options = dict(POOL_OPTIONS)
    options.update(overrides)
    return create_engine(url, echo=False, **options)


def install_slow_query_logging(target_engine, threshold: float = SLOW_QUERY_SECONDS) -> None:
    @event.listens_for(target_engine, "before_cursor_execute")
    def start_timer(conn, _cursor, _statement, _parameters, _context, _executemany):
        conn.info.setdefault("query_started", []).append(time.perf_counter())

    @event.listens_for(target_engine, "after_cursor_execute")
    def log_if_slow(conn, _cursor, statement, _parameters, _context, _executemany):
        elapsed = time.perf_counter() - conn.info["query_started"].pop()
        if elapsed > threshold:
            logger.warning(f"🐌 Slow query ({elapsed:.2f}s): {statement[:200]}...")


engine = build_engine(DATABASE_URL)
logger.info(f"✅ Database engine ready ({engine.dialect.name})")

if LOG_SLOW_QUERIES:
    install_slow_query_logging(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """One session per request, always closed"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
