"""SQLAlchemy engine over an existing SQLite file with a bounded connection pool."""
from __future__ import annotations
import sqlite3
from pathlib import Path
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.pool import QueuePool


def create_query_engine(
    db_path: str | Path,
    *,
    pool_size: int = 1,
    pool_timeout: float | None = None,
    busy_timeout_ms: int = 5000,
) -> Engine:
    """Open ``db_path`` read-write without creating it.

    At most ``pool_size`` connections are ever open; callers beyond that wait
    for one to be returned, indefinitely unless ``pool_timeout`` seconds is given.
    """
    uri = Path(db_path).resolve().as_uri() + "?mode=rw"

    def _connect() -> sqlite3.Connection:
        # Pooled connections are checked out from threadpool workers.
        return sqlite3.connect(uri, uri=True, check_same_thread=False)

    engine = create_engine(
        "sqlite+pysqlite://",
        creator=_connect,
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=0,
        pool_timeout=pool_timeout,
    )

    def _set_busy_timeout(dbapi_conn, _):
        cur = dbapi_conn.cursor()
        cur.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
        cur.close()

    event.listen(engine, "connect", _set_busy_timeout)
    return engine
