"""Shared test fixtures.

  db_path      : temp-file SQLite DB holding the ip_dns dataset.
  make_client  : factory for a TestClient around an app serving the given query.
"""
import contextlib
import pytest
from sqlalchemy import create_engine, text

from csvquery.config import Settings

IP_DNS = [
    ("192.30.253.112", "github.com"),
    ("192.30.253.113", "github.com"),
    ("1.1.1.1", "one.one.one.one"),
    ("8.8.8.8", "google-public-dns-a.google.com"),
]


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "ip_dns.db"
    engine = create_engine(f"sqlite:///{path}")
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE ip_dns (ip TEXT, dns TEXT)"))
        conn.execute(
            text("INSERT INTO ip_dns (ip, dns) VALUES (:ip, :dns)"),
            [{"ip": ip, "dns": dns} for ip, dns in IP_DNS],
        )
        conn.execute(text("CREATE TABLE typed (name TEXT, i INTEGER, r REAL, b BLOB, n TEXT)"))
        conn.execute(text("INSERT INTO typed VALUES ('row', 42, 1.5, x'00ff', NULL)"))
        conn.execute(text("CREATE TABLE payloads (name TEXT, payload TEXT)"))
        conn.execute(text("INSERT INTO payloads VALUES ('good', 'ok')"))
        # Invalid UTF-8 stored as TEXT: sqlite3 fails when the row is fetched.
        conn.execute(text("INSERT INTO payloads VALUES ('bad', CAST(x'ff' AS TEXT))"))
        conn.execute(text("CREATE TABLE hits (dns TEXT)"))
    engine.dispose()
    return path


@pytest.fixture
def make_settings(db_path):
    def _make(query: str, **overrides) -> Settings:
        return Settings(_env_file=None, DB_PATH=db_path, QUERY=query, PORT=8080, **overrides)
    return _make


@pytest.fixture
def make_client(make_settings):
    """Build and start (lifespan included) one app per call; all are shut down at teardown."""
    from fastapi.testclient import TestClient
    from csvquery.api.app import create_app

    with contextlib.ExitStack() as stack:
        def _make(query: str, **overrides) -> TestClient:
            app = create_app(make_settings(query, **overrides))
            return stack.enter_context(TestClient(app))
        yield _make
