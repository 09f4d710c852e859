"""The single configured statement and the row sets its executions produce."""
from __future__ import annotations

import re
from collections.abc import Iterator, Sequence
from typing import Any

from sqlalchemy import Connection, CursorResult, Engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from csvquery.domain.exceptions import (
    ConfigurationError,
    ExecutionError,
    ParameterCountError,
    ResultReadError,
)

# Arity mismatch wording: Python's sqlite3 driver first, then the generic form.
_ARITY_PATTERNS = (
    re.compile(r"current statement uses (\d+), and there are (\d+) supplied"),
    re.compile(r"expected (\d+) arguments?, got (\d+)"),
)


def engine_message(exc: SQLAlchemyError) -> str:
    """Return the driver's own error text, without SQLAlchemy's SQL/background suffix."""
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    if exc.args:
        return str(exc.args[0])
    return str(exc)


def parse_arity_error(message: str) -> tuple[int, int] | None:
    """Extract ``(expected, got)`` from an engine arity error, or None."""
    for pattern in _ARITY_PATTERNS:
        match = pattern.search(message)
        if match is None:
            continue
        try:
            return int(match.group(1)), int(match.group(2))
        except ValueError:
            return None
    return None


def _execution_error(params: Sequence[str], exc: SQLAlchemyError) -> ExecutionError:
    message = f"Error executing query for params {list(params)}: {engine_message(exc)}"
    arity = parse_arity_error(engine_message(exc))
    if arity is None:
        return ExecutionError(message)
    expected, got = arity
    return ParameterCountError(
        f"{message} (expected {expected} arguments, got {got})", expected=expected, got=got,
    )


class RowSet:
    """Open result of one execution. Holds a pooled connection until closed."""

    def __init__(self, params: Sequence[str], conn: Connection, result: CursorResult) -> None:
        self.params = list(params)
        self._conn = conn
        self._result = result
        self.headers: list[str] = list(result.keys()) if result.returns_rows else []

    def batches(self, size: int) -> Iterator[list[list[Any]]]:
        """Yield rows in batches of at most ``size``, each row in column order."""
        if not self._result.returns_rows:
            return
        while True:
            try:
                rows = self._result.fetchmany(size)
            except SQLAlchemyError as exc:
                raise ResultReadError(
                    f"Error reading query results for params {self.params}: {engine_message(exc)}"
                ) from exc
            if not rows:
                return
            yield [list(row) for row in rows]

    def finish(self) -> None:
        """Commit the execution's work once every row has been read."""
        try:
            self._conn.commit()
        except SQLAlchemyError as exc:
            raise ExecutionError(f"Error executing query: {engine_message(exc)}") from exc

    def close(self) -> None:
        """Release the result and return the connection; unfinished work is rolled back."""
        try:
            self._result.close()
        finally:
            self._conn.close()


class PreparedQuery:
    """One SQL statement bound to an engine for the process lifetime.

    sqlite3 caches compiled statements per connection keyed by SQL text, so
    repeated executions reuse the statement compiled on first use.
    """

    def __init__(self, engine: Engine, sql: str) -> None:
        self._engine = engine
        self._sql = sql

    @property
    def sql(self) -> str:
        return self._sql

    def execute(self, params: Sequence[str]) -> RowSet:
        """Bind ``params`` positionally and execute. The caller must close the RowSet."""
        try:
            conn = self._engine.connect()
        except SQLAlchemyError as exc:
            raise ExecutionError(
                f"Error executing query for params {list(params)}: {engine_message(exc)}"
            ) from exc
        try:
            result = conn.exec_driver_sql(self._sql, tuple(params))
        except SQLAlchemyError as exc:
            conn.close()
            raise _execution_error(params, exc) from exc
        except BaseException:
            conn.close()
            raise
        return RowSet(params, conn, result)

    def prepare(self) -> None:
        """Check that the SQL compiles into exactly one statement.

        The check is a zero-argument execution that is rolled back. An arity
        mismatch means compilation succeeded.
        """
        try:
            row_set = self.execute([])
        except ParameterCountError:
            return
        except ExecutionError as exc:
            raise ConfigurationError(f"Cannot prepare query {self._sql!r}: {exc.message}") from exc
        row_set.close()
