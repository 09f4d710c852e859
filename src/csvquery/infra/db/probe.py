"""Parameter-count probing: learn a statement's arity from a zero-argument execution."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from csvquery.domain.exceptions import ExecutionError, ParameterCountError, ResultReadError
from csvquery.infra.db.statement import PreparedQuery

logger = logging.getLogger(__name__)

_DRAIN_BATCH = 500


@dataclass(frozen=True, slots=True)
class ParameterCount:
    """Expected positional-parameter count.

    ``exact`` is False when the value was guessed from the query text rather
    than reported by the engine.
    """

    count: int
    exact: bool = True


class ParameterProbe(ABC):
    """Best-effort arity discovery for one prepared statement."""

    @abstractmethod
    def probe(self) -> ParameterCount:
        """Return the expected parameter count. Must never raise."""


class SqliteParameterProbe(ParameterProbe):
    """Probe through the sqlite3 driver's binding-count error.

    The zero-argument execution is real but rolled back; any rows it yields
    are drained and discarded.
    """

    def __init__(self, statement: PreparedQuery) -> None:
        self._statement = statement

    def probe(self) -> ParameterCount:
        try:
            row_set = self._statement.execute([])
        except ParameterCountError as exc:
            return ParameterCount(exc.expected)
        except ExecutionError as exc:
            return self._guess(exc.message)

        try:
            for _ in row_set.batches(_DRAIN_BATCH):
                pass
        except ResultReadError as exc:
            logger.warning("Probe execution failed while draining rows: %s", exc.message)
        finally:
            row_set.close()
        return ParameterCount(0)

    def _guess(self, message: str) -> ParameterCount:
        count = self._statement.sql.count("?")
        logger.warning(
            "Could not read parameter count from engine error (%s); "
            "guessing %d from placeholders",
            message,
            count,
        )
        return ParameterCount(count, exact=False)
