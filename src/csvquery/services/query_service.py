"""Per-request pipeline: CSV records in, envelope fragments out."""
from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator

import anyio.to_thread

from csvquery.infra.db.statement import PreparedQuery
from csvquery.services.envelope import EnvelopeEncoder

logger = logging.getLogger(__name__)


class QueryService:
    """Owns the prepared statement and help text for the lifetime of the app.

    Records are processed strictly in order, one execution at a time. Database
    calls run in worker threads so the event loop keeps serving other requests
    while this one waits on the connection pool.
    """

    def __init__(self, statement: PreparedQuery, help_text: str, *, fetch_size: int = 100) -> None:
        self.statement = statement
        self.help_text = help_text
        self._fetch_size = fetch_size

    def error_body(self, message: str) -> str:
        return f"{message}\n\n{self.help_text}"

    async def fragments(self, records: AsyncIterable[list[str]]) -> AsyncIterator[str]:
        """Yield the envelope for ``records`` fragment by fragment.

        Raises PipelineError subclasses from any stage; the envelope is left
        unterminated in that case.
        """
        encoder = EnvelopeEncoder()
        yield encoder.open()
        async for record in records:
            logger.debug("Executing query for params %s", record)
            row_set = await anyio.to_thread.run_sync(self.statement.execute, record)
            try:
                yield encoder.begin_result(record, row_set.headers)
                batches = row_set.batches(self._fetch_size)
                while True:
                    batch = await anyio.to_thread.run_sync(next, batches, None)
                    if batch is None:
                        break
                    for values in batch:
                        yield encoder.row(record, values)
                await anyio.to_thread.run_sync(row_set.finish)
                yield encoder.end_result()
            finally:
                row_set.close()
        logger.info("Envelope complete: %d line(s)", encoder.results)
        yield encoder.close()

