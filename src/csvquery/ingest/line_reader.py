"""Incremental CSV parsing of a streamed request body."""
from __future__ import annotations

import codecs
import csv
from collections import deque
from collections.abc import AsyncIterable, AsyncIterator, Iterator

from csvquery.domain.exceptions import BodyReadError


class _LineFeed:
    """Iterator over buffered lines that records whether csv asked for more than it had."""

    def __init__(self, lines: deque[str]) -> None:
        self._lines = lines
        self.consumed = 0
        self.starved = False

    def __iter__(self) -> Iterator[str]:
        return self

    def __next__(self) -> str:
        if self.consumed >= len(self._lines):
            self.starved = True
            raise StopIteration
        line = self._lines[self.consumed]
        self.consumed += 1
        return line


class LineReader:
    """Async iterator of CSV records over body chunks.

    Each record is a list of strings; widths may differ between records. A
    final line without a line break is still a record. An empty line is a
    record with no fields. Read, decode and CSV syntax failures raise
    BodyReadError.
    """

    def __init__(self, chunks: AsyncIterable[bytes], encoding: str = "utf-8") -> None:
        self._chunks = chunks.__aiter__()
        self._decoder = codecs.getincrementaldecoder(encoding)()
        self._partial = ""
        self._lines: deque[str] = deque()
        self._eof = False

    def __aiter__(self) -> AsyncIterator[list[str]]:
        return self

    async def __anext__(self) -> list[str]:
        while True:
            record = self._next_record()
            if record is not None:
                return record
            if self._eof:
                raise StopAsyncIteration
            await self._fill()

    def _next_record(self) -> list[str] | None:
        """Parse one record from complete buffered lines, or None if more input is needed."""
        if not self._lines:
            return None
        feed = _LineFeed(self._lines)
        try:
            record = next(csv.reader(feed, strict=True))
        except StopIteration:
            record = None
        except csv.Error as exc:
            # A quoted field still open at the end of the buffer may close in a later chunk.
            if feed.starved and not self._eof:
                return None
            raise BodyReadError(f"Error reading request body: {exc}") from exc

        if feed.starved and not self._eof:
            return None
        for _ in range(feed.consumed):
            self._lines.popleft()
        return record

    async def _fill(self) -> None:
        try:
            chunk = await self._chunks.__anext__()
        except StopAsyncIteration:
            chunk = None
        except Exception as exc:
            raise BodyReadError(f"Error reading request body: {exc}") from exc

        try:
            if chunk is None:
                text = self._decoder.decode(b"", final=True)
                self._eof = True
            else:
                text = self._decoder.decode(chunk)
        except UnicodeDecodeError as exc:
            raise BodyReadError(f"Error reading request body: {exc}") from exc

        self._split(text)

    def _split(self, text: str) -> None:
        self._partial += text
        *complete, self._partial = self._partial.split("\n")
        self._lines.extend(line + "\n" for line in complete)
        if self._eof and self._partial:
            self._lines.append(self._partial)
            self._partial = ""
