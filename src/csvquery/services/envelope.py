"""Incremental JSON encoding of the response envelope.

The envelope is a JSON array with one ``{"in", "headers", "out"}`` object per
input line. It is produced as a sequence of text fragments so it can be
written while results are still being computed.
"""
from __future__ import annotations

import base64
import json
from collections.abc import Sequence
from typing import Any

from csvquery.domain.exceptions import EncodingError


def _encode_value(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _dumps(value: Any) -> str:
    return json.dumps(
        value,
        default=_encode_value,
        ensure_ascii=False,
        allow_nan=False,
        separators=(",", ":"),
    )


class EnvelopeEncoder:
    """Emit envelope fragments in order; tracks separators between results and rows."""

    def __init__(self) -> None:
        self._results = 0
        self._rows = 0

    def open(self) -> str:
        return "["

    def begin_result(self, record: Sequence[str], headers: Sequence[str]) -> str:
        separator = "," if self._results else ""
        self._results += 1
        self._rows = 0
        return f'{separator}{{"in":{_dumps(list(record))},"headers":{_dumps(list(headers))},"out":['

    def row(self, record: Sequence[str], values: Sequence[Any]) -> str:
        try:
            encoded = _dumps(list(values))
        except (TypeError, ValueError) as exc:
            raise EncodingError(
                f"Error encoding query results for params {list(record)}: {exc}"
            ) from exc
        separator = "," if self._rows else ""
        self._rows += 1
        return separator + encoded

    def end_result(self) -> str:
        return "]}"

    def close(self) -> str:
        return "]\n"

    @property
    def results(self) -> int:
        return self._results
