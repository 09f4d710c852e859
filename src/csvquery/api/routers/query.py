"""Query endpoint: CSV body in, streamed JSON envelope out."""
from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse, Response, StreamingResponse

from csvquery.api.deps import get_query_service
from csvquery.domain.exceptions import PipelineError
from csvquery.ingest.line_reader import LineReader
from csvquery.logging import logger, new_request_id
from csvquery.services.query_service import QueryService

# The array opener plus either the first result's head or the closing bracket.
# Nothing is sent until these are ready, so a bad first line is still a clean 500.
_COMMIT_FRAGMENTS = 2


def build_router(path: str) -> APIRouter:
    router = APIRouter(tags=["query"])
    router.add_api_route(path, query, methods=["POST"])
    return router


async def query(
    request: Request, service: QueryService = Depends(get_query_service),
) -> Response:
    """Run the configured query once per CSV record of the body.

    Failures before the commit point return 500 with the diagnostic body.
    Later failures cannot change the status; the diagnostic is appended to
    the open stream and the JSON is left unterminated.
    """
    new_request_id()
    logger.info("Query request from %s", request.client.host if request.client else "-")

    fragments = service.fragments(LineReader(request.stream()))
    prelude: list[str] = []
    try:
        while len(prelude) < _COMMIT_FRAGMENTS:
            prelude.append(await fragments.__anext__())
    except PipelineError as exc:
        logger.error("Request failed before streaming: %s", exc.message)
        return PlainTextResponse(service.error_body(exc.message), status_code=500)

    return StreamingResponse(_committed(service, prelude, fragments), media_type="application/json")


async def _committed(
    service: QueryService, prelude: list[str], fragments: AsyncIterator[str],
) -> AsyncIterator[str]:
    for fragment in prelude:
        yield fragment
    try:
        async for fragment in fragments:
            yield fragment
    except PipelineError as exc:
        logger.error("Request aborted mid-stream: %s", exc.message)
        yield "\n" + service.error_body(exc.message)
    finally:
        await fragments.aclose()
