"""FastAPI dependencies."""
from __future__ import annotations
from fastapi import Request
from csvquery.services.query_service import QueryService


def get_query_service(request: Request) -> QueryService:
    """Return the service built by the app lifespan; there is one per process."""
    return request.app.state.query_service
