"""FastAPI application factory."""
from __future__ import annotations
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from csvquery import __version__
from csvquery.config import Settings, settings as default_settings
from csvquery.logging import logger


def create_app(settings: Settings | None = None) -> FastAPI:
    cfg = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        from csvquery.infra.db.engine import create_query_engine
        from csvquery.infra.db.probe import SqliteParameterProbe
        from csvquery.infra.db.statement import PreparedQuery
        from csvquery.services.help_service import render_help
        from csvquery.services.query_service import QueryService

        cfg.check()
        engine = create_query_engine(
            cfg.DB_PATH,
            pool_size=cfg.POOL_SIZE,
            pool_timeout=cfg.POOL_TIMEOUT,
            busy_timeout_ms=cfg.BUSY_TIMEOUT_MS,
        )
        try:
            statement = PreparedQuery(engine, cfg.QUERY)
            statement.prepare()
            params = SqliteParameterProbe(statement).probe()
            help_text = render_help(cfg.QUERY, params, port=cfg.PORT, path=cfg.QUERY_PATH)
            logger.info("DB: %s", cfg.DB_PATH)
            logger.info("Port: %d", cfg.PORT)
            logger.info("\n%s", help_text)
            app.state.query_service = QueryService(statement, help_text, fetch_size=cfg.FETCH_SIZE)
            yield
        finally:
            engine.dispose()

    app = FastAPI(
        title="csvquery",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
    )

    from csvquery.api.routers.query import build_router
    app.include_router(build_router(cfg.QUERY_PATH))

    @app.exception_handler(StarletteHTTPException)
    def _route_rejected(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
        # 404 for any other path, 405 for non-POST on the query path.
        return PlainTextResponse(
            request.app.state.query_service.help_text,
            status_code=exc.status_code,
            headers=exc.headers,
        )

    return app
