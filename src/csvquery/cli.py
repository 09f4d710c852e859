from pathlib import Path
import typer
from csvquery.config import Settings, settings
from csvquery.domain.exceptions import ConfigurationError
from csvquery.logging import configure_logging, logger

app = typer.Typer(no_args_is_help=True)


@app.callback()
def main():
    """
    Serve one SQL query over HTTP; each CSV body line is one execution.
    """
    pass


def _settings(**overrides) -> Settings:
    """Apply CLI options over environment/.env settings and validate them."""
    update = {key: value for key, value in overrides.items() if value is not None}
    try:
        cfg = Settings.model_validate({**settings.model_dump(), **update})
        cfg.check()
    except (ConfigurationError, ValueError) as e:
        print(f"❌ {getattr(e, 'message', e)}")
        raise typer.Exit(code=1)
    return cfg


@app.command(name="serve")
def serve(
    db: Path | None = typer.Option(None, "--db", help="Path to the SQLite DB"),
    query: str | None = typer.Option(None, "--query", help="The SQL query"),
    port: int | None = typer.Option(None, "--port", help="Port of the HTTP server"),
    host: str | None = typer.Option(None, "--host", help="Listen address"),
    path: str | None = typer.Option(None, "--path", help="URL path of the query endpoint"),
    pool_size: int | None = typer.Option(None, "--pool-size", help="Max open DB connections"),
):
    """
    Start the HTTP server.
    """
    import uvicorn
    from csvquery.api.app import create_app

    cfg = _settings(
        DB_PATH=db, QUERY=query, PORT=port, HOST=host, QUERY_PATH=path, POOL_SIZE=pool_size,
    )
    configure_logging(cfg.LOG_LEVEL)
    logger.info("Starting server on %s:%d", cfg.HOST, cfg.PORT)
    uvicorn.run(create_app(cfg), host=cfg.HOST, port=cfg.PORT, log_config=None)


@app.command(name="describe")
def describe(
    db: Path | None = typer.Option(None, "--db", help="Path to the SQLite DB"),
    query: str | None = typer.Option(None, "--query", help="The SQL query"),
    port: int | None = typer.Option(None, "--port", help="Port shown in the usage example"),
    path: str | None = typer.Option(None, "--path", help="URL path shown in the usage example"),
):
    """
    Print the query's help text (parameter count, usage, response shape) and exit.
    """
    from csvquery.infra.db.engine import create_query_engine
    from csvquery.infra.db.probe import SqliteParameterProbe
    from csvquery.infra.db.statement import PreparedQuery
    from csvquery.services.help_service import render_help

    cfg = _settings(DB_PATH=db, QUERY=query, PORT=port, QUERY_PATH=path)
    engine = create_query_engine(cfg.DB_PATH, busy_timeout_ms=cfg.BUSY_TIMEOUT_MS)
    try:
        statement = PreparedQuery(engine, cfg.QUERY)
        statement.prepare()
        params = SqliteParameterProbe(statement).probe()
    except ConfigurationError as e:
        print(f"❌ {e.message}")
        raise typer.Exit(code=1)
    finally:
        engine.dispose()

    print(render_help(cfg.QUERY, params, port=cfg.PORT, path=cfg.QUERY_PATH), end="")


if __name__ == "__main__":
    app()
