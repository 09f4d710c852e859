"""Static diagnostic text included in every error response."""
from __future__ import annotations
from csvquery.api.schemas.query import QueryResultRead
from csvquery.infra.db.probe import ParameterCount


def _params_line(params: ParameterCount) -> str:
    if params.exact:
        return str(params.count)
    return f"{params.count} (approximate, counted from '?' placeholders)"


def _example(params: ParameterCount) -> QueryResultRead:
    return QueryResultRead(
        in_=[f"$PARAM_{i}" for i in range(1, params.count + 1)],
        headers=["$COLUMN_1", "$COLUMN_2"],
        out=[["$VALUE_1_1", "$VALUE_1_2"], ["$VALUE_2_1", "$VALUE_2_2"]],
    )


def render_help(sql: str, params: ParameterCount, *, port: int, path: str) -> str:
    body = ",".join(f"$PARAM_{i}" for i in range(1, params.count + 1))
    example = _example(params).model_dump_json(by_alias=True)
    return (
        f"Query:\n"
        f"\t{sql}\n"
        f"Params count:\n"
        f"\t{_params_line(params)}\n"
        f"Usage:\n"
        f'\tcurl "http://$ADDRESS:{port}{path}" -d "{body}"\n'
        f"\n"
        f"\t- Request must be a HTTP POST to {path}\n"
        f"\t- Request body must be a valid CSV\n"
        f"\t- Request body must not have a CSV header\n"
        f"\t- Each request body line is a different query\n"
        f"\t- Each request body param corresponds to a query param (a question mark in the query string)\n"
        f"Response:\n"
        f"\t[{example}, ...]\n"
        f"\n"
        f"\t- One element per request body line, in the same order\n"
        f"\t- If the body is not valid JSON the request failed part-way; "
        f"the error is appended after the last complete element\n"
    )
