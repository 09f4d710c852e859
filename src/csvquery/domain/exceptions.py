class CSVQueryError(Exception):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(CSVQueryError):
    """Settings or query cannot be used to build the pipeline."""


class PipelineError(CSVQueryError):
    """A request failed while being processed; maps to HTTP 500."""


class BodyReadError(PipelineError):
    """The request body could not be read or parsed as CSV."""


class ExecutionError(PipelineError):
    """The engine rejected or failed an execution of the query."""


class ParameterCountError(ExecutionError):
    """The record width does not match the statement's arity."""

    def __init__(self, message: str, expected: int, got: int) -> None:
        self.expected = expected
        self.got = got
        super().__init__(message)


class ResultReadError(PipelineError):
    """Rows could not be fetched from an executed query."""


class EncodingError(PipelineError):
    """A result value cannot be represented in the JSON envelope."""
