"""Exception hierarchy for protobench."""


class BenchError(Exception):
    """Base class for failures attributable to one orchestration step."""

    pass


class InvalidInput(BenchError):
    """Unknown scenario or protocol supplied by the caller."""

    pass


class ProcessFailure(BenchError):
    """An external client or server exited non-zero or could not be spawned."""

    def __init__(self, message: str, exit_code: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr


class ResultError(BenchError):
    """The output artifact could not be turned into samples."""

    pass


class EmptyResult(ResultError):
    pass


class MalformedResult(ResultError):
    pass


class MissingResult(ResultError):
    """The artifact is absent or unreadable."""

    pass


class PersistFailure(BenchError):
    """A run store write failed."""

    pass


class DuplicateResult(PersistFailure):
    pass
