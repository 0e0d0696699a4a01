"""Errors raised while mirroring. Everything a worker may recover from derives from MirrorError."""


class MirrorError(Exception):
    """Base class for per-job and worker errors."""


class SendRequestError(MirrorError):
    """The request could not be sent or no response headers arrived."""


class ResponseBodyError(MirrorError):
    """The response body could not be read."""


class TimedOutError(MirrorError):
    """Connection timed out (no data within the idle-read timeout)."""


class HeaderError(MirrorError):
    """A response header could not be interpreted."""

    def __init__(self, message: str, value: str | None = None) -> None:
        super().__init__(message)
        self.value = value


class CreateFileError(MirrorError):
    """The output file or one of its directories could not be created."""


class WriteFileError(MirrorError):
    """Writing the body to disk failed."""


class ReadFileError(MirrorError):
    """The saved document could not be read back for link extraction."""


class UnmappableUrlError(MirrorError):
    """The URL has no host/path and therefore no local path."""


class HtmlParseError(MirrorError):
    """The document could not be parsed. Does not fail the job."""


class WorkerStartError(MirrorError):
    """A worker could not build its HTTP client. Fatal for that worker only."""
