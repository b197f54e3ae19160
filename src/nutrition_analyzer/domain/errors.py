"""Typed failures raised by the upload and analysis pipelines."""


class PipelineError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class Unauthorized(PipelineError):
    """No session, or the session could not be validated."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class BadRequest(PipelineError):
    """Malformed input, unreachable image URL, or non-image content."""

    status_code = 400


class NotFound(PipelineError):
    """The requested record does not exist for the caller."""

    status_code = 404


class PayloadTooLarge(PipelineError):
    status_code = 413


class UnsupportedMediaType(PipelineError):
    status_code = 415


class InternalError(PipelineError):
    """Storage or unexpected failure; details stay in server logs."""

    status_code = 500


class UpstreamCallFailed(PipelineError):
    """The vision model call, or decoding its reply, failed."""

    status_code = 500


class UpstreamUnavailable(PipelineError):
    """The vision client is not configured."""

    status_code = 503
