"""
Errors - Typed failures raised by the thumbnail pipeline.

Every stage failure surfaces as exactly one of these; the web layer maps
``status`` onto the HTTP response.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for all pipeline failures."""

    kind = 'pipeline_error'
    status = 500

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.message}: {self.path}"
        return self.message


class NotFound(PipelineError):
    """Raised when the asset is missing or unreadable."""

    kind = 'not_found'
    status = 404


class UnsupportedFormat(PipelineError):
    """Raised when no decode strategy applies to the asset."""

    kind = 'unsupported_format'
    status = 415


class InvalidParameter(PipelineError):
    """Raised on malformed request input, e.g. an unknown size bucket."""

    kind = 'invalid_parameter'
    status = 400


class DecodeError(PipelineError):
    """
    Raised when a decode stage fails.

    Attributes:
        stage: Which decoder failed ('raster', 'layered' or 'video')
    """

    kind = 'decode_error'
    status = 500

    def __init__(self, stage: str, message: str, path: Optional[str] = None):
        super().__init__(message, path)
        self.stage = stage

    def __str__(self) -> str:
        return f"[{self.stage}] {super().__str__()}"


class EncodeError(PipelineError):
    """Raised when the output image cannot be serialized."""

    kind = 'encode_error'
    status = 500


class PipelineCancelled(PipelineError):
    """Raised inside a worker when its job was cancelled."""

    kind = 'cancelled'
    status = 503


class PipelineTimeout(PipelineError):
    """Raised to the caller when a job exceeds the request timeout."""

    kind = 'timeout'
    status = 503
