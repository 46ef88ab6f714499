"""Error taxonomy for the analysis pipeline.

Services raise these; routes translate them into HTTP envelopes through
`services.response_formatter`.
"""

from __future__ import annotations

from typing import Optional


class AnalysisError(Exception):
    """Base class for every error the pipeline raises on purpose."""


class ValidationError(AnalysisError):
    """Malformed or missing caller input."""


class FetchError(AnalysisError):
    """An image URL could not be retrieved."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InferenceError(AnalysisError):
    """The inference API failed at the transport, auth or quota level."""

    def __init__(self, message: str, *, timeout: bool = False) -> None:
        super().__init__(message)
        self.timeout = timeout


class UpstreamFormatError(AnalysisError):
    """The model answered, but not with the structured data we asked for."""

    def __init__(self, message: str, *, raw: str = "", stage: str = "scout") -> None:
        super().__init__(message)
        self.raw = raw
        self.stage = stage


class PersistenceError(AnalysisError):
    """Writing an analysis record failed. Always recovered locally."""


class StorageError(AnalysisError):
    """The object store rejected an upload slot request."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ApiRequestError(AnalysisError):
    """A call from the batch client to the service (or to a signed upload URL) failed."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
