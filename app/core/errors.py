"""Error taxonomy shared by the dialog, build and publish flows.

``InputError`` is the only family the HTTP layer turns into a 4xx response;
everything else is reported inside a 200 envelope with ``status: "error"``.
"""

from typing import Optional


class AppError(Exception):
    """Base class for every error raised on purpose by this service."""


class InputError(AppError):
    pass


class EmptyInput(InputError):
    def __init__(self, message: str = "user input cannot be empty"):
        super().__init__(message)


# --- upstream (LLM) failures ---

class UpstreamError(AppError):
    pass


class TransportFailure(UpstreamError):
    pass


class UpstreamStatus(UpstreamError):
    def __init__(self, code: int, body: str):
        self.code = code
        self.body = body
        super().__init__(f"LLM API returned status {code}: {body}")


class UpstreamPayloadInvalid(UpstreamError):
    pass


class UpstreamReportedError(UpstreamError):
    """The upstream answered but its payload carries a non-empty ``error``."""

    def __init__(self, message: str):
        self.upstream_message = message
        super().__init__(f"LLM API error: {message}")


class EmptyCompletion(UpstreamError):
    def __init__(self, message: str = "received empty response from LLM"):
        super().__init__(message)


class EmptyAnalysis(EmptyCompletion):
    def __init__(self):
        super().__init__("received empty analysis response")


class EmptyBuild(EmptyCompletion):
    def __init__(self):
        super().__init__("received empty website response")


class EmptyVerification(EmptyCompletion):
    def __init__(self):
        super().__init__("received empty verification response")


class StageFailure(UpstreamError):
    def __init__(self, stage: str, cause: Exception):
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage} stage failed: {cause}")


# --- html ---

class SanitizationError(AppError):
    """Reserved for strict-mode validators; ``sanitize`` never raises it."""


# --- persistence ---

class PersistenceError(AppError):
    pass


class ArtifactWriteError(PersistenceError):
    pass


class ArtifactIndexError(PersistenceError):
    def __init__(self, message: str, filename: Optional[str] = None):
        self.filename = filename
        super().__init__(message)


class MigrationError(PersistenceError):
    pass


# --- publication ---

class PublicationError(AppError):
    pass


class OperationCancelled(AppError):
    def __init__(self, message: str = "request was cancelled"):
        super().__init__(message)
