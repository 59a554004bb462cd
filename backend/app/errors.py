"""Error taxonomy for a generation run.

Every error carries the HTTP status it is reported with, so the API layer can
render it without knowing which step failed.
"""


class PipelineError(Exception):
    """Base class for failures surfaced to the caller of the pipeline."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None, details: str | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details


class InvalidInputError(PipelineError):
    """Client input error: required request fields are missing or empty."""

    status_code = 400


class ConfigurationError(PipelineError):
    """A required credential or endpoint is not configured."""

    status_code = 500


class UpstreamGenerationError(PipelineError):
    """The language model failed to produce a usable brief or prompt."""

    status_code = 502


class CompositionError(PipelineError):
    """The music API rejected the request; carries its status and message."""

    def __init__(self, message: str, status_code: int | None = None, details: str | None = None):
        super().__init__(message, status_code or 500, details)


class ArtifactWriteError(PipelineError):
    """Writing the audio file to the content directory failed."""

    status_code = 500


class LLMResponseError(Exception):
    """The model answered, but with no usable text or an invalid brief."""
