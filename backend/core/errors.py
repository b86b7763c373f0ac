"""
Error taxonomy for the analysis pipeline.

Every error the pipeline raises on purpose derives from TranscriptIQError so
the HTTP layer can turn it into a uniform {"error": message} body.
"""


class TranscriptIQError(Exception):
    """Base class for pipeline errors."""
    pass


class ValidationError(TranscriptIQError):
    """Missing or invalid required input."""
    pass


class NoTranscriptsError(ValidationError):
    """Raised when there is nothing to analyze."""

    def __init__(self, message: str = "No transcripts provided"):
        super().__init__(message)


class UpstreamError(TranscriptIQError):
    """The generation endpoint failed or returned a malformed envelope."""
    pass


class ParseError(TranscriptIQError):
    """No JSON could be recovered from model output."""

    def __init__(self, message: str, raw_prefix: str = ""):
        super().__init__(message)
        self.raw_prefix = raw_prefix


class SchemaError(TranscriptIQError):
    """Parsed JSON is missing the required array fields."""
    pass


class PersistenceError(TranscriptIQError):
    """A storage read or write failed."""
    pass
