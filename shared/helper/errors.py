"""Error kinds raised by the retrieval pipeline.

The HTTP layer maps each kind to a status code (see server/api/errors.py).
"""


class RAGError(Exception):
    """Base class for every error raised by the pipeline."""


class ValidationError(RAGError):
    """Missing or malformed request fields. Raised before any side effect."""


class ProviderError(RAGError):
    """The embedding or chat provider failed or returned an unusable response."""


class PersistenceError(RAGError):
    """A storage transaction failed and was rolled back."""


class ConfigurationError(RAGError):
    """Settings that cannot work, e.g. a chunk window that never advances."""


class UnsupportedFormatError(RAGError):
    """The text extractor does not know how to read the given file type."""


class ExtractionFailedError(RAGError):
    """The file type is supported but no text could be extracted."""
