"""Custom exception hierarchy."""


class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class APIClientError(AppError):
    """Raised when an external API call fails."""
    pass


class APITimeoutError(APIClientError):
    """Raised when an external API call times out."""
    pass


class NotFoundError(APIClientError):
    """Raised when the persistence API reports a missing record."""
    pass


class DocumentNotFoundError(NotFoundError):
    """Raised when a document is not found."""
    pass


class SessionNotFoundError(NotFoundError):
    """Raised when an intake session or submission is not found."""
    pass


class LeadNotFoundError(NotFoundError):
    """Raised when a lead is not found."""
    pass


class ConfigurationError(AppError):
    """Raised when configuration is invalid or missing."""
    pass


class ConfigUnavailableError(ConfigurationError):
    """The extraction configuration could not be loaded."""
    pass


class ConfigNotFoundError(ConfigUnavailableError):
    """The backing resource of the extraction configuration is missing."""
    pass


class ConfigParseError(ConfigUnavailableError):
    """The extraction configuration exists but is malformed."""
    pass


class StorageError(AppError):
    """Base exception for object storage errors."""
    pass


class ObjectNotFoundError(StorageError):
    """The requested storage key does not exist."""
    pass


class ObjectFetchError(StorageError):
    """Transient failure while downloading an object."""
    pass


class PipelineError(AppError):
    """Base exception for extraction pipeline errors."""
    pass


class UnsupportedDocumentError(PipelineError):
    """Document is not a PDF or could not be parsed."""
    pass


class InsufficientTextError(PipelineError):
    """Document parsed but yielded too little text to extract from."""
    pass


class DocumentTooLargeError(PipelineError):
    """Document text is too large to pass between workflow steps."""
    pass


class FieldOwnerError(PipelineError):
    """No lead or submission could be resolved to attach extracted fields to."""
    pass


# Exception class names that Temporal should never retry. Temporal reports a
# raised exception's class name as the failure type.
NON_RETRYABLE_ERROR_TYPES = [
    DocumentNotFoundError.__name__,
    SessionNotFoundError.__name__,
    LeadNotFoundError.__name__,
    ConfigParseError.__name__,
    ObjectNotFoundError.__name__,
    UnsupportedDocumentError.__name__,
    InsufficientTextError.__name__,
    DocumentTooLargeError.__name__,
    FieldOwnerError.__name__,
]
