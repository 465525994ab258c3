class StringAnalyzerError(Exception):
    """Base class for every typed outcome the core hands back to the adapter."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StringAnalyzerError):
    """Malformed or missing input. Always fixable by the caller."""


class InvalidTypeError(ValidationError):
    """Input was present but of the wrong type."""


class DuplicateError(StringAnalyzerError):
    """The normalized value is already stored."""


class NotFoundError(StringAnalyzerError):
    """No record matches the normalized value."""


class PersistenceError(StringAnalyzerError):
    """The durable copy of the collection could not be read or written."""
