class LingoQuizError(Exception):
    """Base class for errors raised by lingoquiz."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LingoQuizError):
    """Input the caller can fix: bad CSV rows, too few entries, etc."""

    status_code = 400


class DuplicateEntryError(ValidationError):
    status_code = 409


class NotFoundError(LingoQuizError):
    status_code = 404


class AuthenticationError(LingoQuizError):
    status_code = 401
