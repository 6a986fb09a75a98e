"""
Custom exceptions for PIP Assist.
Defines exception hierarchy for different error types.
"""


class PipAssistError(Exception):
    """Base exception for PIP Assist."""

    def __init__(self, message: str, details: str = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self):
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ConfigurationError(PipAssistError):
    """Configuration related errors."""

    pass


class ContentError(PipAssistError):
    """Form module content loading and validation errors."""

    pass


class AnswerValidationError(PipAssistError):
    """Answer shape does not match the question kind."""

    pass


class StorageError(PipAssistError):
    """Key-value store read/write errors."""

    pass


class AIServiceError(PipAssistError):
    """AI completion service related errors."""

    pass


class NetworkError(PipAssistError):
    """Network and external service related errors."""

    pass


class PaymentError(PipAssistError):
    """Payment checkout related errors."""

    pass


class ModuleLockedError(PipAssistError):
    """Raised when a module is used before it has been unlocked."""

    pass


class FormCheckError(PipAssistError):
    """Form checker analysis errors."""

    pass


class FileSystemError(PipAssistError):
    """File system operation related errors."""

    pass
