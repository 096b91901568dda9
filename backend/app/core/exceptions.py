class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class FormatError(AppError):
    """Raised when a clock-time string does not match the expected pattern."""
    def __init__(self, message: str, value: str | None = None):
        details = {"value": value} if value is not None else None
        super().__init__(message, status_code=422, details=details)

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=500, details=details)
