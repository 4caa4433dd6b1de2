"""
Custom exception classes
"""


class AgendoException(Exception):
    """Base exception for AgendoAI application"""
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class AuthenticationError(AgendoException):
    """Exception for authentication failures"""
    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, status_code=401)


class AuthorizationError(AgendoException):
    """Exception for authorization failures"""
    def __init__(self, message: str = "Access forbidden"):
        super().__init__(message, status_code=403)


class NotFoundError(AgendoException):
    """Exception for resource not found"""
    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class ValidationError(AgendoException):
    """Exception for validation failures"""
    def __init__(self, message: str = "Validation error"):
        super().__init__(message, status_code=422)


class BusinessRuleError(AgendoException):
    """Exception for requests that break a marketplace rule"""
    def __init__(self, message: str = "Operation not allowed", code: str = None):
        self.code = code
        super().__init__(message, status_code=400)


class DuplicateError(AgendoException):
    """Exception for duplicate resource"""
    def __init__(self, message: str = "Resource already exists"):
        super().__init__(message, status_code=409)


class ConflictError(AgendoException):
    """Exception for scheduling conflicts"""
    def __init__(self, message: str = "Time slot not available"):
        super().__init__(message, status_code=409)
