from fastapi import status

class BaseAppException(Exception):
    """Base exception for application"""
    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self):
        """Return error response body"""
        return {"error": self.message}

class AuthenticationRequiredException(BaseAppException):
    """Raised when the request carries no valid credentials"""
    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED)

class AccessDeniedException(BaseAppException):
    """Raised when an entry belongs to another user"""
    def __init__(self, message: str = "Access denied"):
        super().__init__(message, status.HTTP_403_FORBIDDEN)

class InvalidInputException(BaseAppException):
    """Raised on malformed, missing or out-of-range input"""
    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)

class ValidationException(BaseAppException):
    """Raised when a domain value (e.g. priority) is not allowed"""
    def __init__(self, message: str = "Validation failed"):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)

class EntryNotFoundException(BaseAppException):
    """Raised when a watchlist/watch history entry or movie is not found"""
    def __init__(self, message: str = "Entry not found"):
        super().__init__(message, status.HTTP_404_NOT_FOUND)

class DuplicateEntryException(BaseAppException):
    """Raised when a (user, movie) pair already exists"""
    def __init__(self, message: str = "Entry already exists"):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)

class UpstreamServiceException(BaseAppException):
    """Raised when the catalog API or another dependency is unreachable"""
    def __init__(self, message: str = "Upstream service unavailable"):
        super().__init__(message, status.HTTP_502_BAD_GATEWAY)

class RateLimitExceededException(BaseAppException):
    """Raised when a client exceeds its request budget"""
    def __init__(self, message: str = "Rate limit exceeded"):
        super().__init__(message, status.HTTP_429_TOO_MANY_REQUESTS)
