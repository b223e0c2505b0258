"""
Authentication-specific exceptions.
"""
from fastapi import HTTPException, status

class AuthException(HTTPException):
    """Base class for authentication exceptions."""
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)

class InvalidCredentialsException(AuthException):
    """Exception raised when credentials are invalid (unknown email or wrong password)."""
    def __init__(self, detail: str = "Invalid credentials"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)

class EmailAlreadyExistsException(AuthException):
    """Exception raised when email already exists."""
    def __init__(self, detail: str = "Email already registered"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class HashingFailureException(AuthException):
    """Exception raised when the password hashing primitive fails."""
    def __init__(self, detail: str = "Password hashing failed"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)

class InvalidTokenException(AuthException):
    """Exception raised when token is invalid."""
    reason = "invalid"

    def __init__(self, detail: str = "Invalid token"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)

class TokenExpiredException(InvalidTokenException):
    """Exception raised when token has expired."""
    reason = "expired"

    def __init__(self, detail: str = "Token has expired"):
        super().__init__(detail=detail)

class InvalidSignatureException(InvalidTokenException):
    """Exception raised when the token signature does not verify."""
    reason = "bad_signature"

    def __init__(self, detail: str = "Token signature is invalid"):
        super().__init__(detail=detail)

class MalformedTokenException(InvalidTokenException):
    """Exception raised when the token cannot be parsed or lacks required claims."""
    reason = "malformed"

    def __init__(self, detail: str = "Token is malformed"):
        super().__init__(detail=detail)
