"""
Patient-profile exceptions.
"""
from fastapi import HTTPException, status


class AllocationFailureException(HTTPException):
    """Exception raised when a patient profile could not be allocated for a new account."""
    def __init__(self, detail: str = "Patient profile could not be created"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
