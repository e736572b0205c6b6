"""
Custom exceptions for the pick'em system with user-friendly error messages.
"""

class PickemException(Exception):
    """Base exception for pick'em errors."""
    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message

class UserNotFoundError(PickemException):
    """Raised when a user identifier does not resolve to an existing user."""
    def __init__(self, user_ref: str):
        self.user_ref = user_ref
        super().__init__(
            f"User '{user_ref}' not found",
            f"❌ No user found for `{user_ref}`."
        )

class MergeValidationError(PickemException):
    """Raised when a merge request is invalid (same user, already merged, ...)."""
    def __init__(self, reason: str):
        super().__init__(
            f"Invalid merge: {reason}",
            f"❌ {reason}"
        )

class EmailValidationError(PickemException):
    """Raised when an email change is rejected."""
    def __init__(self, reason: str):
        super().__init__(
            f"Email change rejected: {reason}",
            f"❌ {reason}"
        )

class PayloadValidationError(PickemException):
    """Raised when a backend payload does not match the expected shape."""
    def __init__(self, payload_type: str, details: str):
        self.payload_type = payload_type
        self.details = details
        super().__init__(
            f"Invalid {payload_type} payload: {details}",
            "❌ Received malformed data from the database. Please contact an administrator."
        )

class DatabaseError(PickemException):
    """Raised when database operations fail."""
    def __init__(self, operation: str, details: str = None):
        super().__init__(
            f"Database error during {operation}: {details}",
            "❌ Database error occurred. Please try again later."
        )
