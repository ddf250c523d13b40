"""
Domain errors raised by the users service layer
"""

from typing import List

from models.user import FieldViolation


class UserServiceError(Exception):
    """Base class for user resource errors"""


class UserNotFoundError(UserServiceError):
    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


class UserValidationError(UserServiceError):
    def __init__(self, violations: List[FieldViolation]):
        self.violations = violations
        fields = ", ".join(v.param for v in violations)
        super().__init__(f"Validation failed for: {fields}")
