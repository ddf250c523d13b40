"""
User Pydantic models
"""

from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class UserFields(BaseModel):
    """Attributes are snake_case in Python and camelCase on the wire"""
    # Request bodies are read by alias only; snake_case keys are unknown and ignored
    model_config = ConfigDict(alias_generator=to_camel)


class User(UserFields):
    # Built from database rows, which use the snake_case column names
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    first_name: str
    last_name: Optional[str] = None
    age: Optional[int] = None


class UserCreateRequest(UserFields):
    first_name: str
    last_name: Optional[str] = None
    age: Optional[int] = None


class UserUpdateRequest(UserFields):
    # Only fields that were explicitly sent are applied (exclude_unset)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    age: Optional[int] = None


class UserDeleteResponse(BaseModel):
    message: str
    id: int


class FieldViolation(BaseModel):
    """One failed rule; value is only set when the field was submitted"""
    msg: str
    param: str
    location: str = "body"
    value: Any = None

    def to_response(self) -> dict:
        if "value" in self.model_fields_set:
            return self.model_dump()
        return self.model_dump(exclude={"value"})


class ValidationErrorResponse(BaseModel):
    errors: List[FieldViolation]
