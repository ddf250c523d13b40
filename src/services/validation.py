"""
Validation gate - declarative field rules checked before a user is written
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Sequence, Tuple

from models.user import FieldViolation

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "Invalid value"


def is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def is_optional_string(value: Any) -> bool:
    return value is None or isinstance(value, str)


# Largest value an INTEGER column can hold
INT4_MAX = 2147483647


def is_non_negative_int(value: Any) -> bool:
    # bool is a subclass of int but never a valid age
    if isinstance(value, bool):
        return False
    if isinstance(value, float):
        if not value.is_integer():
            return False
    elif not isinstance(value, int):
        return False
    return 0 <= value <= INT4_MAX


@dataclass(frozen=True)
class ValidationRule:
    """A single check on one body field"""
    field: str
    check: Callable[[Any], bool]
    message: str = DEFAULT_MESSAGE
    optional: bool = False


USER_RULES: Tuple[ValidationRule, ...] = (
    ValidationRule("firstName", is_non_empty_string),
    ValidationRule("lastName", is_optional_string, optional=True),
    ValidationRule("age", is_non_negative_int, "age must be a positive integer", optional=True),
)


def validate(payload: Any, partial: bool = False, rules: Sequence[ValidationRule] = USER_RULES) -> List[FieldViolation]:
    """
    Check a request body against the rule set

    Args:
        payload: Decoded JSON body
        partial: Skip rules for absent fields, used for updates
        rules: Rules to apply, in reporting order

    Returns:
        Every violation found; an empty list means the payload is valid
    """
    if not isinstance(payload, dict):
        return [FieldViolation(msg=DEFAULT_MESSAGE, param="body", location="body")]

    violations = []
    for rule in rules:
        if rule.field not in payload:
            if rule.optional or partial:
                continue
            violations.append(FieldViolation(msg=rule.message, param=rule.field, location="body"))
            continue

        value = payload[rule.field]
        if not rule.check(value):
            violations.append(
                FieldViolation(msg=rule.message, param=rule.field, location="body", value=value)
            )

    if violations:
        logger.warning(f"Payload rejected: {[v.param for v in violations]}")
    return violations
