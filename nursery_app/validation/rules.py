"""
Declarative field rules

Each rule inspects the raw request body and returns the error messages it
produces. ``validate`` runs every rule and accumulates all messages, so a
submission with several problems reports all of them in one response.
"""
import re
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel, Field

from nursery_app.utils.helpers import local_today, parse_date

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# International (E.164-style) or UK national format starting with 0
PHONE_PATTERN = re.compile(r"^(?:[+]?[1-9][0-9]{3,14}|0[0-9]{9,10})$")
LOOSE_PHONE_PATTERN = re.compile(r"^\+?[0-9]{7,15}$")
PHONE_SEPARATORS = re.compile(r"[\s\-()]")


class ValidationResult(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_blank(value: Any) -> bool:
    """JS-style falsiness for form values: missing, empty, zero or false"""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    if is_number(value):
        return value == 0
    return False


def clean_phone(value: str) -> str:
    return PHONE_SEPARATORS.sub("", value)


class Rule:
    """Base class - subclasses implement ``check``"""

    field: Optional[str] = None

    def check(self, data: Dict[str, Any]) -> List[str]:
        raise NotImplementedError


class RequiredString(Rule):
    """Present, a string, and at least ``min_length`` characters once trimmed"""

    def __init__(self, field: str, message: str, min_length: int = 1):
        self.field = field
        self.message = message
        self.min_length = min_length

    def check(self, data):
        value = data.get(self.field)
        if not isinstance(value, str) or len(value.strip()) < max(self.min_length, 1):
            return [self.message]
        return []


class LengthBetween(Rule):
    """Only checked when the value is a string"""

    def __init__(self, field: str, message: str, min_length: int = 0, max_length: Optional[int] = None, trim: bool = True):
        self.field = field
        self.message = message
        self.min_length = min_length
        self.max_length = max_length
        self.trim = trim

    def check(self, data):
        value = data.get(self.field)
        if not isinstance(value, str) or not value:
            return []
        length = len(value.strip() if self.trim else value)
        if length < self.min_length or (self.max_length is not None and length > self.max_length):
            return [self.message]
        return []


class Email(Rule):
    def __init__(self, field: str, message: str, required: bool = True, trim: bool = False):
        self.field = field
        self.message = message
        self.required = required
        self.trim = trim

    def check(self, data):
        value = data.get(self.field)
        if not isinstance(value, str) or not value:
            return [self.message] if self.required else []
        candidate = value.strip() if self.trim else value
        if not EMAIL_PATTERN.fullmatch(candidate):
            return [self.message]
        return []


class PhoneFormat(Rule):
    """Format check on the number with spaces, dashes and brackets removed"""

    def __init__(self, field: str, message: str = "Please enter a valid phone number", pattern=PHONE_PATTERN):
        self.field = field
        self.message = message
        self.pattern = pattern

    def check(self, data):
        value = data.get(self.field)
        if not isinstance(value, str) or not value.strip():
            return []
        if not self.pattern.fullmatch(clean_phone(value)):
            return [self.message]
        return []


def phone_rules(
    field: str,
    length_message: str = "Phone number is required and must be at least 10 characters long",
    format_message: str = "Please enter a valid phone number",
    pattern=PHONE_PATTERN,
) -> List[Rule]:
    """The stacked length + format checks used by most contact forms"""
    return [
        RequiredString(field, length_message, min_length=10),
        PhoneFormat(field, format_message, pattern),
    ]


class OneOf(Rule):
    def __init__(self, field: str, allowed: Sequence[str], message: str, required: bool = True, case_insensitive: bool = False):
        self.field = field
        self.allowed = list(allowed)
        self.message = message
        self.required = required
        self.case_insensitive = case_insensitive

    def check(self, data):
        value = data.get(self.field)
        if value is None or value == "":
            return [self.message] if self.required else []
        if not isinstance(value, str):
            return [self.message]
        if self.case_insensitive:
            if value.lower() not in [item.lower() for item in self.allowed]:
                return [self.message]
        elif value not in self.allowed:
            return [self.message]
        return []


class NumberBetween(Rule):
    def __init__(self, field: str, message: str, minimum: float, maximum: float):
        self.field = field
        self.message = message
        self.minimum = minimum
        self.maximum = maximum

    def check(self, data):
        value = data.get(self.field)
        if not is_number(value) or value < self.minimum or value > self.maximum:
            return [self.message]
        return []


class Equals(Rule):
    """A numeric field that must carry one fixed value"""

    def __init__(self, field: str, expected: float, message: str):
        self.field = field
        self.expected = expected
        self.message = message

    def check(self, data):
        value = data.get(self.field)
        if not is_number(value) or value != self.expected:
            return [self.message]
        return []


class IsTrue(Rule):
    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message

    def check(self, data):
        return [] if data.get(self.field) is True else [self.message]


class CalendarDate(Rule):
    """A date that parses, is not in the past and optionally not a weekend.

    Reports at most one problem per field, in that order.
    """

    def __init__(
        self,
        field: str,
        required_message: str,
        invalid_message: str,
        past_message: str,
        weekend_message: Optional[str] = None,
    ):
        self.field = field
        self.required_message = required_message
        self.invalid_message = invalid_message
        self.past_message = past_message
        self.weekend_message = weekend_message

    def check(self, data):
        value = data.get(self.field)
        if is_blank(value) or not isinstance(value, str):
            return [self.required_message]
        return date_errors(
            value, self.invalid_message, self.past_message, self.weekend_message
        )


def date_errors(
    value: Any,
    invalid_message: str,
    past_message: str,
    weekend_message: Optional[str] = None,
    today: Optional[date] = None,
) -> List[str]:
    parsed = parse_date(value)
    if parsed is None:
        return [invalid_message]
    if parsed < (today or local_today()):
        return [past_message]
    if weekend_message and parsed.weekday() >= 5:
        return [weekend_message]
    return []


class DateList(Rule):
    """An array of bookable dates with a bounded length.

    Dates are checked in order; the first failing date reports one error.
    """

    def __init__(
        self,
        field: str,
        min_items: int,
        max_items: int,
        count_message: str,
        invalid_message: str,
        past_message: str,
        weekend_message: Optional[str] = None,
    ):
        self.field = field
        self.min_items = min_items
        self.max_items = max_items
        self.count_message = count_message
        self.invalid_message = invalid_message
        self.past_message = past_message
        self.weekend_message = weekend_message

    def check(self, data):
        value = data.get(self.field)
        if not isinstance(value, list):
            return [self.count_message]
        errors = []
        if not self.min_items <= len(value) <= self.max_items:
            errors.append(self.count_message)
        today = local_today()
        for item in value:
            item_errors = date_errors(
                item, self.invalid_message, self.past_message, self.weekend_message, today
            )
            if item_errors:
                errors.extend(item_errors)
                break
        return errors


class RequiredFields(Rule):
    """Every listed field must be present and non-blank"""

    def __init__(self, fields: Iterable[str], label: Callable[[str], str]):
        self.fields = list(fields)
        self.label = label

    def check(self, data):
        return [
            f"{self.label(name)} is required"
            for name in self.fields
            if is_blank(data.get(name))
        ]


class MinimumAge(Rule):
    """Checked only when the value parses as a date"""

    def __init__(self, field: str, years: int, message: str):
        self.field = field
        self.years = years
        self.message = message

    def check(self, data):
        born = parse_date(data.get(self.field))
        if born is None:
            return []
        today = local_today()
        age = today.year - born.year - ((today.month, today.day) < (born.month, born.day))
        return [self.message] if age < self.years else []


class Check(Rule):
    """Cross-field rule: ``predicate(data)`` returns True when the data is valid"""

    def __init__(self, predicate: Callable[[Dict[str, Any]], bool], message: str):
        self.predicate = predicate
        self.message = message

    def check(self, data):
        return [] if self.predicate(data) else [self.message]


def validate(data: Any, rules: Iterable[Rule]) -> ValidationResult:
    """Run every rule against ``data`` and collect all errors"""
    if not isinstance(data, dict):
        data = {}
    errors: List[str] = []
    for rule in rules:
        errors.extend(rule.check(data))
    return ValidationResult(is_valid=not errors, errors=errors)
