"""Declarative payload validation.

Every payload has a rule table: an ordered mapping of field name to a rule
string such as ``"required,min=1,max=100"``. Fields are checked in table
order and rules in string order; the first violation is raised as a
:class:`~app.core.errors.ValidationError` reading ``"<field> <reason>"``.

Supported tags: ``required``, ``omitempty``, ``min=N``, ``max=N``, ``email``,
``url``, ``uuid4`` and ``oneof=a b c``. ``min``/``max`` compare the length of
strings and the value of numbers; ``url`` accepts absolute http(s) URLs
only. Any other tag fails with the generic
``"Validation error for field: <field>"`` message.
"""

import re
from typing import Any, Callable, Dict, List, Mapping, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import HttpUrl, TypeAdapter
from pydantic import ValidationError as UrlError

from app.core.errors import ValidationError

UUID4_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$", re.IGNORECASE
)


def is_zero(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, bool):
        return value is False
    if isinstance(value, (int, float)):
        return value == 0
    return False


def _size(value: Any) -> float:
    if value is None:
        return 0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return len(str(value))


def _is_email(value: Any) -> bool:
    try:
        validate_email(str(value), check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


_HTTP_URL = TypeAdapter(HttpUrl)


def _is_url(value: Any) -> bool:
    try:
        _HTTP_URL.validate_python(str(value or ""))
    except UrlError:
        return False
    return True


def _is_uuid4(value: Any) -> bool:
    return bool(UUID4_RE.match(str(value or "")))


class Rule:
    """A predicate plus the reason reported when it does not hold."""

    def __init__(self, tag: str, check: Callable[[Any], bool], reason: Optional[str]):
        self.tag = tag
        self.check = check
        self.reason = reason

    def message(self, field: str) -> str:
        if self.reason is None:
            return f"Validation error for field: {field}"
        return f"{field} {self.reason}"

    def __repr__(self):
        return f"Rule({self.tag!r})"


def _unsupported(_value: Any) -> bool:
    return False


def _build(tag: str, param: Optional[str]) -> Rule:
    if tag == "required":
        return Rule(tag, lambda v: not is_zero(v), "is required")
    if tag == "min" and param is not None:
        bound = float(param)
        return Rule(tag, lambda v: _size(v) >= bound, f"must be greater than or equal to {param}")
    if tag == "max" and param is not None:
        bound = float(param)
        return Rule(tag, lambda v: _size(v) <= bound, f"must be less than or equal to {param}")
    if tag == "email":
        return Rule(tag, _is_email, "is an invalid email")
    if tag == "url":
        return Rule(tag, _is_url, "is an invalid URL")
    if tag == "uuid4":
        return Rule(tag, _is_uuid4, "must be a valid UUIDv4")
    if tag == "oneof" and param:
        choices = param.split()
        return Rule(tag, lambda v: str(v) in choices, f"must be one of: {param}")
    return Rule(tag, _unsupported, None)


def parse_rules(text: str) -> List[Rule]:
    rules = []
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        tag, _, param = part.partition("=")
        rules.append(_build(tag, param or None))
    return rules


class RuleTable:
    """Parsed rules for one payload, in declaration order."""

    def __init__(self, fields: Mapping[str, str]):
        self.fields: Dict[str, List[Rule]] = {name: parse_rules(text) for name, text in fields.items()}

    def __iter__(self):
        return iter(self.fields.items())


def validate(data: Mapping[str, Any], table: RuleTable, partial: bool = False) -> None:
    """Raise ValidationError for the first failing field, or return None.

    With ``partial`` set, fields missing from ``data`` (or set to None) are
    skipped, which is what partial updates need.
    """
    for field, rules in table:
        value = data.get(field)
        if partial and value is None:
            continue
        for rule in rules:
            if rule.tag == "omitempty":
                if is_zero(value):
                    break
                continue
            if not rule.check(value):
                raise ValidationError(rule.message(field))


SIGN_UP_RULES = RuleTable({
    "email": "required,email,max=100",
    "password": "required,min=1,max=100",
})

SIGN_IN_RULES = RuleTable({
    "email": "required,max=100",
    "password": "required,min=1,max=100",
})

FORGOT_PASSWORD_RULES = RuleTable({
    "email": "required,email",
})

RESET_PASSWORD_RULES = RuleTable({
    "password": "required,min=1,max=100",
})

BOOK_RULES = RuleTable({
    "id": "required,uuid4",
    "title": "required,min=1,max=100",
    "author": "required,min=1,max=100",
    "description": "max=1024",
    "cover_url": "omitempty,url,max=1024",
    "genre": "max=100",
    "isbn": "max=20",
    "published_date": "max=20",
    "language": "max=10",
    "pages": "min=0",
})

LIBRARY_RULES = RuleTable({
    "id": "required,uuid4",
    "name": "required,min=1,max=100",
    "description": "max=1024",
})

LOAN_RULES = RuleTable({
    "id": "required,uuid4",
    "book_id": "required,uuid4",
    "borrower_name": "required,min=1,max=100",
    "loan_date": "required,min=1,max=20",
})

VALIDATION_TOKEN_RULES = RuleTable({
    "token": "required,min=1,max=100",
    "type": "required,oneof=password_reset email_verification",
})
