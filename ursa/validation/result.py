"""Parse Results

ParseResult carries a coerced value plus the ordered errors of one parse;
ObjectResult additionally keeps the per-field child results in declaration
order. Results are the only mutable state of a parse.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Generic, Protocol, TypeVar

from ursa.errors import ParseError, ValidationError

from .values import MISSING

T = TypeVar("T")

_INTEGER_TEXT = re.compile(r"[+-]?[0-9]+")
_TRUE_TEXT = frozenset({"1", "t", "T", "true", "TRUE", "True"})


def _plain_decimal(number: float | Decimal) -> str:
    """Shortest text for ``number`` without an exponent: 2.5 -> "2.5", 1e20 -> "100000000000000000000"."""
    if isinstance(number, float):
        if not math.isfinite(number):
            return repr(number)
        number = Decimal(repr(number))
    text = format(number, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


@dataclass(slots=True)
class ParseResult(Generic[T]):
    """Result of parsing a single value."""
    value: T
    errors: list[ParseError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def append_error(self, error: ParseError) -> None:
        self.errors.append(error)

    def unwrap(self) -> T:
        """Return the value, raising ValidationError if the parse failed."""
        if self.errors:
            raise ValidationError(self.errors)
        return self.value

    def to_dict(self) -> dict[str, Any]:
        if self.valid:
            return {"valid": True, "value": self.value}
        return {"valid": False, "errors": [e.to_dict() for e in self.errors]}


@dataclass(slots=True)
class ObjectResult:
    """Result of parsing a structured value against an object schema.

    ``errors`` is the aggregate list: child errors prefixed with their field
    path in declaration order, followed by refiner errors.
    """
    fields: dict[str, ParseResult[Any] | ObjectResult] = field(default_factory=dict)
    errors: list[ParseError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def value(self) -> dict[str, Any]:
        """Plain mapping of field name to coerced value, nested objects included."""
        return {name: child.value for name, child in self.fields.items()}

    def append_error(self, error: ParseError) -> None:
        self.errors.append(error)

    def unwrap(self) -> dict[str, Any]:
        if self.errors:
            raise ValidationError(self.errors)
        return self.value

    # ------------------------------------------------------------------
    # Field accessors
    # ------------------------------------------------------------------

    def get_field(self, name: str) -> ParseResult[Any] | ObjectResult | None:
        return self.fields.get(name)

    def get(self, name: str, default: Any = None) -> Any:
        child = self.fields.get(name)
        return default if child is None else child.value

    def is_field_valid(self, name: str) -> bool:
        child = self.fields.get(name)
        return child is not None and child.valid

    def get_error(self, name: str) -> str | None:
        """Messages of one field joined with ", ", or None if it is valid."""
        child = self.fields.get(name)
        if child is None or child.valid:
            return None
        return ", ".join(e.message for e in child.errors)

    def get_string(self, name: str) -> str:
        """Text as is; numbers formatted in plain decimal; anything else is ""."""
        match self.get(name):
            case str() as text:
                return text
            case bool():
                return ""
            case int() as number:
                return str(number)
            case float() | Decimal() as number:
                return _plain_decimal(number)
            case _:
                return ""

    def get_int(self, name: str) -> int:
        """Integers as is; floats truncated; base-10 integer text parsed; otherwise 0."""
        match self.get(name):
            case bool():
                return 0
            case int() as number:
                return number
            case float() | Decimal() as number:
                return int(number) if math.isfinite(number) else 0
            case str() as text if _INTEGER_TEXT.fullmatch(text):
                return int(text)
            case _:
                return 0

    def get_bool(self, name: str) -> bool:
        """Booleans as is; numbers true when nonzero; strict boolean text; otherwise False."""
        match self.get(name):
            case bool() as flag:
                return flag
            case int() | float() | Decimal() as number:
                return number != 0
            case str() as text:
                return text in _TRUE_TEXT
            case _:
                return False

    def unmarshal(self, target: Any) -> Any:
        """Copy validated values into a dict, dataclass, pydantic model or object."""
        from .unmarshal import unmarshal

        return unmarshal(self, target)

    def to_dict(self) -> dict[str, Any]:
        if self.valid:
            return {"valid": True, "value": self.value}
        return {
            "valid": False,
            "errors": [e.to_dict() for e in self.errors],
            "fields": {
                name: [e.message for e in child.errors]
                for name, child in self.fields.items()
                if not child.valid
            },
        }


class Validator(Protocol):
    """Anything that can sit in an object schema."""

    def parse(self, value: Any = MISSING) -> ParseResult[Any] | ObjectResult: ...

    @property
    def error(self) -> ParseError | None: ...


def failed(error: ParseError) -> ParseResult[Any]:
    return ParseResult(None, [error])
