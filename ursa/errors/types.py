"""Parse Error and Result Types

Closed taxonomy of parse failures plus the Result monad used by the
coercion layer. Errors are compared by code, message and path, never by
identity, so two parses of the same input produce equal error lists.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, NoReturn, TypeVar, Union, final

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")
F = TypeVar("F")


class ErrorCode(Enum):
    """Hierarchical error code taxonomy.

    E1xxx: Coercion failures (shape and conversion)
    E2xxx: Rule violations
    E3xxx: Request/body source failures
    E9xxx: Schema misconfiguration and internal errors
    """
    # Coercion (E1xxx)
    E1000_INVALID_TYPE = 1000
    E1001_INVALID_VALUE = 1001
    E1002_MISSING_TRANSFORMER = 1002
    E1003_REQUIRED_PROPERTY_MISSING = 1003

    # Rules (E2xxx)
    E2000_TOO_SMALL = 2000
    E2001_TOO_LARGE = 2001
    E2002_ZERO = 2002
    E2003_NOT_INTEGER = 2003
    E2010_TOO_SHORT = 2010
    E2011_TOO_LONG = 2011
    E2012_PATTERN_MISMATCH = 2012
    E2013_INVALID_PATTERN = 2013
    E2014_INVALID_EMAIL = 2014
    E2015_NOT_IN_ENUM = 2015
    E2020_NOT_TRUE = 2020
    E2021_NOT_FALSE = 2021
    E2030_TOO_EARLY = 2030
    E2031_TOO_LATE = 2031
    E2040_NULL_IDENTIFIER = 2040
    E2050_TOO_MANY_FILES = 2050
    E2051_FILE_TOO_LARGE = 2051
    E2090_CUSTOM = 2090

    # Sources (E3xxx)
    E3000_BODY_TOO_LARGE = 3000
    E3001_BODY_SIZE_MISMATCH = 3001
    E3002_UNSUPPORTED_CONTENT_TYPE = 3002
    E3003_MALFORMED_BODY = 3003

    # Internal (E9xxx)
    E9000_INVALID_VALIDATOR_STATE = 9000
    E9001_CANNOT_UNMARSHAL = 9001

    @property
    def default_message(self) -> str:
        """Fixed message used when no override is configured."""
        return _DEFAULT_MESSAGES[self]

    @property
    def http_status(self) -> int:
        """Map error code to appropriate HTTP status."""
        match self:
            case ErrorCode.E3000_BODY_TOO_LARGE:
                return 413
            case ErrorCode.E3002_UNSUPPORTED_CONTENT_TYPE:
                return 415
            case ErrorCode.E3001_BODY_SIZE_MISMATCH | ErrorCode.E3003_MALFORMED_BODY:
                return 400
        if self.value >= 9000:
            return 500
        return 422

    @property
    def category(self) -> str:
        """Human-readable error category."""
        code = self.value
        if 1000 <= code < 2000:
            return "coercion"
        if 2000 <= code < 3000:
            return "rule"
        if 3000 <= code < 4000:
            return "source"
        return "internal"


_DEFAULT_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.E1000_INVALID_TYPE: "invalid type",
    ErrorCode.E1001_INVALID_VALUE: "invalid value",
    ErrorCode.E1002_MISSING_TRANSFORMER: "missing transformer",
    ErrorCode.E1003_REQUIRED_PROPERTY_MISSING: "missing required property",
    ErrorCode.E2000_TOO_SMALL: "number too small",
    ErrorCode.E2001_TOO_LARGE: "number too large",
    ErrorCode.E2002_ZERO: "number is zero",
    ErrorCode.E2003_NOT_INTEGER: "number is not integer",
    ErrorCode.E2010_TOO_SHORT: "string too short",
    ErrorCode.E2011_TOO_LONG: "string too long",
    ErrorCode.E2012_PATTERN_MISMATCH: "string does not match pattern",
    ErrorCode.E2013_INVALID_PATTERN: "invalid regexp pattern",
    ErrorCode.E2014_INVALID_EMAIL: "invalid email address",
    ErrorCode.E2015_NOT_IN_ENUM: "value not found in enum",
    ErrorCode.E2020_NOT_TRUE: "value should be true",
    ErrorCode.E2021_NOT_FALSE: "value should be false",
    ErrorCode.E2030_TOO_EARLY: "date is too early",
    ErrorCode.E2031_TOO_LATE: "date is too late",
    ErrorCode.E2040_NULL_IDENTIFIER: "uuid is zero",
    ErrorCode.E2050_TOO_MANY_FILES: "too many files",
    ErrorCode.E2051_FILE_TOO_LARGE: "file too large",
    ErrorCode.E2090_CUSTOM: "custom validation failed",
    ErrorCode.E3000_BODY_TOO_LARGE: "request body too large",
    ErrorCode.E3001_BODY_SIZE_MISMATCH: "request body size mismatch",
    ErrorCode.E3002_UNSUPPORTED_CONTENT_TYPE: "unsupported content type",
    ErrorCode.E3003_MALFORMED_BODY: "malformed request body",
    ErrorCode.E9000_INVALID_VALIDATOR_STATE: "invalid validator state",
    ErrorCode.E9001_CANNOT_UNMARSHAL: "cannot unmarshal invalid value",
}


@dataclass(frozen=True, slots=True)
class ParseError:
    """A single parse failure.

    All errors carry:
    - Typed error code from the taxonomy
    - Human-readable message (default or overridden)
    - Optional dotted path of the offending field ("address.street")
    - Optional inner causes for diagnostics, excluded from equality
    """
    code: ErrorCode
    message: str = ""
    path: str | None = None
    causes: tuple[BaseException | ParseError, ...] = field(default=(), compare=False)

    def __post_init__(self) -> None:
        if not self.message:
            object.__setattr__(self, "message", self.code.default_message)

    def is_(self, code: ErrorCode) -> bool:
        return self.code is code

    def at(self, name: str) -> ParseError:
        """Return a copy located under field ``name``."""
        path = f"{name}.{self.path}" if self.path else name
        return ParseError(code=self.code, message=self.message, path=path, causes=self.causes)

    def chain(self, cause: BaseException | ParseError) -> ParseError:
        """Chain this error with a cause."""
        return ParseError(
            code=self.code,
            message=self.message,
            path=self.path,
            causes=(*self.causes, cause),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize error for API responses."""
        data: dict[str, Any] = {
            "code": self.code.name,
            "code_num": self.code.value,
            "category": self.code.category,
            "message": self.message,
        }
        if self.path:
            data["field"] = self.path
        if self.causes:
            data["causes"] = [str(c) for c in self.causes]
        return data

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message


class ValidationError(Exception):
    """Raised when a caller demands a value from an invalid parse.

    Ordinary bad input never raises; this only surfaces from
    ``ParseResult.unwrap()`` and ``ObjectResult.unmarshal()``.
    """

    def __init__(self, errors: list[ParseError] | tuple[ParseError, ...], message: str = "validation failed"):
        self.errors = tuple(errors)
        self.message = message
        super().__init__(self._format())

    def _format(self) -> str:
        if not self.errors:
            return self.message
        return f"{self.message}: " + ", ".join(str(e) for e in self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": {
                "type": "validation_error",
                "message": self.message,
                "errors": [e.to_dict() for e in self.errors],
            }
        }


@final
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Coercion succeeded with ``value``."""
    value: T

    def unwrap(self) -> T:
        return self.value

    def and_then(self, f: Callable[[T], Result[U, Any]]) -> Result[U, Any]:
        return f(self.value)

    def map_err(self, f: Callable[[Any], F]) -> Result[T, F]:
        return self


@final
@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Coercion or decoding failed with ``error``; later steps are skipped."""
    error: E

    def unwrap(self) -> NoReturn:
        raise ValidationError([self.error] if isinstance(self.error, ParseError) else [])

    def and_then(self, f: Callable[[Any], Result[U, E]]) -> Result[U, E]:
        return self

    def map_err(self, f: Callable[[E], F]) -> Result[Any, F]:
        return Err(f(self.error))


Result = Union[Ok[T], Err[E]]
