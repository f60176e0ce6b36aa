"""Compositional Rule System

Rules are pure predicates over an already-coerced value. A validator runs
every rule and collects every failure; rules never raise.

Features:
- Frozen dataclass rules for immutability
- Per-rule message override with fixed defaults per error code
- Patterns compiled once at construction; a bad pattern fails every check
- Family tags so a rule attached to the wrong target is a build error
"""
from __future__ import annotations

import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from email.utils import parseaddr
from typing import Any, Callable, ClassVar

from ursa.errors import ErrorCode, ParseError, invalid_value, rule_error

ANY = "any"


@dataclass(frozen=True, slots=True)
class Rule(ABC):
    """Base class for rules.

    Subclasses declare which target families they understand and implement
    ``check``; ``fail`` builds the error using the override message if set.
    """
    message: str | None = field(default=None, kw_only=True)

    families: ClassVar[frozenset[str]] = frozenset({ANY})

    @abstractmethod
    def check(self, value: Any) -> ParseError | None:
        """Return an error if ``value`` violates the rule."""

    @property
    @abstractmethod
    def constraint_name(self) -> str:
        """Human-readable constraint name for logs and build errors."""

    def applies_to(self, family: str) -> bool:
        return ANY in self.families or family in self.families

    def fail(self, code: ErrorCode, *, cause: BaseException | None = None) -> ParseError:
        return rule_error(code, self.message, cause=cause)

    def __call__(self, value: Any) -> ParseError | None:
        return self.check(value)


# ============================================================================
# Numeric Rules
# ============================================================================

NUMBER = frozenset({"number"})


@dataclass(frozen=True, slots=True)
class Min(Rule):
    """Lower bound, compared in float space."""
    value: int | float

    families: ClassVar[frozenset[str]] = NUMBER

    @property
    def constraint_name(self) -> str:
        return f"min[{self.value}]"

    def check(self, value: Any) -> ParseError | None:
        if float(value) < float(self.value):
            return self.fail(ErrorCode.E2000_TOO_SMALL)
        return None


@dataclass(frozen=True, slots=True)
class Max(Rule):
    """Upper bound, compared in float space."""
    value: int | float

    families: ClassVar[frozenset[str]] = NUMBER

    @property
    def constraint_name(self) -> str:
        return f"max[{self.value}]"

    def check(self, value: Any) -> ParseError | None:
        if float(value) > float(self.value):
            return self.fail(ErrorCode.E2001_TOO_LARGE)
        return None


@dataclass(frozen=True, slots=True)
class NonZero(Rule):
    families: ClassVar[frozenset[str]] = NUMBER

    @property
    def constraint_name(self) -> str:
        return "non_zero"

    def check(self, value: Any) -> ParseError | None:
        return self.fail(ErrorCode.E2002_ZERO) if value == 0 else None


@dataclass(frozen=True, slots=True)
class MustBeInteger(Rule):
    """Fractional part must be exactly zero."""
    families: ClassVar[frozenset[str]] = NUMBER

    @property
    def constraint_name(self) -> str:
        return "integer"

    def check(self, value: Any) -> ParseError | None:
        if isinstance(value, int):
            return None
        number = float(value)
        if not math.isfinite(number) or not number.is_integer():
            return self.fail(ErrorCode.E2003_NOT_INTEGER)
        return None


# ============================================================================
# String Rules
# ============================================================================

STRING = frozenset({"string"})


@dataclass(frozen=True, slots=True)
class MinLength(Rule):
    """At least ``length`` characters (code points, not encoded bytes)."""
    length: int

    families: ClassVar[frozenset[str]] = STRING

    @property
    def constraint_name(self) -> str:
        return f"min_length[{self.length}]"

    def check(self, value: Any) -> ParseError | None:
        return self.fail(ErrorCode.E2010_TOO_SHORT) if len(value) < self.length else None


@dataclass(frozen=True, slots=True)
class MaxLength(Rule):
    """At most ``length`` characters (code points, not encoded bytes)."""
    length: int

    families: ClassVar[frozenset[str]] = STRING

    @property
    def constraint_name(self) -> str:
        return f"max_length[{self.length}]"

    def check(self, value: Any) -> ParseError | None:
        return self.fail(ErrorCode.E2011_TOO_LONG) if len(value) > self.length else None


@dataclass(frozen=True, slots=True)
class Matches(Rule):
    """Search the string for a regex pattern.

    The pattern is compiled once. A malformed pattern does not raise; every
    check reports an invalid-pattern error carrying the compile failure.
    """
    pattern: str
    flags: int = 0
    _compiled: re.Pattern | None = field(init=False, repr=False, compare=False, default=None)
    _compile_error: re.error | None = field(init=False, repr=False, compare=False, default=None)

    families: ClassVar[frozenset[str]] = STRING

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "_compiled", re.compile(self.pattern, self.flags))
        except re.error as e:
            object.__setattr__(self, "_compile_error", e)

    @property
    def constraint_name(self) -> str:
        return f"pattern[{self.pattern}]"

    def check(self, value: Any) -> ParseError | None:
        if self._compiled is None:
            return rule_error(ErrorCode.E2013_INVALID_PATTERN, cause=self._compile_error)
        if self._compiled.search(value) is None:
            return self.fail(ErrorCode.E2012_PATTERN_MISMATCH)
        return None


@dataclass(frozen=True, slots=True)
class Email(Rule):
    """Validate an email address.

    Accepts a bare address or the RFC 5322 display-name form
    ("Bob <bob@example.com>"); the address part must look like
    local@domain.tld.
    """
    _PATTERN: ClassVar[re.Pattern] = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

    families: ClassVar[frozenset[str]] = STRING

    @property
    def constraint_name(self) -> str:
        return "email"

    def check(self, value: Any) -> ParseError | None:
        name, addr = parseaddr(value)
        text = value.strip()
        if name or text.endswith(">"):
            well_formed = text.endswith(f"<{addr}>")
        else:
            well_formed = addr == text
        if not addr or not well_formed or not self._PATTERN.match(addr):
            return self.fail(ErrorCode.E2014_INVALID_EMAIL)
        return None


@dataclass(frozen=True, slots=True)
class OneOf(Rule):
    """Value must equal one of the allowed values."""
    allowed: tuple[Any, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "allowed", tuple(self.allowed))

    @property
    def constraint_name(self) -> str:
        return f"one_of[{', '.join(map(str, self.allowed))}]"

    def check(self, value: Any) -> ParseError | None:
        return None if value in self.allowed else self.fail(ErrorCode.E2015_NOT_IN_ENUM)


# ============================================================================
# Boolean Rules
# ============================================================================

BOOL = frozenset({"bool"})


@dataclass(frozen=True, slots=True)
class MustBeTrue(Rule):
    families: ClassVar[frozenset[str]] = BOOL

    @property
    def constraint_name(self) -> str:
        return "true"

    def check(self, value: Any) -> ParseError | None:
        return None if value is True else self.fail(ErrorCode.E2020_NOT_TRUE)


@dataclass(frozen=True, slots=True)
class MustBeFalse(Rule):
    families: ClassVar[frozenset[str]] = BOOL

    @property
    def constraint_name(self) -> str:
        return "false"

    def check(self, value: Any) -> ParseError | None:
        return None if value is False else self.fail(ErrorCode.E2021_NOT_FALSE)


# ============================================================================
# Temporal Rules
# ============================================================================

TIME = frozenset({"time"})


@dataclass(frozen=True, slots=True)
class NotBefore(Rule):
    threshold: datetime

    families: ClassVar[frozenset[str]] = TIME

    @property
    def constraint_name(self) -> str:
        return f"not_before[{self.threshold.isoformat()}]"

    def check(self, value: Any) -> ParseError | None:
        if value is None:
            return None
        try:
            early = value < self.threshold
        except TypeError as e:
            return invalid_value("cannot compare naive and aware datetimes", cause=e)
        return self.fail(ErrorCode.E2030_TOO_EARLY) if early else None


@dataclass(frozen=True, slots=True)
class NotAfter(Rule):
    threshold: datetime

    families: ClassVar[frozenset[str]] = TIME

    @property
    def constraint_name(self) -> str:
        return f"not_after[{self.threshold.isoformat()}]"

    def check(self, value: Any) -> ParseError | None:
        if value is None:
            return None
        try:
            late = value > self.threshold
        except TypeError as e:
            return invalid_value("cannot compare naive and aware datetimes", cause=e)
        return self.fail(ErrorCode.E2031_TOO_LATE) if late else None


# ============================================================================
# Identifier Rules
# ============================================================================

@dataclass(frozen=True, slots=True)
class NonNull(Rule):
    """At least one byte of the 128-bit identifier must be nonzero."""
    families: ClassVar[frozenset[str]] = frozenset({"uuid"})

    @property
    def constraint_name(self) -> str:
        return "non_null"

    def check(self, value: Any) -> ParseError | None:
        return self.fail(ErrorCode.E2040_NULL_IDENTIFIER) if value.int == 0 else None


# ============================================================================
# File Rules
# ============================================================================

FILES = frozenset({"files"})


@dataclass(frozen=True, slots=True)
class MaxFileCount(Rule):
    count: int

    families: ClassVar[frozenset[str]] = FILES

    @property
    def constraint_name(self) -> str:
        return f"max_file_count[{self.count}]"

    def check(self, value: Any) -> ParseError | None:
        return self.fail(ErrorCode.E2050_TOO_MANY_FILES) if len(value) > self.count else None


@dataclass(frozen=True, slots=True)
class MaxFileSize(Rule):
    """Every file must be at most ``size`` bytes."""
    size: int

    families: ClassVar[frozenset[str]] = FILES

    @property
    def constraint_name(self) -> str:
        return f"max_file_size[{self.size}]"

    def check(self, value: Any) -> ParseError | None:
        if any(f.size > self.size for f in value):
            return self.fail(ErrorCode.E2051_FILE_TOO_LARGE)
        return None


# ============================================================================
# Custom Rules
# ============================================================================

@dataclass(frozen=True, slots=True)
class Custom(Rule):
    """Wrap a predicate. Exceptions it raises become a failed check.

    Usage:
        even = Custom(lambda n: n % 2 == 0, message="must be even")
    """
    predicate: Callable[[Any], bool]
    name: str = "custom"

    @property
    def constraint_name(self) -> str:
        return self.name

    def check(self, value: Any) -> ParseError | None:
        try:
            passed = self.predicate(value)
        except Exception as e:
            return self.fail(ErrorCode.E2090_CUSTOM, cause=e)
        return None if passed else self.fail(ErrorCode.E2090_CUSTOM)
