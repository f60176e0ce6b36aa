"""Explicit Coercion Strategies

Coercion rules convert a foreign representation into a validator's target
type and report failure through Result, never by raising.

Features:
- Type-safe coercion with Result types
- One NumberType descriptor per numeric width with a reject-on-overflow policy
- String to number through a float intermediate (integers truncate toward zero)
- Layout-driven date/time parsing
- Copy-on-write coercion chains per target type
"""
from __future__ import annotations

import math
import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Callable, Generic, TypeVar
from uuid import UUID

from ursa.errors import (
    Err,
    Ok,
    ParseError,
    Result,
    invalid_type_err,
    invalid_value,
    invalid_value_err,
)

from .values import UploadedFile, ValueKind

T = TypeVar("T")
S = TypeVar("S")

ISO8601 = "iso8601"
RFC3339 = "rfc3339"


@dataclass(frozen=True, slots=True)
class CoercionRule(ABC, Generic[S, T]):
    """Base class for coercion rules.

    Each rule defines:
    - Source type(s) it can coerce from
    - Target type it coerces to
    - The actual coercion logic
    """

    @property
    @abstractmethod
    def source_types(self) -> tuple[type, ...]:
        """Types this rule can coerce from."""

    @property
    @abstractmethod
    def target_type(self) -> type:
        """Type this rule coerces to."""

    def can_coerce(self, value: Any) -> bool:
        return isinstance(value, self.source_types) and not isinstance(value, bool)

    @abstractmethod
    def coerce(self, value: Any) -> Result[T, ParseError]:
        """Coerce value to target type. Returns Result."""

    def __call__(self, value: Any) -> Result[T, ParseError]:
        return self.coerce(value)


# ============================================================================
# Numbers
# ============================================================================

@dataclass(frozen=True, slots=True)
class NumberType:
    """A closed numeric representation: integer width/signedness or float width."""
    name: str
    integral: bool
    bits: int = 64
    signed: bool = True

    @property
    def python_type(self) -> type:
        return int if self.integral else float

    @property
    def bounds(self) -> tuple[int, int] | None:
        if not self.integral:
            return None
        if self.signed:
            return -(1 << (self.bits - 1)), (1 << (self.bits - 1)) - 1
        return 0, (1 << self.bits) - 1

    def zero(self) -> int | float:
        return 0 if self.integral else 0.0

    def narrow(self, value: int | float | Decimal) -> Result[int | float, ParseError]:
        """Convert to this representation, rejecting values it cannot hold."""
        if self.integral:
            if isinstance(value, (float, Decimal)) and not math.isfinite(value):
                return invalid_value_err("number out of range")
            number = int(value)  # truncates toward zero
            lo, hi = self.bounds
            if not lo <= number <= hi:
                return invalid_value_err(f"number out of range for {self.name}")
            return Ok(number)

        try:
            number = float(value)
        except OverflowError:
            return invalid_value_err(f"number out of range for {self.name}")
        if self.bits == 32 and math.isfinite(number):
            try:
                number = struct.unpack("f", struct.pack("f", number))[0]
            except OverflowError:
                return invalid_value_err(f"number out of range for {self.name}")
            # some interpreters round past-range values to inf instead of raising
            if math.isinf(number):
                return invalid_value_err(f"number out of range for {self.name}")
        elif math.isinf(number) and not (isinstance(value, float) and math.isinf(value)):
            return invalid_value_err(f"number out of range for {self.name}")
        return Ok(number)


INT = NumberType("int", integral=True)
INT8 = NumberType("int8", integral=True, bits=8)
INT16 = NumberType("int16", integral=True, bits=16)
INT32 = NumberType("int32", integral=True, bits=32)
INT64 = NumberType("int64", integral=True, bits=64)
UINT = NumberType("uint", integral=True, signed=False)
UINT8 = NumberType("uint8", integral=True, bits=8, signed=False)
UINT16 = NumberType("uint16", integral=True, bits=16, signed=False)
UINT32 = NumberType("uint32", integral=True, bits=32, signed=False)
UINT64 = NumberType("uint64", integral=True, bits=64, signed=False)
FLOAT32 = NumberType("float32", integral=False, bits=32)
FLOAT64 = NumberType("float64", integral=False, bits=64)


@dataclass(frozen=True, slots=True)
class NumberNarrowing(CoercionRule[Any, Any]):
    """Adopt a native number into a specific width."""
    number_type: NumberType

    @property
    def source_types(self) -> tuple[type, ...]:
        return (int, float, Decimal)

    @property
    def target_type(self) -> type:
        return self.number_type.python_type

    def coerce(self, value: Any) -> Result[int | float, ParseError]:
        if not self.can_coerce(value):
            return invalid_type_err(f"cannot coerce {type(value).__name__} to {self.number_type.name}")
        return self.number_type.narrow(value)


@dataclass(frozen=True, slots=True)
class StringToNumber(CoercionRule[str, Any]):
    """Coerce text to a number.

    Integer targets parse exact integers first, then fall back to a float
    intermediate that truncates toward zero ("3.9" -> 3). ``strict`` rejects
    the fractional fallback instead.
    """
    number_type: NumberType
    strict: bool = False

    @property
    def source_types(self) -> tuple[type, ...]:
        return (str,)

    @property
    def target_type(self) -> type:
        return self.number_type.python_type

    def coerce(self, value: Any) -> Result[int | float, ParseError]:
        if not isinstance(value, str):
            return invalid_type_err(f"cannot coerce {type(value).__name__} to {self.number_type.name}")

        stripped = value.strip()
        if self.number_type.integral:
            try:
                return self.number_type.narrow(int(stripped))
            except ValueError:
                pass
        try:
            number = float(stripped)
        except ValueError as e:
            return invalid_type_err(cause=e)

        if self.strict and self.number_type.integral and not number.is_integer():
            return invalid_value_err(f"'{value}' is not a whole number")
        return self.number_type.narrow(number)


# ============================================================================
# Booleans
# ============================================================================

@dataclass(frozen=True, slots=True)
class StringToBool(CoercionRule[str, bool]):
    """Coerce string to boolean.

    Truthy: "true", "1", "yes", "on", "y"
    Falsy: "false", "0", "no", "off", "n"
    """
    true_values: frozenset[str] = frozenset({"true", "1", "yes", "on", "y"})
    false_values: frozenset[str] = frozenset({"false", "0", "no", "off", "n"})

    @property
    def source_types(self) -> tuple[type, ...]:
        return (str,)

    @property
    def target_type(self) -> type[bool]:
        return bool

    def coerce(self, value: Any) -> Result[bool, ParseError]:
        if not isinstance(value, str):
            return invalid_type_err(f"cannot coerce {type(value).__name__} to bool")

        lower = value.strip().lower()
        if lower in self.true_values:
            return Ok(True)
        if lower in self.false_values:
            return Ok(False)

        return invalid_value_err(
            f"cannot coerce '{value}' to bool, valid values: {sorted(self.true_values | self.false_values)}"
        )


# ============================================================================
# Dates
# ============================================================================

@dataclass(frozen=True, slots=True)
class TextToTime(CoercionRule[str, datetime]):
    """Parse text to datetime with a layout.

    ``ISO8601`` and ``RFC3339`` use ``datetime.fromisoformat`` (RFC3339 also
    demands an offset); any other layout is a ``strptime`` format.
    """
    layout: str = ISO8601

    @property
    def source_types(self) -> tuple[type, ...]:
        return (str, bytes)

    @property
    def target_type(self) -> type[datetime]:
        return datetime

    def coerce(self, value: Any) -> Result[datetime, ParseError]:
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="replace")
        if not isinstance(value, str):
            return invalid_type_err(f"cannot parse {type(value).__name__} as datetime")
        try:
            return Ok(self._parse(value.strip()))
        except ValueError as e:
            return invalid_value_err(f"cannot parse '{value}' with layout {self.layout}", cause=e)

    def _parse(self, value: str) -> datetime:
        if self.layout in (ISO8601, RFC3339):
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            if self.layout == RFC3339 and parsed.tzinfo is None:
                raise ValueError("RFC3339 timestamps require a UTC offset")
            return parsed
        return datetime.strptime(value, self.layout)


@dataclass(frozen=True, slots=True)
class DateToDateTime(CoercionRule[date, datetime]):
    """Adopt a native date or datetime; plain dates become midnight."""

    @property
    def source_types(self) -> tuple[type, ...]:
        return (date,)

    @property
    def target_type(self) -> type[datetime]:
        return datetime

    def coerce(self, value: Any) -> Result[datetime, ParseError]:
        if isinstance(value, datetime):
            return Ok(value)
        if isinstance(value, date):
            return Ok(datetime.combine(value, time()))
        return invalid_type_err(f"cannot coerce {type(value).__name__} to datetime")


# ============================================================================
# Identifiers
# ============================================================================

@dataclass(frozen=True, slots=True)
class StringToUUID(CoercionRule[str, UUID]):
    """Coerce canonical, braced, URN or hex text to UUID."""

    @property
    def source_types(self) -> tuple[type, ...]:
        return (str,)

    @property
    def target_type(self) -> type[UUID]:
        return UUID

    def coerce(self, value: Any) -> Result[UUID, ParseError]:
        try:
            return Ok(UUID(value.strip()))
        except (ValueError, AttributeError) as e:
            return invalid_value_err(f"'{value}' is not a valid uuid", cause=e)


@dataclass(frozen=True, slots=True)
class BytesToUUID(CoercionRule[bytes, UUID]):
    """Coerce 16 raw bytes, or their textual form, to UUID."""

    @property
    def source_types(self) -> tuple[type, ...]:
        return (bytes, bytearray, memoryview)

    @property
    def target_type(self) -> type[UUID]:
        return UUID

    def coerce(self, value: Any) -> Result[UUID, ParseError]:
        raw = bytes(value)
        if len(raw) == 16:
            return Ok(UUID(bytes=raw))
        try:
            return Ok(UUID(raw.decode("ascii").strip()))
        except (ValueError, UnicodeDecodeError) as e:
            return invalid_value_err("bytes are not a valid uuid", cause=e)


# ============================================================================
# Files
# ============================================================================

@dataclass(frozen=True, slots=True)
class FilesAdoption(CoercionRule[Any, list]):
    """Adopt one uploaded file or a sequence of them as a list."""

    @property
    def source_types(self) -> tuple[type, ...]:
        return (UploadedFile, list, tuple)

    @property
    def target_type(self) -> type[list]:
        return list

    def coerce(self, value: Any) -> Result[list[UploadedFile], ParseError]:
        if isinstance(value, UploadedFile):
            return Ok([value])
        files = list(value)
        if all(isinstance(f, UploadedFile) for f in files):
            return Ok(files)
        return invalid_type_err("expected uploaded files")


# ============================================================================
# User Transformers
# ============================================================================

@dataclass(frozen=True, slots=True)
class Identity(CoercionRule[Any, Any]):
    """Adopt the value unchanged."""

    @property
    def source_types(self) -> tuple[type, ...]:
        return (object,)

    @property
    def target_type(self) -> type:
        return object

    def coerce(self, value: Any) -> Result[Any, ParseError]:
        return Ok(value)


@dataclass(frozen=True, slots=True)
class FunctionTransformer(CoercionRule[Any, Any]):
    """Wrap a user callable; any exception it raises becomes an invalid value."""
    fn: Callable[[Any], Any]

    @property
    def source_types(self) -> tuple[type, ...]:
        return (object,)

    @property
    def target_type(self) -> type:
        return object

    def coerce(self, value: Any) -> Result[Any, ParseError]:
        try:
            out = self.fn(value)
        except Exception as e:
            return Err(invalid_value(f"transformer failed: {e}", cause=e))
        match out:
            case Ok() | Err():
                return out
        return Ok(out)


# ============================================================================
# Target Types
# ============================================================================

@dataclass(frozen=True, slots=True)
class CoercionChain:
    """Ordered conversions tried by source type. Immutable; add_rule copies."""
    rules: tuple[CoercionRule, ...] = ()

    def add_rule(self, rule: CoercionRule) -> CoercionChain:
        return CoercionChain((*self.rules, rule))

    def find(self, value: Any) -> CoercionRule | None:
        for rule in self.rules:
            if rule.can_coerce(value):
                return rule
        return None


@dataclass(frozen=True, slots=True)
class TargetType:
    """What a scalar validator produces and how foreign inputs reach it.

    ``native`` kinds are adopted through ``adopt``; other kinds go through a
    configured transformer or ``conversions``; kinds in ``needs_transformer``
    fail with a missing-transformer error when nothing is configured.
    """
    name: str
    family: str
    native: frozenset[ValueKind]
    zero: Callable[[], Any]
    adopt: CoercionRule = field(default_factory=Identity)
    conversions: CoercionChain = field(default_factory=CoercionChain)
    needs_transformer: frozenset[ValueKind] = frozenset()


def number_target(number_type: NumberType, *, strict: bool = False) -> TargetType:
    return TargetType(
        name=number_type.name,
        family="number",
        native=frozenset({ValueKind.NUMBER}),
        zero=number_type.zero,
        adopt=NumberNarrowing(number_type),
        conversions=CoercionChain().add_rule(StringToNumber(number_type, strict)),
    )


STRING_TARGET = TargetType(
    name="string",
    family="string",
    native=frozenset({ValueKind.TEXT}),
    zero=str,
)

BOOL_TARGET = TargetType(
    name="bool",
    family="bool",
    native=frozenset({ValueKind.BOOLEAN}),
    zero=bool,
    conversions=CoercionChain().add_rule(StringToBool()),
)

TIME_TARGET = TargetType(
    name="time",
    family="time",
    native=frozenset({ValueKind.TEMPORAL}),
    zero=lambda: None,
    adopt=DateToDateTime(),
    needs_transformer=frozenset({ValueKind.TEXT, ValueKind.BYTES}),
)

UUID_TARGET = TargetType(
    name="uuid",
    family="uuid",
    native=frozenset({ValueKind.IDENTIFIER}),
    zero=lambda: UUID(int=0),
    conversions=CoercionChain().add_rule(StringToUUID()).add_rule(BytesToUUID()),
)

FILES_TARGET = TargetType(
    name="files",
    family="files",
    native=frozenset({ValueKind.FILE, ValueKind.LIST}),
    zero=list,
    adopt=FilesAdoption(),
)
