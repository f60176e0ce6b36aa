"""Object Validators

Composite schema node: an ordered set of named field validators, optional
cross-field refiners, and a request body cap. Every builder method returns
a new frozen validator, so one schema can be shared by concurrent parses.

Usage:
    signup = (
        Object(WithMaxBodySize(64 * 1024))
        .string("Name", MinLength(5), Required())
        .int("Count", Min(1))
        .refine(lambda r: None if r.get("Count") < 100 else "too many")
    )
    result = signup.parse(request)
    if result.valid:
        form = result.unmarshal(SignupForm)
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Union

from ursa.config import get_settings
from ursa.errors import (
    ErrorCode,
    Err,
    Ok,
    ParseError,
    extraction_failed,
    invalid_validator_state,
    required_missing,
    rule_error,
)
from ursa.logging import schema_logger

from . import scalar
from .options import Required, WithMaxBodySize
from .result import ObjectResult, ParseResult, Validator, failed
from .sources import decode_json, field_source, read_request
from .values import MISSING, ValueKind, classify

RefinerOutcome = Union[ParseError, str, list[ParseError | str], tuple[ParseError | str, ...], None]
Refiner = Callable[[ObjectResult], RefinerOutcome]


def _default_max_body_size() -> int:
    return get_settings().MAX_BODY_SIZE


@dataclass(frozen=True, slots=True)
class ObjectValidator:
    """Sealed schema node for a structured record of named fields."""
    fields: tuple[tuple[str, Validator], ...] = ()
    refiners: tuple[Refiner, ...] = ()
    max_body_size: int = field(default_factory=_default_max_body_size)
    required: bool = False
    required_message: str | None = None
    build_error: ParseError | None = None

    @property
    def error(self) -> ParseError | None:
        return self.build_error

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.fields)

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def parse(self, value: Any = MISSING) -> ObjectResult:
        if self.build_error is not None:
            return ObjectResult(errors=[self.build_error])

        match classify(value):
            case ValueKind.BYTES:
                decoded = decode_json(value)
            case ValueKind.REQUEST:
                decoded = read_request(value, self.max_body_size)
            case ValueKind.ABSENT:
                if self.required:
                    return ObjectResult(errors=[required_missing(self.required_message)])
                return self._parse_fields(field_source({}))
            case ValueKind.MAPPING | ValueKind.RECORD:
                return self._parse_fields(field_source(value))
            case _:
                return self._parse_fields(None, value)

        match decoded:
            case Ok(mapping):
                return self.parse(mapping)
            case Err(error):
                return ObjectResult(errors=[error])

    def _parse_fields(self, source: Callable[[str], Any] | None, raw: Any = None) -> ObjectResult:
        result = ObjectResult()
        for name, validator in self.fields:
            if source is None:
                child = failed(extraction_failed(raw))
            else:
                child = validator.parse(source(name))
            result.fields[name] = child
            for error in child.errors:
                result.append_error(error.at(name))

        for refiner in self.refiners:
            for error in _refine(refiner, result):
                result.append_error(error)
        return result

    def from_state(self, state: Any) -> ObjectResult:
        """Wrap an existing mapping/record as a valid result without validating."""
        source = field_source(state)
        result = ObjectResult()
        for name, validator in self.fields:
            value = source(name)
            if isinstance(validator, ObjectValidator):
                result.fields[name] = validator.from_state({} if value is MISSING or value is None else value)
            else:
                result.fields[name] = ParseResult(None if value is MISSING else value)
        return result

    # ------------------------------------------------------------------
    # Builder methods
    # ------------------------------------------------------------------

    def field(self, name: str, validator: Validator) -> ObjectValidator:
        """Append a field; a duplicate name seals the schema with a build error."""
        if name in self.field_names:
            schema_logger().debug("duplicate_field", field=name)
            return replace(self, build_error=self.build_error or invalid_validator_state(
                f"duplicate field {name!r}"
            ))
        return replace(self, fields=(*self.fields, (name, validator)))

    def refine(self, refiner: Refiner) -> ObjectValidator:
        """Add a whole-object check run after the fields.

        The refiner returns None, a message, a ParseError or a list of them;
        any other return value is reported as a custom error.
        """
        return replace(self, refiners=(*self.refiners, refiner))

    def with_max_body_size(self, size: int) -> ObjectValidator:
        return replace(self, max_body_size=size)

    def string(self, name: str, *items: Any) -> ObjectValidator:
        return self.field(name, scalar.String(*items))

    def int(self, name: str, *items: Any) -> ObjectValidator:
        return self.field(name, scalar.Int(*items))

    def int8(self, name: str, *items: Any) -> ObjectValidator:
        return self.field(name, scalar.Int8(*items))

    def int16(self, name: str, *items: Any) -> ObjectValidator:
        return self.field(name, scalar.Int16(*items))

    def int32(self, name: str, *items: Any) -> ObjectValidator:
        return self.field(name, scalar.Int32(*items))

    def int64(self, name: str, *items: Any) -> ObjectValidator:
        return self.field(name, scalar.Int64(*items))

    def uint(self, name: str, *items: Any) -> ObjectValidator:
        return self.field(name, scalar.Uint(*items))

    def uint8(self, name: str, *items: Any) -> ObjectValidator:
        return self.field(name, scalar.Uint8(*items))

    def uint16(self, name: str, *items: Any) -> ObjectValidator:
        return self.field(name, scalar.Uint16(*items))

    def uint32(self, name: str, *items: Any) -> ObjectValidator:
        return self.field(name, scalar.Uint32(*items))

    def uint64(self, name: str, *items: Any) -> ObjectValidator:
        return self.field(name, scalar.Uint64(*items))

    def float32(self, name: str, *items: Any) -> ObjectValidator:
        return self.field(name, scalar.Float32(*items))

    def float64(self, name: str, *items: Any) -> ObjectValidator:
        return self.field(name, scalar.Float64(*items))

    def bool(self, name: str, *items: Any) -> ObjectValidator:
        return self.field(name, scalar.Bool(*items))

    def time(self, name: str, *items: Any) -> ObjectValidator:
        return self.field(name, scalar.Time(*items))

    def uuid(self, name: str, *items: Any) -> ObjectValidator:
        return self.field(name, scalar.UUID(*items))

    def files(self, name: str, *items: Any) -> ObjectValidator:
        return self.field(name, scalar.Files(*items))

    def object(self, name: str, validator: ObjectValidator) -> ObjectValidator:
        return self.field(name, validator)


def Object(*items: Any, **fields: Validator) -> ObjectValidator:
    """Build an object schema from options and keyword fields (kept in order)."""
    validator = ObjectValidator()
    problems: list[str] = []
    for item in items:
        match item:
            case Required(message=message):
                validator = replace(validator, required=True, required_message=message)
            case WithMaxBodySize(size=size) if size > 0:
                validator = replace(validator, max_body_size=size)
            case _:
                problems.append(f"unsupported option {item!r}")

    for name, child in fields.items():
        validator = validator.field(name, child)

    if problems:
        schema_logger().debug("validator_build_failed", target="object", problems=problems)
        return replace(validator, build_error=invalid_validator_state("; ".join(problems)))
    return validator


def _refine(refiner: Refiner, result: ObjectResult) -> list[ParseError]:
    """Normalize a refiner outcome; an exception counts as a failed check."""
    try:
        outcome = refiner(result)
    except Exception as e:
        return [rule_error(ErrorCode.E2090_CUSTOM, f"refiner failed: {e}", cause=e)]
    match outcome:
        case None:
            return []
        case ParseError() | str():
            return [_refiner_error(outcome)]
        case list() | tuple():
            return [_refiner_error(item) for item in outcome]
        case _:
            return [_refiner_error(outcome)]


def _refiner_error(item: Any) -> ParseError:
    match item:
        case ParseError():
            return item
        case str():
            return rule_error(ErrorCode.E2090_CUSTOM, item)
        case _:
            return rule_error(ErrorCode.E2090_CUSTOM, f"refiner returned {type(item).__name__}")
