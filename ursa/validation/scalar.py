"""Scalar Validators

One frozen validator type covers every primitive target (numbers of each
width, strings, booleans, date/time, UUID, files). Factories consume rules
and options once and return a sealed validator; any build problem is kept
as a sticky error returned by every parse.

Coercion precedence for a present input:
1. already the target type -> adopt (numbers are narrowed to their width)
2. transformer configured -> transform, then adopt
3. built-in conversion for the input type -> convert
4. input needs a transformer that was never registered -> missing transformer
5. otherwise -> invalid type
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, TypeVar

from ursa.config import get_settings
from ursa.errors import (
    Err,
    Ok,
    ParseError,
    Result,
    invalid_type,
    invalid_validator_state,
    missing_transformer,
    required_missing,
)
from ursa.logging import schema_logger

from .coercion import (
    BOOL_TARGET,
    FILES_TARGET,
    FLOAT32,
    FLOAT64,
    INT,
    INT8,
    INT16,
    INT32,
    INT64,
    STRING_TARGET,
    TIME_TARGET,
    UINT,
    UINT8,
    UINT16,
    UINT32,
    UINT64,
    UUID_TARGET,
    CoercionRule,
    FunctionTransformer,
    NumberType,
    TargetType,
    TextToTime,
    number_target,
)
from .options import Required, Strict, WithDefault, WithTimeFormat, WithTransformer
from .result import ParseResult
from .rules import Rule
from .values import MISSING, ValueKind, classify

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class ScalarValidator(Generic[T]):
    """Sealed schema node for a single primitive-shaped value."""
    target: TargetType
    rules: tuple[Rule, ...] = ()
    transformer: CoercionRule | None = None
    default: Any = MISSING
    required: bool = False
    required_message: str | None = None
    build_error: ParseError | None = None

    @property
    def error(self) -> ParseError | None:
        return self.build_error

    def parse(self, value: Any = MISSING) -> ParseResult[T]:
        if self.build_error is not None:
            return ParseResult(self.target.zero(), [self.build_error])

        kind = classify(value)
        if kind is ValueKind.ABSENT:
            if self.default is not MISSING:
                return self.parse(self.default)
            if self.required:
                return ParseResult(self.target.zero(), [required_missing(self.required_message)])
            return ParseResult(self.target.zero())

        match self.coerce(value, kind):
            case Err(error):
                return ParseResult(self.target.zero(), [error])
            case Ok(coerced):
                result: ParseResult[T] = ParseResult(coerced)
                for rule in self.rules:
                    if (error := rule.check(coerced)) is not None:
                        result.append_error(error)
                return result

    def coerce(self, value: Any, kind: ValueKind | None = None) -> Result[T, ParseError]:
        """Convert a present input to the target type without running rules."""
        kind = kind or classify(value)
        target = self.target
        if kind in target.native:
            return target.adopt.coerce(value)
        if self.transformer is not None:
            return self.transformer.coerce(value).and_then(self._adopt_transformed)
        if (conversion := target.conversions.find(value)) is not None:
            return conversion.coerce(value)
        if kind in target.needs_transformer:
            return Err(missing_transformer())
        return Err(invalid_type())

    def _adopt_transformed(self, value: Any) -> Result[T, ParseError]:
        if classify(value) in self.target.native:
            return self.target.adopt.coerce(value)
        return Err(invalid_type(f"transformer returned {type(value).__name__}, expected {self.target.name}"))


# ============================================================================
# Builder
# ============================================================================

def build_scalar(
    target_for: Callable[[bool | None], TargetType],
    items: Iterable[Any],
) -> ScalarValidator[Any]:
    """Consume rules and options into a sealed validator.

    ``target_for`` receives the Strict option (None when absent) so number
    targets can pick their string conversion.
    """
    rules: list[Rule] = []
    transformer: CoercionRule | None = None
    default: Any = MISSING
    required, required_message = False, None
    strict: bool | None = None
    problems: list[str] = []
    causes: list[ParseError] = []

    for item in items:
        match item:
            case Rule():
                rules.append(item)
            case Required(message=message):
                required, required_message = True, message
            case WithDefault(value=value):
                default = MISSING if value is None else value
            case WithTimeFormat(layout=layout):
                transformer = TextToTime(layout)
            case WithTransformer(fn=fn):
                transformer = FunctionTransformer(fn)
            case Strict():
                strict = True
            case _:
                problems.append(f"unsupported option {item!r}")

    target = target_for(strict)
    if strict is not None and target.family != "number":
        problems.append(f"Strict() does not apply to {target.name}")
    if isinstance(transformer, TextToTime) and target.family != "time":
        problems.append(f"WithTimeFormat() does not apply to {target.name}")
    problems.extend(
        f"rule {rule.constraint_name} cannot apply to {target.name}"
        for rule in rules
        if not rule.applies_to(target.family)
    )

    validator: ScalarValidator[Any] = ScalarValidator(
        target=target,
        rules=tuple(rules),
        transformer=transformer,
        default=default,
        required=required,
        required_message=required_message,
    )
    if default is not MISSING:
        match validator.coerce(default):
            case Err(error):
                problems.append(f"default {default!r} is not a valid {target.name}")
                causes.append(error)

    if not problems:
        return validator

    schema_logger().debug("validator_build_failed", target=target.name, problems=problems)
    return ScalarValidator(
        target=target,
        build_error=invalid_validator_state("; ".join(problems), causes=tuple(causes)),
    )


def _fixed(target: TargetType) -> Callable[[bool | None], TargetType]:
    return lambda strict: target


# ============================================================================
# Factories
# ============================================================================

def String(*items: Any) -> ScalarValidator[str]:
    """Text validator.

    Usage:
        name = String(MinLength(5), Matches(r"^[a-z]+$"), Required())
    """
    return build_scalar(_fixed(STRING_TARGET), items)


def Number(number_type: NumberType, *items: Any) -> ScalarValidator[Any]:
    """Numeric validator for one width; text input is parsed, floats truncate for integer widths."""
    def target_for(strict: bool | None) -> TargetType:
        if strict is None:
            strict = get_settings().STRICT_NUMBERS
        return number_target(number_type, strict=strict)

    return build_scalar(target_for, items)


def Int(*items: Any) -> ScalarValidator[int]:
    return Number(INT, *items)


def Int8(*items: Any) -> ScalarValidator[int]:
    return Number(INT8, *items)


def Int16(*items: Any) -> ScalarValidator[int]:
    return Number(INT16, *items)


def Int32(*items: Any) -> ScalarValidator[int]:
    return Number(INT32, *items)


def Int64(*items: Any) -> ScalarValidator[int]:
    return Number(INT64, *items)


def Uint(*items: Any) -> ScalarValidator[int]:
    return Number(UINT, *items)


def Uint8(*items: Any) -> ScalarValidator[int]:
    return Number(UINT8, *items)


def Uint16(*items: Any) -> ScalarValidator[int]:
    return Number(UINT16, *items)


def Uint32(*items: Any) -> ScalarValidator[int]:
    return Number(UINT32, *items)


def Uint64(*items: Any) -> ScalarValidator[int]:
    return Number(UINT64, *items)


def Float32(*items: Any) -> ScalarValidator[float]:
    return Number(FLOAT32, *items)


def Float64(*items: Any) -> ScalarValidator[float]:
    return Number(FLOAT64, *items)


def Bool(*items: Any) -> ScalarValidator[bool]:
    return build_scalar(_fixed(BOOL_TARGET), items)


def Time(*items: Any) -> ScalarValidator[Any]:
    """Date/time validator. Text input requires WithTimeFormat(layout)."""
    return build_scalar(_fixed(TIME_TARGET), items)


def UUID(*items: Any) -> ScalarValidator[Any]:
    return build_scalar(_fixed(UUID_TARGET), items)


def Files(*items: Any) -> ScalarValidator[list]:
    """Uploaded files from a multipart field, always a list."""
    return build_scalar(_fixed(FILES_TARGET), items)
