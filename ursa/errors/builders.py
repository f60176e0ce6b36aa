"""Parse Error Builders

Ergonomic constructors for typed parse errors. Each builder returns a
ParseError with the appropriate code; ``*_err`` variants wrap it in Err for
the coercion layer.
"""
from typing import Any

from .types import Err, ErrorCode, ParseError


# =============================================================================
# Coercion Errors (E1xxx)
# =============================================================================

def invalid_type(message: str = "", *, cause: BaseException | ParseError | None = None) -> ParseError:
    """Input shape has no conversion to the target type."""
    return _build(ErrorCode.E1000_INVALID_TYPE, message, cause)


def invalid_value(message: str = "", *, cause: BaseException | ParseError | None = None) -> ParseError:
    """A conversion exists but failed for this input."""
    return _build(ErrorCode.E1001_INVALID_VALUE, message, cause)


def missing_transformer() -> ParseError:
    return ParseError(ErrorCode.E1002_MISSING_TRANSFORMER)


def required_missing(message: str | None = None) -> ParseError:
    return ParseError(ErrorCode.E1003_REQUIRED_PROPERTY_MISSING, message or "")


def extraction_failed(value: Any) -> ParseError:
    return invalid_type(f"failed to extract value from {type(value).__name__}")


def invalid_type_err(message: str = "", *, cause: BaseException | None = None) -> Err[ParseError]:
    return Err(invalid_type(message, cause=cause))


def invalid_value_err(message: str = "", *, cause: BaseException | None = None) -> Err[ParseError]:
    return Err(invalid_value(message, cause=cause))


# =============================================================================
# Rule Errors (E2xxx)
# =============================================================================

def rule_error(code: ErrorCode, message: str | None = None, *, cause: BaseException | None = None) -> ParseError:
    """Rule violation with the rule's override message or the code default."""
    return _build(code, message or "", cause)


# =============================================================================
# Source Errors (E3xxx)
# =============================================================================

def body_too_large(size: int | None, limit: int) -> Err[ParseError]:
    detail = f"{size} > {limit} bytes" if size is not None else f"over {limit} bytes"
    return Err(ParseError(
        ErrorCode.E3000_BODY_TOO_LARGE,
        f"{ErrorCode.E3000_BODY_TOO_LARGE.default_message} ({detail})",
    ))


def body_size_mismatch(expected: int, actual: int) -> Err[ParseError]:
    return Err(ParseError(
        ErrorCode.E3001_BODY_SIZE_MISMATCH,
        f"{ErrorCode.E3001_BODY_SIZE_MISMATCH.default_message} (expected {expected}, read {actual})",
    ))


def unsupported_content_type(content_type: str) -> Err[ParseError]:
    return Err(ParseError(
        ErrorCode.E3002_UNSUPPORTED_CONTENT_TYPE,
        f"{ErrorCode.E3002_UNSUPPORTED_CONTENT_TYPE.default_message}: {content_type or '<none>'}",
    ))


def malformed_body(message: str, *, cause: BaseException | None = None) -> Err[ParseError]:
    return Err(_build(ErrorCode.E3003_MALFORMED_BODY, message, cause))


# =============================================================================
# Internal Errors (E9xxx)
# =============================================================================

def invalid_validator_state(
    detail: str = "",
    *,
    causes: tuple[BaseException | ParseError, ...] = (),
) -> ParseError:
    """Schema construction failed; re-surfaced on every parse."""
    base = ErrorCode.E9000_INVALID_VALIDATOR_STATE.default_message
    return ParseError(
        ErrorCode.E9000_INVALID_VALIDATOR_STATE,
        f"{base}: {detail}" if detail else base,
        causes=causes,
    )


def _build(code: ErrorCode, message: str, cause: BaseException | ParseError | None) -> ParseError:
    return ParseError(code, message, causes=(cause,) if cause is not None else ())
