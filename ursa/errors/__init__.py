"""Parse Error Handling

Typed parse errors and the Result monad.

Key Features:
- ErrorCode taxonomy with default messages and HTTP status mapping
- Frozen ParseError values compared by code, never by identity
- Ok/Err Result used by coercion strategies instead of exceptions
- ValidationError raised only when a caller demands an invalid value

Usage:
    from ursa.errors import ErrorCode, ParseError, Ok, Err

    match coerce(value):
        case Ok(v):
            ...
        case Err(error) if error.is_(ErrorCode.E1000_INVALID_TYPE):
            ...
"""
from .types import (
    ErrorCode,
    ParseError,
    ValidationError,
    Ok,
    Err,
    Result,
)
from .builders import (
    invalid_type,
    invalid_value,
    invalid_type_err,
    invalid_value_err,
    missing_transformer,
    required_missing,
    extraction_failed,
    rule_error,
    body_too_large,
    body_size_mismatch,
    unsupported_content_type,
    malformed_body,
    invalid_validator_state,
)

__all__ = [
    "ErrorCode",
    "ParseError",
    "ValidationError",
    "Ok",
    "Err",
    "Result",
    "invalid_type",
    "invalid_value",
    "invalid_type_err",
    "invalid_value_err",
    "missing_transformer",
    "required_missing",
    "extraction_failed",
    "rule_error",
    "body_too_large",
    "body_size_mismatch",
    "unsupported_content_type",
    "malformed_body",
    "invalid_validator_state",
]
