"""ursa: schema validation and coercion for Python values and HTTP payloads."""
from ursa.errors import ErrorCode, ParseError, ValidationError
from ursa.validation import *  # noqa: F401,F403
from ursa.validation import __all__ as _validation_all

__version__ = "0.1.0"

__all__ = ["ErrorCode", "ParseError", "ValidationError", *_validation_all]
