"""Declarative Validation and Coercion

Schemas are built once from scalar and object validators, then parse raw
values, records, JSON payloads or HTTP requests into results that report
per-field validity and every collected error.

Key Features:
- Sealed scalar validators for every numeric width, text, bool, time, UUID, files
- Rules collected without short-circuit (all failures surface)
- Explicit coercion precedence with documented truncation and overflow policy
- Object schemas with ordered fields, nested objects and refiners
- JSON, URL-encoded, multipart and query-string sources
- Unmarshal into dicts, dataclasses, pydantic models or plain objects
- FastAPI dependency for validated requests

Usage:
    from ursa.validation import Object, String, Int, MinLength, Required

    schema = Object(Name=String(MinLength(5), Required()), Count=Int())
    result = schema.parse(b'{"Name": "abcdef", "Count": 5}')
    assert result.valid and result.get_int("Count") == 5
"""

from .values import MISSING, ValueKind, RequestLike, UploadedFile, classify

from .result import ParseResult, ObjectResult, Validator

from .coercion import (
    ISO8601,
    RFC3339,
    NumberType,
    INT,
    INT8,
    INT16,
    INT32,
    INT64,
    UINT,
    UINT8,
    UINT16,
    UINT32,
    UINT64,
    FLOAT32,
    FLOAT64,
    CoercionRule,
    CoercionChain,
    TargetType,
    StringToNumber,
    StringToBool,
    TextToTime,
    StringToUUID,
    BytesToUUID,
)

from .rules import (
    Rule,
    Min,
    Max,
    NonZero,
    MustBeInteger,
    MinLength,
    MaxLength,
    Matches,
    Email,
    OneOf,
    MustBeTrue,
    MustBeFalse,
    NotBefore,
    NotAfter,
    NonNull,
    MaxFileCount,
    MaxFileSize,
    Custom,
)

from .options import (
    Required,
    WithDefault,
    WithTimeFormat,
    WithTransformer,
    Strict,
    WithMaxBodySize,
)

from .scalar import (
    ScalarValidator,
    String,
    Number,
    Int,
    Int8,
    Int16,
    Int32,
    Int64,
    Uint,
    Uint8,
    Uint16,
    Uint32,
    Uint64,
    Float32,
    Float64,
    Bool,
    Time,
    UUID,
    Files,
)

from .object import ObjectValidator, Object

from .sources import HTTPRequest, decode_json, read_request

from .unmarshal import unmarshal

__all__ = [
    # Values
    "MISSING",
    "ValueKind",
    "RequestLike",
    "UploadedFile",
    "classify",
    # Results
    "ParseResult",
    "ObjectResult",
    "Validator",
    # Coercion
    "ISO8601",
    "RFC3339",
    "NumberType",
    "INT",
    "INT8",
    "INT16",
    "INT32",
    "INT64",
    "UINT",
    "UINT8",
    "UINT16",
    "UINT32",
    "UINT64",
    "FLOAT32",
    "FLOAT64",
    "CoercionRule",
    "CoercionChain",
    "TargetType",
    "StringToNumber",
    "StringToBool",
    "TextToTime",
    "StringToUUID",
    "BytesToUUID",
    # Rules
    "Rule",
    "Min",
    "Max",
    "NonZero",
    "MustBeInteger",
    "MinLength",
    "MaxLength",
    "Matches",
    "Email",
    "OneOf",
    "MustBeTrue",
    "MustBeFalse",
    "NotBefore",
    "NotAfter",
    "NonNull",
    "MaxFileCount",
    "MaxFileSize",
    "Custom",
    # Options
    "Required",
    "WithDefault",
    "WithTimeFormat",
    "WithTransformer",
    "Strict",
    "WithMaxBodySize",
    # Validators
    "ScalarValidator",
    "String",
    "Number",
    "Int",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Uint",
    "Uint8",
    "Uint16",
    "Uint32",
    "Uint64",
    "Float32",
    "Float64",
    "Bool",
    "Time",
    "UUID",
    "Files",
    "ObjectValidator",
    "Object",
    # Sources
    "HTTPRequest",
    "decode_json",
    "read_request",
    "unmarshal",
]
