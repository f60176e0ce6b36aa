"""Input Value Classification

Every raw input is classified once into a closed set of ValueKind tags at
the parse boundary; validators dispatch on the tag instead of probing the
runtime type repeatedly.
"""
from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum, auto
from io import BytesIO
from typing import Any, BinaryIO, Protocol, runtime_checkable
from uuid import UUID

from pydantic import BaseModel


class _Missing(Enum):
    MISSING = auto()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing.MISSING
"""Marker for a field that is not present in its source (distinct from None)."""


class ValueKind(Enum):
    ABSENT = auto()
    NUMBER = auto()
    TEXT = auto()
    BOOLEAN = auto()
    TEMPORAL = auto()
    IDENTIFIER = auto()
    RECORD = auto()
    MAPPING = auto()
    LIST = auto()
    BYTES = auto()
    FILE = auto()
    REQUEST = auto()
    OTHER = auto()


@runtime_checkable
class RequestLike(Protocol):
    """Minimal HTTP request surface consumed by the request source adapter."""
    method: str
    headers: Mapping[str, str]
    query_string: str
    content_length: int | None
    body: bytes | BinaryIO


@dataclass(frozen=True, slots=True)
class UploadedFile:
    """A file part from a multipart body, fully buffered."""
    field_name: str
    filename: str
    data: bytes = b""

    @property
    def size(self) -> int:
        return len(self.data)

    def open(self) -> BytesIO:
        return BytesIO(self.data)


def is_record(value: Any) -> bool:
    """Structured records: dataclass/pydantic instances, named tuples, plain objects."""
    if isinstance(value, type):
        return False
    if dataclasses.is_dataclass(value) or isinstance(value, BaseModel):
        return True
    if isinstance(value, tuple) and hasattr(value, "_fields"):
        return True
    return hasattr(value, "__dict__") and not callable(value) and type(value).__module__ != "builtins"


def classify(value: Any) -> ValueKind:
    """Tag a raw input. bool is checked before numbers since it subclasses int."""
    match value:
        case None | _Missing.MISSING:
            return ValueKind.ABSENT
        case bool():
            return ValueKind.BOOLEAN
        case int() | float() | Decimal():
            return ValueKind.NUMBER
        case str():
            return ValueKind.TEXT
        case date():
            return ValueKind.TEMPORAL
        case UUID():
            return ValueKind.IDENTIFIER
        case bytes() | bytearray() | memoryview():
            return ValueKind.BYTES
        case UploadedFile():
            return ValueKind.FILE
        case Mapping():
            return ValueKind.MAPPING
        case _ if isinstance(value, RequestLike):
            return ValueKind.REQUEST
        case _ if is_record(value):
            return ValueKind.RECORD
        case list() | tuple() | set() | frozenset():
            return ValueKind.LIST
        case _:
            return ValueKind.OTHER
