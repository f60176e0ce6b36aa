"""Schema Build Options

Options are frozen values passed to validator factories alongside rules.
They are consumed once at build time; a built validator is sealed.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Union


@dataclass(frozen=True, slots=True)
class Required:
    """Field must be present (or covered by a default)."""
    message: str | None = None


@dataclass(frozen=True, slots=True)
class WithDefault:
    """Substitute ``value`` when input is absent; it is parsed like any input."""
    value: Any


@dataclass(frozen=True, slots=True)
class WithTimeFormat:
    """Register a text-to-datetime transformer using ``layout``."""
    layout: str


@dataclass(frozen=True, slots=True)
class WithTransformer:
    """Register a custom transformer; exceptions become invalid-value errors."""
    fn: Callable[[Any], Any]


@dataclass(frozen=True, slots=True)
class Strict:
    """Reject fractional text for integer targets instead of truncating."""


@dataclass(frozen=True, slots=True)
class WithMaxBodySize:
    """Cap request body bytes accepted by an object schema."""
    size: int


Option = Union[Required, WithDefault, WithTimeFormat, WithTransformer, Strict, WithMaxBodySize]
