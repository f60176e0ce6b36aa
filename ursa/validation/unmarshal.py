"""Result Unmarshalling

Copy a valid ObjectResult into a dict, a dataclass, a pydantic model or a
plain object. Each target attribute resolves its source field through an
ordered list of aliases (dataclass ``metadata`` keys ``json``, ``form``,
``query``; pydantic ``validation_alias``/``alias``) with the attribute name
as fallback; the first alias present in the result wins. Nested records are
filled from nested object results.
"""
from __future__ import annotations

import dataclasses
import types
import typing
from collections.abc import MutableMapping
from typing import Any, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ursa.errors import ErrorCode, ValidationError, invalid_value

from .result import ObjectResult, ParseResult

ALIAS_TAGS = ("json", "form", "query")


def unmarshal(result: ObjectResult, target: Any) -> Any:
    """Fill ``target`` (instance or class) from ``result``.

    Raises ValidationError if the result is invalid; nothing is written.
    Classes are instantiated and the new instance returned; frozen instances
    are copied. Mutable instances and dicts are filled in place and returned.
    """
    if not result.valid:
        raise ValidationError(result.errors, ErrorCode.E9001_CANNOT_UNMARSHAL.default_message)

    if isinstance(target, MutableMapping):
        target.update(result.value)
        return target
    if isinstance(target, type):
        return _construct(result, target)
    return _fill_instance(result, target)


# ============================================================================
# Attribute Discovery
# ============================================================================

def _attributes(cls: type) -> list[tuple[str, tuple[str, ...], Any]]:
    """(attribute, aliases in priority order, type hint) for a target class."""
    try:
        hints = get_type_hints(cls)
    except (NameError, TypeError):
        hints = {}

    if isinstance(cls, type) and issubclass(cls, BaseModel):
        attrs = []
        for name, info in cls.model_fields.items():
            aliases = [a for a in (info.validation_alias, info.alias) if isinstance(a, str)]
            attrs.append((name, (*aliases, name), hints.get(name, info.annotation)))
        return attrs

    if dataclasses.is_dataclass(cls):
        return [
            (f.name, (*(f.metadata[tag] for tag in ALIAS_TAGS if tag in f.metadata), f.name), hints.get(f.name, Any))
            for f in dataclasses.fields(cls)
        ]

    return [
        (name, (name,), hint)
        for name, hint in hints.items()
        if not name.startswith("_") and get_origin(hint) is not typing.ClassVar
    ]


def _lookup(result: ObjectResult, aliases: tuple[str, ...]) -> ParseResult[Any] | ObjectResult | None:
    for alias in aliases:
        if alias in result.fields:
            return result.fields[alias]
    return None


def _record_type(hint: Any) -> type | None:
    """The dataclass/pydantic class inside ``hint`` (Optional unwrapped)."""
    if get_origin(hint) in (Union, types.UnionType):
        candidates = [a for a in get_args(hint) if a is not type(None)]
        hint = candidates[0] if len(candidates) == 1 else None
    if isinstance(hint, type) and (dataclasses.is_dataclass(hint) or issubclass(hint, BaseModel)):
        return hint
    return None


def _convert(child: ParseResult[Any] | ObjectResult, hint: Any) -> Any:
    if isinstance(child, ObjectResult):
        record = _record_type(hint)
        return _construct(child, record) if record is not None else child.value
    return child.value


def _values(result: ObjectResult, cls: type) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for attr, aliases, hint in _attributes(cls):
        child = _lookup(result, aliases)
        if child is not None:
            values[attr] = _convert(child, hint)
    return values


# ============================================================================
# Construction
# ============================================================================

def _construct(result: ObjectResult, cls: type) -> Any:
    values = _values(result, cls)
    try:
        if issubclass(cls, BaseModel):
            by_key = {}
            for attr, aliases, _ in _attributes(cls):
                if attr in values:
                    by_key[aliases[0]] = values[attr]
            return cls.model_validate(by_key)
        if dataclasses.is_dataclass(cls):
            init = {f.name for f in dataclasses.fields(cls) if f.init}
            instance = cls(**{k: v for k, v in values.items() if k in init})
            for k, v in values.items():
                if k not in init:
                    object.__setattr__(instance, k, v)
            return instance
        instance = cls()
    except (TypeError, PydanticValidationError) as e:
        raise ValidationError(
            [invalid_value(f"cannot build {cls.__name__}", cause=e)],
            ErrorCode.E9001_CANNOT_UNMARSHAL.default_message,
        ) from e

    if not values:
        values = {name: _convert(child, None) for name, child in result.fields.items()}
    for attr, value in values.items():
        setattr(instance, attr, value)
    return instance


def _fill_instance(result: ObjectResult, target: Any) -> Any:
    cls = type(target)
    values = _values(result, cls)

    if dataclasses.is_dataclass(target):
        params = getattr(cls, "__dataclass_params__", None)
        if params is not None and params.frozen:
            return dataclasses.replace(target, **values)
    if isinstance(target, BaseModel) and cls.model_config.get("frozen"):
        return target.model_copy(update=values)

    if not values and not _attributes(cls):
        values = {name: _convert(child, None) for name, child in result.fields.items()}
    for attr, value in values.items():
        setattr(target, attr, value)
    return target
