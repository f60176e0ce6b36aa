"""Shared fixtures for ursa tests."""
from __future__ import annotations

import logging
from typing import Callable

import pytest
import structlog

from ursa.config import get_settings
from ursa.validation import Int, MinLength, Object, ObjectValidator, String

BOUNDARY = "ursa-test-boundary"


@pytest.fixture(autouse=True)
def _isolated_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers, root.level = handlers, level


@pytest.fixture
def fresh_settings(monkeypatch: pytest.MonkeyPatch):
    """Clear the settings cache around a test that sets URSA_* variables."""
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


@pytest.fixture
def name_count_schema() -> ObjectValidator:
    return Object(Name=String(MinLength(5)), Count=Int())


def _multipart(
    fields: dict[str, str],
    files: dict[str, list[tuple[str, bytes]]] | None = None,
) -> tuple[bytes, str]:
    parts: list[bytes] = []
    for name, value in fields.items():
        parts.append(
            f'--{BOUNDARY}\r\nContent-Disposition: form-data; name="{name}"\r\n\r\n{value}\r\n'.encode()
        )
    for name, uploads in (files or {}).items():
        for filename, data in uploads:
            header = (
                f'--{BOUNDARY}\r\nContent-Disposition: form-data; name="{name}"; filename="{filename}"\r\n'
                "Content-Type: application/octet-stream\r\n\r\n"
            ).encode()
            parts.append(header + data + b"\r\n")
    parts.append(f"--{BOUNDARY}--\r\n".encode())
    return b"".join(parts), f"multipart/form-data; boundary={BOUNDARY}"


@pytest.fixture
def multipart() -> Callable[..., tuple[bytes, str]]:
    """Builder returning (body, content type) for a multipart form."""
    return _multipart
