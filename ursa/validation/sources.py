"""Source Adapters

Normalize byte payloads, records and HTTP requests into a flat mapping of
field name to raw value. Decoding itself is left to ``json``,
``urllib.parse`` and ``python_multipart``; this module only dispatches and
shapes the output.

Content-type dispatch:
    application/json                   -> JSON object
    application/x-www-form-urlencoded  -> body merged over query, first value per key
    multipart/form-data                -> text parts as above, file parts as UploadedFile lists
    GET/HEAD or no body                -> query string
    anything else                      -> unsupported content type
"""
from __future__ import annotations

import io
import json
from collections.abc import Mapping
from contextlib import ExitStack
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Callable
from urllib.parse import parse_qs

from python_multipart import create_form_parser
from python_multipart.exceptions import FormParserError
from python_multipart.multipart import parse_options_header

from ursa.config import get_settings
from ursa.errors import (
    Err,
    Ok,
    ParseError,
    Result,
    body_size_mismatch,
    body_too_large,
    malformed_body,
    unsupported_content_type,
)
from ursa.logging import source_logger

from .values import MISSING, UploadedFile


@dataclass(frozen=True, slots=True)
class HTTPRequest:
    """Framework-neutral request satisfying ``RequestLike``.

    ``content_length`` of None means unknown; the body is then read up to
    the size cap.
    """
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    query_string: str = ""
    body: bytes | BinaryIO = b""
    content_length: int | None = None

    @classmethod
    def build(
        cls,
        method: str = "GET",
        *,
        content_type: str | None = None,
        body: bytes = b"",
        query_string: str = "",
        headers: Mapping[str, str] | None = None,
    ) -> HTTPRequest:
        """Request with a fully buffered body and matching Content-Length."""
        merged = dict(headers or {})
        if content_type is not None:
            merged["Content-Type"] = content_type
        return cls(
            method=method,
            headers=merged,
            query_string=query_string,
            body=body,
            content_length=len(body),
        )


# ============================================================================
# Records and Mappings
# ============================================================================

def field_source(value: Any) -> Callable[[str], Any]:
    """Lookup function returning MISSING for absent names."""
    if isinstance(value, Mapping):
        return lambda name: value.get(name, MISSING)
    return lambda name: getattr(value, name, MISSING)


# ============================================================================
# Payload Decoders
# ============================================================================

def decode_json(payload: bytes | bytearray | memoryview) -> Result[dict[str, Any], ParseError]:
    try:
        decoded = json.loads(bytes(payload))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return malformed_body("unmarshalling JSON value", cause=e)
    if not isinstance(decoded, dict):
        return malformed_body(f"expected a JSON object, got {type(decoded).__name__}")
    return Ok(decoded)


def decode_query(query: str | bytes) -> dict[str, str]:
    """First value per key, blank values kept."""
    if isinstance(query, bytes):
        query = query.decode("latin-1")
    return {key: values[0] for key, values in parse_qs(query, keep_blank_values=True).items()}


def decode_form(body: bytes, query: Mapping[str, Any]) -> Result[dict[str, Any], ParseError]:
    try:
        form = decode_query(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        return malformed_body("parsing form", cause=e)
    return Ok({**query, **form})


def decode_multipart(
    body: bytes,
    content_type: str,
    query: Mapping[str, Any],
) -> Result[dict[str, Any], ParseError]:
    """Text parts keep their first value; file parts collect per field name.

    Part buffers (memory or spooled temp files) are closed on every exit.
    """
    fields: dict[str, Any] = {}
    files: dict[str, list[UploadedFile]] = {}

    with ExitStack() as stack:
        def on_field(part: Any) -> None:
            stack.callback(part.close)
            name = (part.field_name or b"").decode("utf-8")
            fields.setdefault(name, (part.value or b"").decode("utf-8"))

        def on_file(part: Any) -> None:
            stack.callback(part.close)
            name = (part.field_name or b"").decode("utf-8")
            handle = part.file_object
            handle.seek(0)
            files.setdefault(name, []).append(UploadedFile(
                field_name=name,
                filename=(part.file_name or b"").decode("utf-8"),
                data=handle.read(),
            ))

        headers = {"Content-Type": content_type, "Content-Length": str(len(body))}
        try:
            parser = create_form_parser(
                headers,
                on_field,
                on_file,
                config={"MAX_MEMORY_FILE_SIZE": get_settings().MAX_MEMORY_FILE_SIZE},
            )
            stack.callback(parser.close)
            parser.write(body)
            parser.finalize()
        except (FormParserError, UnicodeDecodeError) as e:
            return malformed_body("parsing multipart form", cause=e)

    return Ok({**query, **fields, **files})


# ============================================================================
# Requests
# ============================================================================

def read_request(request: Any, max_body_size: int) -> Result[dict[str, Any], ParseError]:
    """Demultiplex a request-like value on its content type."""
    log = source_logger()
    raw_type = _header(request.headers, "content-type")
    content_type = content_type_of(request.headers)
    length = request.content_length
    method = (request.method or "GET").upper()
    query = decode_query(request.query_string or "")

    if length is not None and length > max_body_size:
        log.warning("request_body_too_large", content_length=length, max_body_size=max_body_size)
        return body_too_large(length, max_body_size)

    match content_type:
        case "application/json":
            return _read_body(request, length, max_body_size).and_then(decode_json).map_err(_logged)
        case "application/x-www-form-urlencoded":
            return _read_body(request, length, max_body_size).and_then(
                lambda body: decode_form(body, query)
            ).map_err(_logged)
        case "multipart/form-data":
            return _read_body(request, length, max_body_size).and_then(
                lambda body: decode_multipart(body, raw_type, query)
            ).map_err(_logged)
        case _ if method in ("GET", "HEAD") or (not content_type and not length):
            return Ok(query)
        case _:
            log.warning("unsupported_content_type", content_type=content_type, method=method)
            return unsupported_content_type(content_type)


def _read_body(request: Any, length: int | None, max_body_size: int) -> Result[bytes, ParseError]:
    """Read exactly ``length`` bytes, or up to the cap when length is unknown."""
    body = request.body
    stream = io.BytesIO(bytes(body)) if isinstance(body, (bytes, bytearray, memoryview)) else body

    if length is None:
        data = _read_up_to(stream, max_body_size + 1)
        if len(data) > max_body_size:
            return body_too_large(None, max_body_size)
        return Ok(data)

    data = _read_up_to(stream, length)
    if len(data) != length:
        return body_size_mismatch(length, len(data))
    return Ok(data)


def _read_up_to(stream: BinaryIO, limit: int) -> bytes:
    chunks: list[bytes] = []
    remaining = limit
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def _header(headers: Mapping[str, str], name: str) -> str:
    value = headers.get(name)
    if value is None:
        lowered = name.lower()
        value = next((v for k, v in headers.items() if k.lower() == lowered), "")
    return value or ""


def _logged(error: ParseError) -> ParseError:
    source_logger().info("request_body_rejected", code=error.code.name, message=error.message)
    return error


def content_type_of(headers: Mapping[str, str]) -> str:
    """Media type without parameters, e.g. "multipart/form-data"."""
    media_type, _ = parse_options_header(_header(headers, "content-type"))
    return media_type.decode("latin-1").lower()
