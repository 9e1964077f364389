"""Content type detection for file parts.

Binary formats are recognized by their magic numbers through ``filetype``;
everything that decodes as UTF-8 text is classified by a few textual
signatures.
"""

from __future__ import annotations

import codecs
import json
from typing import Union

import filetype

READ_LIMIT = 3072
FALLBACK_CONTENT_TYPE = "application/octet-stream"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"

_HTML_PREFIXES = (
    b"<!doctype html",
    b"<html",
    b"<head",
    b"<body",
    b"<script",
    b"<iframe",
    b"<table",
    b"<title",
    b"<div",
    b"<p>",
    b"<!--",
)
# control bytes that never show up in text files
_BINARY_BYTES = (
    frozenset(range(0x00, 0x09))
    | {0x0B}
    | frozenset(range(0x0E, 0x1B))
    | frozenset(range(0x1C, 0x20))
    | {0x7F}
)


def detect(data: Union[bytes, bytearray, memoryview]) -> str:
    """Best guess of the MIME type of ``data``, looking at its first
    ``READ_LIMIT`` bytes only.
    """
    data = bytes(data)
    if not data:
        return "text/plain"
    head = data[:READ_LIMIT]

    kind = filetype.guess(head)
    if kind is not None:
        return kind.mime

    if head.startswith(codecs.BOM_UTF8):
        return TEXT_CONTENT_TYPE
    if not _is_utf8_text(head, truncated=len(data) > READ_LIMIT):
        return FALLBACK_CONTENT_TYPE

    stripped = head.lstrip().lower()
    if stripped.startswith(b"<?xml"):
        return "text/xml; charset=utf-8"
    if stripped.startswith(_HTML_PREFIXES):
        return "text/html; charset=utf-8"
    if len(data) <= READ_LIMIT and stripped[:1] in (b"{", b"["):
        try:
            json.loads(data)
        except ValueError:
            pass
        else:
            return "application/json"
    return TEXT_CONTENT_TYPE


def _is_utf8_text(head: bytes, truncated: bool) -> bool:
    if any(b in _BINARY_BYTES for b in head):
        return False
    decoder = codecs.getincrementaldecoder("utf-8")()
    try:
        # a multibyte sequence may be cut by the read limit
        decoder.decode(head, final=not truncated)
    except UnicodeDecodeError:
        return False
    return True
