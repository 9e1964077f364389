from __future__ import annotations

import binascii
import os
import re
from typing import IO, Mapping, Optional, Union

from .exceptions import FormClosed, InvalidArgument, IOFailure
from .utils import escape_quotes

# RFC 2046 bchars, space is allowed but not as the last character
_BOUNDARY_RE = re.compile(r"[0-9A-Za-z'()+_,\-./:=? ]{0,69}[0-9A-Za-z'()+_,\-./:=?]")
_NEEDS_QUOTING_RE = re.compile(r"[()<>@,;:\\\"/\[\]?= ]")


def random_boundary() -> str:
    return binascii.hexlify(os.urandom(30)).decode("ascii")


class PartWriter:
    """Sink for the body of one part.

    Only the most recently opened part accepts bytes, earlier parts are
    finished as soon as the next one is created.
    """

    def __init__(self, writer: MultipartWriter) -> None:
        self._writer = writer
        self.closed = False

    def write(self, data: bytes) -> int:
        if self.closed:
            raise IOFailure("can't write to finished part")
        return self._writer._write(data)

    def close(self) -> None:
        self.closed = True


class MultipartWriter:
    """Boundary framing over a binary sink.

    Args:
        sink: any object with a ``write(bytes)`` method. It is never closed here.
        boundary: use this boundary instead of a random one.
    """

    def __init__(self, sink: IO[bytes], boundary: Optional[str] = None) -> None:
        self._sink = sink
        self._boundary = random_boundary()
        self._last_part: Optional[PartWriter] = None
        self._closed = False
        if boundary is not None:
            self.set_boundary(boundary)

    @property
    def boundary(self) -> str:
        return self._boundary

    def set_boundary(self, boundary: str) -> None:
        """Override the random boundary, only allowed before the first part.

        Raises:
            InvalidArgument: if parts were already written or the boundary breaks
                RFC 2046 rules.
        """
        if self._last_part is not None:
            raise InvalidArgument("set_boundary called after write")
        if not isinstance(boundary, str) or not _BOUNDARY_RE.fullmatch(boundary):
            raise InvalidArgument(f"invalid boundary: {boundary!r}")
        self._boundary = boundary

    def form_data_content_type(self) -> str:
        b = self._boundary
        if _NEEDS_QUOTING_RE.search(b):
            b = f'"{b}"'
        return f"multipart/form-data; boundary={b}"

    def _write(self, data: bytes) -> int:
        try:
            n = self._sink.write(data)
        except (OSError, ValueError) as e:
            raise IOFailure(f"write to sink failed: {e}") from e
        return len(data) if n is None else n

    def create_part(self, headers: Mapping[str, str]) -> PartWriter:
        """Finish the current part and start a new one with ``headers``.

        Headers are written sorted by name, one ``Name: value`` line each.
        """
        if self._closed:
            raise FormClosed("multipart writer is closed")
        lines = []
        for name in sorted(headers):
            value = headers[name]
            if "\r" in value or "\n" in value or "\r" in name or "\n" in name:
                raise InvalidArgument(f"invalid header {name!r}: {value!r}")
            lines.append(f"{name}: {value}\r\n")

        if self._last_part is not None:
            delimiter = f"\r\n--{self._boundary}\r\n"
        else:
            delimiter = f"--{self._boundary}\r\n"
        try:
            head = (delimiter + "".join(lines) + "\r\n").encode("utf-8")
        except UnicodeEncodeError as e:
            raise InvalidArgument(f"header can not be encoded: {e}") from e
        if self._last_part is not None:
            self._last_part.close()
        part = PartWriter(self)
        self._last_part = part
        self._write(head)
        return part

    def write_field(self, name: str, value: Union[str, bytes]) -> None:
        if not isinstance(value, (str, bytes)):
            raise InvalidArgument(
                f"invalid type for field value, expected str or bytes: {type(value).__name__}",
                field=name,
            )
        if isinstance(value, str):
            try:
                value = value.encode("utf-8")
            except UnicodeEncodeError as e:
                raise InvalidArgument(f"field value can not be encoded: {e}", field=name) from e
        part = self.create_part(
            {"Content-Disposition": f'form-data; name="{escape_quotes(name)}"'}
        )
        part.write(value)

    def close(self) -> None:
        """Finish the last part and write the closing boundary."""
        if self._closed:
            raise FormClosed("multipart writer is closed")
        self._closed = True
        if self._last_part is not None:
            self._last_part.close()
        self._write(f"\r\n--{self._boundary}--\r\n".encode("utf-8"))

    @property
    def closed(self) -> bool:
        return self._closed
