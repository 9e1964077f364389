from __future__ import annotations

import json
import os
import warnings
from enum import Enum
from io import BytesIO
from pathlib import Path
from typing import IO, Any, Callable, Dict, Mapping, Optional, Tuple, Union

from . import sniff
from .exceptions import EncodingFailure, FormClosed, FormError, InvalidArgument, IOFailure
from .framing import MultipartWriter
from .utils import FormyWarning, escape_quotes
from .values import (
    Bool,
    FieldValue,
    Float32,
    Float64,
    Int,
    OptionalValue,
    Scalar,
    field_value,
)

Predicate = Callable[[], bool]
FileSource = Union[IO[bytes], IO[str], bytes, bytearray, memoryview, str]


class EncoderState(Enum):
    ACCEPTING = "accepting"
    LATCHED = "latched"


def text_field_header(field: str) -> Dict[str, str]:
    return {"Content-Disposition": f'form-data; name="{escape_quotes(field)}"'}


def file_field_header(field: str, filename: str, content_type: str) -> Dict[str, str]:
    return {
        "Content-Disposition": (
            f'form-data; name="{escape_quotes(field)}"; filename="{escape_quotes(filename)}"'
        ),
        "Content-Type": content_type,
    }


def _read_all(source: FileSource, field: str) -> bytes:
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    if isinstance(source, str):
        return source.encode("utf-8")
    read = getattr(source, "read", None)
    if read is None:
        raise InvalidArgument(
            f"file reader has no read method: {type(source).__name__}", field=field
        )
    try:
        data = read()
    except (OSError, ValueError) as e:
        raise IOFailure(f"reading file for field {field!r} failed: {e}", field=field) from e
    if isinstance(data, str):
        return data.encode("utf-8")
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise IOFailure(
            f"reader for field {field!r} returned {type(data).__name__}, expected bytes",
            field=field,
        )
    return bytes(data)


class FormEncoder:
    """Chainable builder for a ``multipart/form-data`` body.

    Every ``write_*`` method returns the encoder itself. Nothing raises in the
    middle of a chain: the first failure is latched, later writes are skipped,
    and :meth:`close` raises it.

    Example::

        buf = BytesIO()
        form = FormEncoder(buf)
        form.write_string("name", "value").write_int("count", 3).write_file(
            "upload", "notes.txt", open("notes.txt", "rb")
        ).close()
        headers = {"Content-Type": form.content_type}

    Args:
        sink: binary output, anything with ``write(bytes)``. The encoder never
            closes it.
        boundary: fixed boundary instead of a random one.
        detect_content_type: sniff the content type of file parts, otherwise
            they are sent as ``application/octet-stream``.
    """

    def __init__(
        self,
        sink: IO[bytes],
        boundary: Optional[str] = None,
        detect_content_type: bool = True,
    ) -> None:
        self._writer = MultipartWriter(sink, boundary=boundary)
        self.detect_content_type = detect_content_type
        self.state = EncoderState.ACCEPTING
        self.error: Optional[FormError] = None
        self._closed = False
        self._close_error: Optional[FormError] = None

    def __enter__(self) -> FormEncoder:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if exc_type is None:
            self.close()
        elif not self._closed:
            self._closed = True
            try:
                self._writer.close()
            except FormError as e:
                self._close_error = e

    def set_content_type_detection(self, enabled: bool) -> None:
        self.detect_content_type = enabled

    @property
    def boundary(self) -> str:
        return self._writer.boundary

    @property
    def content_type(self) -> str:
        """Value for the ``Content-Type`` header of the request carrying this body."""
        return self._writer.form_data_content_type()

    @property
    def closed(self) -> bool:
        return self._closed

    def _latch(self, err: FormError, field: Optional[str] = None) -> FormEncoder:
        if self.state is EncoderState.ACCEPTING:
            if err.field is None:
                err.field = field
            self.error = err
            self.state = EncoderState.LATCHED
        return self

    def _accepting(self) -> bool:
        if self.state is EncoderState.ACCEPTING and self._closed:
            self._latch(FormClosed("form already closed"))
        return self.state is EncoderState.ACCEPTING

    # text fields

    def write_text(self, field: str, value: Scalar) -> FormEncoder:
        """Create a part named ``field`` holding the canonical text of ``value``.

        Supported values are ``str``, ``int``, ``bool``, ``float`` and the
        variants from :mod:`formy.values`. ``True`` is written as ``true``,
        ``0.42`` as ``0.42``.
        """
        if not self._accepting():
            return self
        if not field:
            return self._latch(InvalidArgument("empty field name"))
        if value is None or (isinstance(value, FieldValue) and value.value is None):
            return self._latch(InvalidArgument("empty field value"), field)
        try:
            body = field_value(value).render().encode("utf-8")
        except FormError as e:
            return self._latch(e, field)
        except (TypeError, ValueError, OverflowError) as e:
            err = InvalidArgument(f"can not render field {field!r}: {e}")
            err.__cause__ = e
            return self._latch(err, field)
        try:
            part = self._writer.create_part(text_field_header(field))
            part.write(body)
        except FormError as e:
            self._latch(e, field)
        return self

    def write_text_if(self, field: str, value: Scalar, predicate: Predicate) -> FormEncoder:
        """Same as :meth:`write_text` if ``predicate()`` is true, otherwise does
        nothing at all, not even argument checks."""
        if predicate():
            return self.write_text(field, value)
        return self

    def write_int(self, field: str, i: int) -> FormEncoder:
        return self.write_text(field, Int(i))

    def write_optional_int(self, field: str, i: int) -> FormEncoder:
        """Write ``i`` unless it is zero."""
        return self._write_unless_zero(field, Int(i))

    def write_bool(self, field: str, b: bool) -> FormEncoder:
        return self.write_text(field, Bool(b))

    def write_optional_bool(self, field: str, b: bool) -> FormEncoder:
        """Write ``b`` only if it is true."""
        return self._write_unless_zero(field, Bool(b))

    def write_float32(self, field: str, f: float) -> FormEncoder:
        return self.write_text(field, Float32(f))

    def write_optional_float32(self, field: str, f: float) -> FormEncoder:
        return self._write_unless_zero(field, Float32(f))

    def write_float64(self, field: str, f: float) -> FormEncoder:
        return self.write_text(field, Float64(f))

    def write_optional_float64(self, field: str, f: float) -> FormEncoder:
        return self._write_unless_zero(field, Float64(f))

    def _write_unless_zero(self, field: str, value) -> FormEncoder:
        return self.write_text_if(field, value, lambda: not value.is_zero())

    def write_string(self, field: str, s: str) -> FormEncoder:
        """Write ``s`` as is through the framing writer's field shortcut."""
        if not self._accepting():
            return self
        try:
            self._writer.write_field(field, s)
        except FormError as e:
            self._latch(e, field)
        return self

    def write_optional_string(
        self, field: str, s: str, predicate: Optional[Predicate] = None
    ) -> FormEncoder:
        """Write ``s`` if it is not empty, or, when given, if ``predicate()`` holds."""
        should_write = predicate() if predicate is not None else s != ""
        if should_write:
            return self.write_string(field, s)
        return self

    # json fields

    def write_json(self, field: str, value: Any) -> FormEncoder:
        """Create a part named ``field`` holding ``value`` encoded as JSON.

        ``<``, ``>`` and ``&`` are kept literal and non-ASCII text is written as
        UTF-8. NaN and infinities are rejected.
        """
        if not self._accepting():
            return self
        if not field:
            return self._latch(InvalidArgument("empty field name"))
        if value is None:
            return self._latch(InvalidArgument("empty field value"), field)
        return self._write_json_part(field, value)

    def write_optional_json(self, field: str, value: Any) -> FormEncoder:
        """Like :meth:`write_json` but ``None`` and an empty
        :class:`~formy.values.OptionalValue` are skipped. An empty field name is
        still an error.
        """
        if not self._accepting():
            return self
        if not field:
            return self._latch(InvalidArgument("empty field name"))
        if isinstance(value, OptionalValue):
            if not value.present:
                return self
            value = value.value
        if value is None:
            return self
        return self._write_json_part(field, value)

    def _write_json_part(self, field: str, value: Any) -> FormEncoder:
        try:
            payload = json.dumps(
                value, ensure_ascii=False, separators=(",", ":"), allow_nan=False
            )
        except (TypeError, ValueError, RecursionError) as e:
            err = EncodingFailure(f"can not encode field {field!r} as json: {e}")
            err.__cause__ = e
            return self._latch(err, field)
        try:
            part = self._writer.create_part(text_field_header(field))
            part.write((payload + "\n").encode("utf-8"))
        except FormError as e:
            self._latch(e, field)
        return self

    # file fields

    def write_file(self, field: str, filename: str, reader: FileSource) -> FormEncoder:
        """Create a file part from everything ``reader`` yields.

        The whole content is read into memory first, since the content type has
        to be in the part headers before any of the body is written.

        Args:
            field: form field name.
            filename: file name sent to the server.
            reader: a file-like object, or the content itself as bytes or str.
        """
        if not self._accepting():
            return self
        if not field:
            return self._latch(InvalidArgument("empty field name"))
        if not filename:
            return self._latch(InvalidArgument("empty file name"), field)
        if reader is None:
            return self._latch(InvalidArgument("empty file reader"), field)
        try:
            data = _read_all(reader, field)
            content_type = self._content_type_for(filename, data)
            part = self._writer.create_part(file_field_header(field, filename, content_type))
            part.write(data)
        except FormError as e:
            self._latch(e, field)
        return self

    def write_file_path(
        self,
        field: str,
        path: Union[str, bytes, Path],
        filename: Optional[str] = None,
    ) -> FormEncoder:
        """Upload a local file, named after its base name unless ``filename`` is given."""
        if not self._accepting():
            return self
        if not path:
            return self._latch(InvalidArgument("empty file path"), field)
        try:
            path_str = os.fsdecode(path)
        except TypeError as e:
            err = InvalidArgument(f"invalid file path type: {type(path).__name__}")
            err.__cause__ = e
            return self._latch(err, field)
        if filename is None:
            filename = Path(path_str).name
        try:
            f = open(path_str, "rb")
        except OSError as e:
            err = IOFailure(f"can not open file at {path_str!r}: {e}")
            err.__cause__ = e
            return self._latch(err, field)
        except ValueError as e:
            # embedded null byte
            err = InvalidArgument(f"invalid file path {path_str!r}: {e}")
            err.__cause__ = e
            return self._latch(err, field)
        with f:
            return self.write_file(field, filename, f)

    def _content_type_for(self, filename: str, data: bytes) -> str:
        if not self.detect_content_type:
            return sniff.FALLBACK_CONTENT_TYPE
        try:
            return sniff.detect(data)
        except Exception as e:
            warnings.warn(
                f"content type detection failed for {filename!r}, "
                f"using {sniff.FALLBACK_CONTENT_TYPE}: {e}",
                FormyWarning,
                stacklevel=3,
            )
            return sniff.FALLBACK_CONTENT_TYPE

    def close(self) -> None:
        """Write the closing boundary and raise the first error, if any.

        The closing boundary is written even when an error was latched; a
        failure while writing it is then ignored in favor of the latched error.
        The sink itself is left open.

        Raises:
            FormError: the first error latched by a write, or the failure of the
                closing write.
        """
        if not self._closed:
            self._closed = True
            try:
                self._writer.close()
            except FormError as e:
                self._close_error = e
        if self.error is not None:
            raise self.error
        if self._close_error is not None:
            raise self._close_error


def encode_form(
    data: Mapping[str, Any],
    files: Optional[Mapping[str, Tuple[str, FileSource]]] = None,
    detect_content_type: bool = True,
) -> Tuple[bytes, str]:
    """Encode ``data`` and ``files`` into an in-memory body.

    List and tuple values in ``data`` become repeated fields. ``files`` maps a
    field name to a ``(filename, content)`` pair.

    Returns:
        the body and the matching ``Content-Type`` header value.

    Raises:
        FormError: if any field could not be written.
    """
    sink = BytesIO()
    form = FormEncoder(sink, detect_content_type=detect_content_type)
    for name, value in data.items():
        if isinstance(value, (list, tuple)):
            for item in value:
                form.write_text(name, item)
        else:
            form.write_text(name, value)
    for name, (filename, content) in (files or {}).items():
        form.write_file(name, filename, content)
    form.close()
    return sink.getvalue(), form.content_type
