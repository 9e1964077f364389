import typing
from dataclasses import dataclass, field
from io import BytesIO

import pytest
from python_multipart.multipart import MultipartParser, parse_options_header

from formy import FormEncoder, config_warnings


@dataclass
class DecodedPart:
    headers: typing.Dict[str, str] = field(default_factory=dict)
    body: bytearray = field(default_factory=bytearray)

    @property
    def _disposition(self) -> typing.Dict[bytes, bytes]:
        _, options = parse_options_header(self.headers["content-disposition"])
        return options

    @property
    def name(self) -> str:
        return self._disposition[b"name"].decode()

    @property
    def filename(self) -> typing.Optional[str]:
        filename = self._disposition.get(b"filename")
        return filename.decode() if filename is not None else None

    @property
    def content_type(self) -> typing.Optional[str]:
        return self.headers.get("content-type")


def decode(body: bytes, boundary: str) -> typing.List[DecodedPart]:
    """Parse a multipart body, header names are lowercased."""
    parts: typing.List[DecodedPart] = []
    header_field = bytearray()
    header_value = bytearray()

    def on_part_begin():
        parts.append(DecodedPart())

    def on_part_data(data, start, end):
        parts[-1].body += data[start:end]

    def on_header_field(data, start, end):
        header_field.extend(data[start:end])

    def on_header_value(data, start, end):
        header_value.extend(data[start:end])

    def on_header_end():
        parts[-1].headers[header_field.decode().lower()] = header_value.decode()
        header_field.clear()
        header_value.clear()

    parser = MultipartParser(
        boundary,
        callbacks={
            "on_part_begin": on_part_begin,
            "on_part_data": on_part_data,
            "on_header_field": on_header_field,
            "on_header_value": on_header_value,
            "on_header_end": on_header_end,
        },
    )
    parser.write(body)
    parser.finalize()
    return parts


class BrokenSink:
    """Accepts ``fail_after`` writes, then every write raises."""

    def __init__(self, fail_after: int = 0):
        self.fail_after = fail_after
        self.calls = 0
        self.buffer = bytearray()

    def write(self, data: bytes) -> int:
        if self.calls >= self.fail_after:
            raise OSError("broken pipe")
        self.calls += 1
        self.buffer += data
        return len(data)


@pytest.fixture(autouse=True)
def enable_warnings():
    config_warnings(on=True)
    yield
    config_warnings(on=False)


@pytest.fixture
def sink():
    return BytesIO()


@pytest.fixture
def form(sink):
    return FormEncoder(sink)


@pytest.fixture
def decode_form():
    return decode


@pytest.fixture
def broken_sink():
    return BrokenSink
