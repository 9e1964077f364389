from __future__ import annotations

import struct
from typing import Any, Generic, Tuple, TypeVar, Union

from .exceptions import InvalidArgument

T = TypeVar("T")


class FieldValue:
    """A scalar form value that knows its canonical text form."""

    __slots__ = ("value",)

    zero: Any = None
    types: Tuple[type, ...] = ()

    def __init__(self, value) -> None:
        self.value = value

    def render(self) -> str:
        raise NotImplementedError()  # pragma: nocover

    def check(self) -> FieldValue:
        if not isinstance(self.value, self.types):
            raise InvalidArgument(
                f"{type(self).__name__} can not hold a {type(self.value).__name__} value"
            )
        return self

    def is_zero(self) -> bool:
        return self.value == self.zero

    def __eq__(self, other) -> bool:
        return type(self) is type(other) and self.value == other.value

    def __hash__(self) -> int:
        return hash((type(self), self.value))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.value!r})"


class Text(FieldValue):
    __slots__ = ()
    zero = ""
    types = (str,)

    def render(self) -> str:
        return str(self.value)


class Int(FieldValue):
    __slots__ = ()
    zero = 0
    types = (int,)

    def render(self) -> str:
        return str(int(self.value))


class Bool(FieldValue):
    __slots__ = ()
    zero = False
    types = (bool,)

    def render(self) -> str:
        return "true" if self.value else "false"


class Float64(FieldValue):
    __slots__ = ()
    zero = 0.0
    types = (int, float)

    def render(self) -> str:
        return repr(float(self.value))


class Float32(FieldValue):
    """Single precision float, rendered with the fewest digits that still
    identify the same float32, e.g. ``Float32(0.42)`` renders ``0.42`` and not
    ``0.41999998688697815``.
    """

    __slots__ = ()
    zero = 0.0
    types = (int, float)

    def render(self) -> str:
        value = float(self.value)
        if value != value or value in (float("inf"), float("-inf")):
            return repr(value)
        try:
            single = _to_float32(value)
        except OverflowError:
            return repr(value)
        for precision in range(1, 10):
            candidate = float(f"{single:.{precision}g}")
            if _to_float32(candidate) == single:
                return repr(candidate)
        return repr(single)  # pragma: nocover


def _to_float32(value: float) -> float:
    return struct.unpack("<f", struct.pack("<f", value))[0]


Scalar = Union[str, int, bool, float, FieldValue]


def field_value(obj: Scalar) -> FieldValue:
    """Box a native value into its variant.

    Raises:
        InvalidArgument: if ``obj`` is not one of the supported types.
    """
    if isinstance(obj, FieldValue):
        return obj.check()
    # bool before int, bool is an int subclass
    if isinstance(obj, bool):
        return Bool(obj)
    if isinstance(obj, int):
        return Int(obj)
    if isinstance(obj, float):
        return Float64(obj)
    if isinstance(obj, str):
        return Text(obj)
    raise InvalidArgument(f"unsupported field value type: {type(obj).__name__}")


class OptionalValue(Generic[T]):
    """An explicit optional, present or empty.

    ``OptionalValue.empty()`` is skipped by ``FormEncoder.write_optional_json``
    the same way ``None`` is.
    """

    __slots__ = ("_value", "present")

    def __init__(self, value: T = None, present: bool = True) -> None:
        self._value = value
        self.present = present

    @classmethod
    def of(cls, value: T) -> OptionalValue[T]:
        return cls(value, True)

    @classmethod
    def empty(cls) -> OptionalValue[Any]:
        return cls(None, False)

    @property
    def value(self) -> T:
        if not self.present:
            raise InvalidArgument("empty optional has no value")
        return self._value

    def __bool__(self) -> bool:
        return self.present

    def __repr__(self) -> str:
        if not self.present:
            return "OptionalValue.empty()"
        return f"OptionalValue.of({self._value!r})"
