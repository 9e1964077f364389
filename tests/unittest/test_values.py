import pytest

from formy import (
    Bool,
    Float32,
    Float64,
    Int,
    InvalidArgument,
    OptionalValue,
    Text,
    field_value,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        (Text("text"), "text"),
        (Int(42), "42"),
        (Int(-7), "-7"),
        (Bool(False), "false"),
        (Bool(True), "true"),
        (Float64(0.42), "0.42"),
        (Float64(100.0), "100.0"),
        (Float32(0.42), "0.42"),
        (Float32(0.1), "0.1"),
        (Float32(1.0), "1.0"),
        (Float32(16777217.0), "16777216.0"),
    ],
)
def test_render(value, expected):
    assert value.render() == expected


def test_float32_special_values():
    assert Float32(float("inf")).render() == "inf"
    assert Float32(float("nan")).render() == "nan"
    # out of single precision range
    assert Float32(1e300).render() == "1e+300"


def test_field_value_boxing():
    assert field_value("a") == Text("a")
    assert field_value(3) == Int(3)
    assert field_value(True) == Bool(True)
    assert field_value(0.5) == Float64(0.5)
    boxed = Float32(0.5)
    assert field_value(boxed) is boxed


@pytest.mark.parametrize("value", [[1], {"a": 1}, b"bytes", object()])
def test_field_value_rejects_unsupported(value):
    with pytest.raises(InvalidArgument):
        field_value(value)


def test_zero_values():
    assert Text("").is_zero()
    assert Int(0).is_zero()
    assert Bool(False).is_zero()
    assert Float32(0.0).is_zero()
    assert Float64(-0.0).is_zero()
    assert not Int(1).is_zero()
    assert not Bool(True).is_zero()


def test_optional_value():
    present = OptionalValue.of({"a": 1})
    assert present.present
    assert present
    assert present.value == {"a": 1}

    # a present None is still present
    assert OptionalValue.of(None).present

    empty = OptionalValue.empty()
    assert not empty
    with pytest.raises(InvalidArgument):
        empty.value


@pytest.mark.parametrize(
    "value",
    [Int(None), Int("7"), Int(1.5), Bool("yes"), Text(3), Float32("abc"), Float64(None)],
)
def test_field_value_rejects_wrong_variant_payload(value):
    with pytest.raises(InvalidArgument):
        field_value(value)


def test_numeric_variants_accept_ints():
    assert field_value(Float64(2)).render() == "2.0"
    assert field_value(Float32(2)).render() == "2.0"
