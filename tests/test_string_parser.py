import pytest

from cloakkit.string_parser import (
    ValueKind,
    parse,
    parse_bool,
    parse_int8,
    parse_int32,
    parse_like,
    parse_uint8,
    parse_uint32,
    serialize,
)


@pytest.mark.parametrize("n", [0, 1, -1, 1337, -2147483648, 2147483647])
def test_int32_round_trip(n):
    assert parse_int32(serialize(n)) == n


def test_int32_overflow():
    with pytest.raises(OverflowError):
        parse_int32("2147483648")
    with pytest.raises(OverflowError):
        parse_int32("-2147483649")


@pytest.mark.parametrize("text", ["", "abc", "   ", "-", "+"])
def test_int32_invalid(text):
    with pytest.raises(ValueError):
        parse_int32(text)


def test_int32_leading_whitespace_and_trailing_garbage():
    assert parse_int32("  12") == 12
    assert parse_int32("12abc") == 12
    assert parse_int32("+7") == 7


def test_hex_prefix_is_accepted_in_base_16():
    assert parse_int32("0x1f", 16) == parse_int32("1f", 16)
    assert parse_int32("ff", 16) == 255


def test_invalid_base():
    with pytest.raises(ValueError):
        parse_int32("1", 1)


def test_uint32_limits():
    assert parse_uint32("4294967295") == 4294967295
    with pytest.raises(OverflowError):
        parse_uint32("4294967296")


def test_uint32_negative_wraps():
    assert parse_uint32("-1") == 0xFFFFFFFF


@pytest.mark.parametrize("n", [-128, -1, 0, 1, 127])
def test_int8_round_trip(n):
    assert parse_int8(str(n)) == n


def test_int8_truncates_to_signed_byte():
    assert parse_int8("255") == -1


@pytest.mark.parametrize("n", [0, 1, 128, 255])
def test_uint8_round_trip(n):
    assert parse_uint8(str(n)) == n


def test_uint8_keeps_low_byte_only():
    for n in (256, 300, 1000):
        assert 0 <= parse_uint8(str(n)) <= 255
    assert parse_uint8("256") == parse_uint8("0")


@pytest.mark.parametrize(
    "text,expected",
    [("true", True), ("1", True), ("false", False), ("0", False), ("True", False), ("yes", False)],
)
def test_parse_bool(text, expected):
    assert parse_bool(text) is expected


def test_parse_dispatches_by_kind():
    assert parse("-5", ValueKind.INT32) == -5
    assert parse("true", ValueKind.BOOL) is True
    assert parse("7", ValueKind.UINT8) == 7
    assert parse("-5", ValueKind.INT8) == -5
    assert parse("5", ValueKind.UINT32) == 5


def test_serialize_bool():
    assert serialize(True) == "true"
    assert serialize(False) == "false"


def test_serialize_unsupported():
    with pytest.raises(TypeError):
        serialize("text")


def test_bool_round_trip():
    for value in (True, False):
        assert parse_bool(serialize(value)) is value


def test_parse_like_follows_current_type():
    assert parse_like(True, "0") is False
    assert parse_like(False, "1") is True
    assert parse_like(5, "-7") == -7


def test_parse_like_unsupported():
    with pytest.raises(TypeError):
        parse_like("x", "1")