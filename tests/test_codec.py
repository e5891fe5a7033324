"""Tests for register word decoding by type tag."""

import pytest

from solaris_modbus import decode
from solaris_modbus.codec import words_to_bytes
from solaris_modbus.errors import DecodeError, UnknownTypeError, WrongWordCountError
from solaris_modbus.types import Integer, Text


def test_string_trims_null_padding() -> None:
    assert decode([0x4142, 0x4300], "string") == Text("ABC")


def test_string_trims_whitespace() -> None:
    # "  SN12  " as four words
    assert decode([0x2020, 0x534E, 0x3132, 0x2020], "string") == Text("SN12")


def test_string_invalid_utf8_is_replaced() -> None:
    value = decode([0x41FF, 0x4200], "string")
    assert isinstance(value, Text)
    assert value.value == "A\ufffdB"


def test_hex_is_lowercase_big_endian() -> None:
    assert decode([0x00AB, 0xCDEF], "hex") == Text("00abcdef")


def test_words_to_bytes_big_endian() -> None:
    assert words_to_bytes([0x1234, 0x00FF]) == b"\x12\x34\x00\xff"


@pytest.mark.parametrize(
    ("word", "expected"),
    [
        (0, 0),
        (1, 1),
        (0x7FFF, 32767),
        (0x8000, -32768),
        (0xFFFF, -1),
        (0xFF38, -200),
    ],
)
def test_i16_twos_complement(word: int, expected: int) -> None:
    assert decode([word], "i16") == Integer(expected)


@pytest.mark.parametrize("word", [0, 1, 2300, 0x8000, 0xFFFF])
def test_u16_unsigned(word: int) -> None:
    assert decode([word], "u16") == Integer(word)


def test_16bit_ignores_extra_words() -> None:
    assert decode([10, 20, 30], "u16") == Integer(10)
    assert decode([0xFFFF, 5], "i16") == Integer(-1)


@pytest.mark.parametrize(
    ("high", "low"),
    [(0, 0), (0, 1), (1, 0), (0x1234, 0x5678), (0xFFFF, 0xFFFF), (0x8000, 0x0000)],
)
def test_u32_is_big_endian_reassembly(high: int, low: int) -> None:
    assert decode([high, low], "u32") == Integer((high << 16) | low)


def test_i32_signed() -> None:
    assert decode([0xFFFF, 0xFFFF], "i32") == Integer(-1)
    assert decode([0x8000, 0x0000], "i32") == Integer(-(2**31))
    assert decode([0x0001, 0x0000], "i32") == Integer(65536)


@pytest.mark.parametrize("type_tag", ["u32", "i32"])
def test_32bit_needs_two_words(type_tag: str) -> None:
    with pytest.raises(WrongWordCountError) as exc_info:
        decode([1], type_tag)
    assert exc_info.value.expected == 2
    assert exc_info.value.actual == 1


def test_16bit_needs_one_word() -> None:
    with pytest.raises(WrongWordCountError):
        decode([], "u16")


def test_unknown_type_raises() -> None:
    with pytest.raises(UnknownTypeError) as exc_info:
        decode([1], "float")
    assert exc_info.value.type_tag == "float"
    assert isinstance(exc_info.value, DecodeError)
