"""Decode sequences of 16-bit register words into typed values by type tag."""

import struct
from collections.abc import Sequence

from .errors import UnknownTypeError, WrongWordCountError
from .types import DecodedValue, Integer, Text

# Whitespace plus the NUL padding devices use to fill fixed-width string registers
_STRING_PADDING = " \t\r\n\x00"

TYPE_TAGS = frozenset({"string", "hex", "u16", "i16", "u32", "i32"})


def words_to_bytes(words: Sequence[int]) -> bytes:
    """Concatenate register words as big-endian byte pairs."""
    return b"".join((w & 0xFFFF).to_bytes(2, "big") for w in words)


def _require(words: Sequence[int], type_tag: str, count: int) -> None:
    if len(words) < count:
        raise WrongWordCountError(type_tag, count, len(words))


def decode(words: Sequence[int], type_tag: str) -> DecodedValue:
    """
    Decode register words for the given type tag.

    - string: big-endian bytes as UTF-8 (invalid bytes replaced), padding stripped.
    - hex: big-endian bytes as lowercase hex text.
    - u16/i16: first word only, extra words ignored.
    - u32/i32: first two words, high word first.

    Raises UnknownTypeError for other tags, WrongWordCountError when too few words are given.
    """
    if type_tag == "string":
        return Text(words_to_bytes(words).decode("utf-8", errors="replace").strip(_STRING_PADDING))
    if type_tag == "hex":
        return Text(words_to_bytes(words).hex())
    if type_tag in ("u16", "i16"):
        _require(words, type_tag, 1)
        fmt = ">H" if type_tag == "u16" else ">h"
        return Integer(struct.unpack(fmt, words_to_bytes(words[:1]))[0])
    if type_tag in ("u32", "i32"):
        _require(words, type_tag, 2)
        fmt = ">I" if type_tag == "u32" else ">i"
        return Integer(struct.unpack(fmt, words_to_bytes(words[:2]))[0])
    raise UnknownTypeError(type_tag)
