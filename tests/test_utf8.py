import base64

import pytest

from simpleterm.utf8 import (
    UTF_INVALID,
    base64_decode,
    utf8_decode,
    utf8_encode,
    utf8_validate,
)


@pytest.mark.parametrize("char", ["A", "é", "€", "😀", "\x7f", "\u07ff", "\uffff"])
def test_decode_matches_stdlib(char):
    encoded = char.encode("utf-8")
    assert utf8_decode(encoded) == (ord(char), len(encoded))


def test_decode_reads_only_first_code_point():
    data = "éa".encode("utf-8")
    assert utf8_decode(data) == (ord("é"), len("é".encode("utf-8")))


def test_decode_empty_needs_more():
    assert utf8_decode(b"") == (UTF_INVALID, 0)


def test_decode_incomplete_needs_more():
    assert utf8_decode("€".encode("utf-8")[:2]) == (UTF_INVALID, 0)


@pytest.mark.parametrize("data", [b"\x80", b"\xff", b"\xf8abc"])
def test_decode_bad_lead_byte_consumes_one(data):
    assert utf8_decode(data) == (UTF_INVALID, 1)


def test_decode_bad_continuation_stops_before_it():
    assert utf8_decode(b"\xc3A") == (UTF_INVALID, 1)


def test_decode_surrogate_is_invalid():
    assert utf8_decode(b"\xed\xa0\x80") == (UTF_INVALID, 3)


def test_decode_overlong_is_invalid():
    assert utf8_decode(b"\xc0\x80") == (UTF_INVALID, 2)


@pytest.mark.parametrize("char", ["A", "ß", "€", "😀", "\U0010ffff"])
def test_encode_matches_stdlib(char):
    assert utf8_encode(ord(char)) == char.encode("utf-8")


@pytest.mark.parametrize("rune", [0xD800, 0xDFFF, 0x110000])
def test_encode_invalid_gives_replacement(rune):
    assert utf8_encode(rune) == "\ufffd".encode("utf-8")


@pytest.mark.parametrize("char", ["x", "ñ", "中", "𝄞"])
def test_encode_decode_round_trip(char):
    encoded = utf8_encode(ord(char))
    assert utf8_decode(encoded) == (ord(char), len(encoded))


def test_validate_accepts_in_range():
    assert utf8_validate(ord("A"), 0) == (ord("A"), 1)


def test_validate_rejects_out_of_range_for_size():
    rune, length = utf8_validate(0x80, 1)
    assert rune == UTF_INVALID
    assert length == len("\ufffd".encode("utf-8"))


def test_validate_bad_size_raises():
    with pytest.raises(ValueError):
        utf8_validate(0x41, 7)


@pytest.mark.parametrize("raw", [b"", b"A", b"hello", b"hello world!", bytes(range(256))])
def test_base64_matches_stdlib(raw):
    assert base64_decode(base64.b64encode(raw).decode("ascii")) == raw


def test_base64_skips_non_printable():
    raw = b"clipboard contents"
    text = base64.b64encode(raw).decode("ascii")
    spread = "\n".join(text[i : i + 4] for i in range(0, len(text), 4)) + "\n"
    assert base64_decode(spread) == raw


def test_base64_assumes_missing_padding():
    assert base64_decode("QQ") == base64.b64decode("QQ==")


def test_base64_accepts_bytes():
    assert base64_decode(base64.b64encode(b"abc")) == b"abc"


def test_base64_leading_padding_gives_nothing():
    assert base64_decode("====") == b""