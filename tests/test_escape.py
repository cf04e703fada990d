import pytest

from simpleterm.escape import ESC_ARG_SIZ, ESC_BUF_SIZ, STR_ARG_SIZ, CsiEscape, StrEscape


def make_csi(text):
    csi = CsiEscape()
    for byte in text.encode("latin-1"):
        csi.append(byte)
    return csi


def test_csi_parses_arguments_and_mode():
    csi = make_csi("1;2H")
    assert csi.parse() == [1, 2]
    assert csi.narg == 2
    assert csi.mode[0] == "H"
    assert csi.priv is False


def test_csi_private_flag():
    csi = make_csi("?25h")
    csi.parse()
    assert csi.priv is True
    assert csi.args[0] == 25
    assert csi.mode[0] == "h"


def test_csi_without_arguments_has_one_zero_arg():
    csi = make_csi("m")
    assert csi.parse() == [0]
    assert csi.mode[0] == "m"


def test_csi_missing_args_stay_zero():
    csi = make_csi("5H")
    csi.parse()
    assert csi.args[1] == 0


def test_csi_intermediate_mode():
    csi = make_csi("2 q")
    csi.parse()
    assert csi.args[0] == 2
    assert csi.mode == " q"


def test_csi_argument_count_is_limited():
    csi = make_csi(";" * 40 + "m")
    csi.parse()
    assert csi.narg == ESC_ARG_SIZ


def test_csi_overflow_becomes_minus_one():
    csi = make_csi("99999999999999999999999m")
    csi.parse()
    assert csi.args[0] == -1


def test_csi_fullness():
    csi = CsiEscape()
    for _ in range(ESC_BUF_SIZ - 2):
        csi.append(ord("1"))
    assert csi.is_full() is False
    csi.append(ord("1"))
    assert csi.is_full() is True


def test_csi_dump_escapes_controls():
    csi = make_csi("1\n\x1b")
    assert csi.dump() == "ESC[1(\\n)(\\e)"


def test_csi_reset_clears_everything():
    csi = make_csi("?1;2h")
    csi.parse()
    csi.reset()
    assert (bytes(csi.buf), csi.priv, csi.narg, csi.args) == (b"", False, 0, [0] * ESC_ARG_SIZ)


def test_str_parse_splits_on_semicolon():
    seq = StrEscape("]")
    seq.append(b"0;my title")
    assert seq.parse() == ["0", "my title"]
    assert seq.narg == 2


def test_str_parse_empty():
    seq = StrEscape("]")
    assert seq.parse() == []
    assert seq.narg == 0


def test_str_parse_limits_argument_count():
    seq = StrEscape("]")
    seq.append(b";".join(str(n).encode() for n in range(30)))
    args = seq.parse()
    assert len(args) == STR_ARG_SIZ
    assert args[-1] == str(STR_ARG_SIZ - 1)


def test_str_parse_stops_at_nul():
    seq = StrEscape("]")
    seq.append(b"2;abc\0;ignored")
    assert seq.parse() == ["2", "abc"]


def test_str_dump_complete():
    seq = StrEscape("]")
    seq.append(b"0;t\r")
    assert seq.dump() == "ESC]0;t(\\r)ESC\\"


def test_str_dump_stops_at_nul():
    seq = StrEscape("P")
    seq.append(b"ab\0cd")
    assert seq.dump() == "ESCPab"


@pytest.mark.parametrize("kind", ["P", "_", "^", "]", "k"])
def test_str_reset_sets_kind(kind):
    seq = StrEscape("]")
    seq.append(b"leftover")
    seq.reset(kind)
    assert seq.kind == kind
    assert bytes(seq.buf) == b""