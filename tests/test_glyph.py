import pytest

from simpleterm.glyph import (
    Attr,
    Glyph,
    attrs_differ,
    is_truecolor,
    truecolor,
)


def test_truecolor_sets_flag():
    assert is_truecolor(truecolor(10, 20, 30))


def test_truecolor_keeps_components():
    color = truecolor(10, 20, 30)
    assert ((color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF) == (10, 20, 30)


def test_black_truecolor_is_just_the_flag():
    assert truecolor(0, 0, 0) == 1 << 24


@pytest.mark.parametrize("index", [0, 7, 255])
def test_palette_index_is_not_truecolor(index):
    assert is_truecolor(index) is False


def test_attrs_differ_ignores_wrap_and_ligature():
    a = Glyph(u=ord("a"), mode=Attr.BOLD, fg=1, bg=2)
    b = Glyph(u=ord("b"), mode=Attr.BOLD | Attr.WRAP | Attr.LIGA, fg=1, bg=2)
    assert attrs_differ(a, b) is False


@pytest.mark.parametrize(
    "other",
    [
        Glyph(mode=Attr.ITALIC, fg=1, bg=2),
        Glyph(mode=Attr.BOLD, fg=3, bg=2),
        Glyph(mode=Attr.BOLD, fg=1, bg=3),
    ],
)
def test_attrs_differ_detects_changes(other):
    assert attrs_differ(Glyph(mode=Attr.BOLD, fg=1, bg=2), other) is True


def test_copy_is_independent():
    original = Glyph(u=ord("x"), mode=Attr.UNDERLINE, fg=4, bg=5)
    duplicate = original.copy()
    duplicate.mode |= Attr.BOLD
    duplicate.u = ord("y")
    assert original == Glyph(u=ord("x"), mode=Attr.UNDERLINE, fg=4, bg=5)
    assert (duplicate.mode & Attr.BOLD) == Attr.BOLD