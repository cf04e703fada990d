"""Cell attributes, window mode flags and the glyph stored in every cell."""

from dataclasses import dataclass, replace
from enum import IntEnum, IntFlag

TRUECOLOR_FLAG = 1 << 24


class Attr(IntFlag):
    """Attribute flags of a single cell."""

    NULL = 0
    BOLD = 1 << 0
    FAINT = 1 << 1
    ITALIC = 1 << 2
    UNDERLINE = 1 << 3
    BLINK = 1 << 4
    REVERSE = 1 << 5
    INVISIBLE = 1 << 6
    STRUCK = 1 << 7
    WRAP = 1 << 8
    WIDE = 1 << 9
    WDUMMY = 1 << 10
    BOXDRAW = 1 << 11
    LIGA = 1 << 12
    BOLD_FAINT = BOLD | FAINT


class WinMode(IntFlag):
    """Mode flags kept by the window front end."""

    NONE = 0
    VISIBLE = 1 << 0
    FOCUSED = 1 << 1
    APPKEYPAD = 1 << 2
    MOUSEBTN = 1 << 3
    MOUSEMOTION = 1 << 4
    REVERSE = 1 << 5
    KBDLOCK = 1 << 6
    HIDE = 1 << 7
    APPCURSOR = 1 << 8
    MOUSESGR = 1 << 9
    EIGHT_BIT = 1 << 10
    BLINK = 1 << 11
    FBLINK = 1 << 12
    FOCUS = 1 << 13
    MOUSEX10 = 1 << 14
    MOUSEMANY = 1 << 15
    BRCKTPASTE = 1 << 16
    NUMLOCK = 1 << 17
    MOUSE = MOUSEBTN | MOUSEMOTION | MOUSEX10 | MOUSEMANY


class SelMode(IntEnum):
    IDLE = 0
    EMPTY = 1
    READY = 2


class SelType(IntEnum):
    REGULAR = 1
    RECTANGULAR = 2


class Snap(IntEnum):
    NONE = 0
    WORD = 1
    LINE = 2


@dataclass
class Glyph:
    """One character cell: code point, attributes and colours."""

    u: int = 0
    mode: Attr = Attr.NULL
    fg: int = 0
    bg: int = 0

    def copy(self):
        return replace(self)


def truecolor(r, g, b):
    """Encode an RGB triple as a direct colour value."""
    return TRUECOLOR_FLAG | (r << 16) | (g << 8) | b


def is_truecolor(color):
    """Whether a colour value is a direct RGB colour rather than an index."""
    return bool(color & TRUECOLOR_FLAG)


_IGNORED_IN_COMPARE = Attr.WRAP | Attr.LIGA


def attrs_differ(a, b):
    """Whether two glyphs differ in rendering attributes or colours."""
    return (
        (a.mode & ~_IGNORED_IN_COMPARE) != (b.mode & ~_IGNORED_IN_COMPARE)
        or a.fg != b.fg
        or a.bg != b.bg
    )