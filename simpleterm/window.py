"""A headless window front end that records what the terminal asks of it."""

import re
from dataclasses import dataclass, field

from simpleterm.glyph import Glyph, WinMode

_HEX_COLOR = re.compile(r"#([0-9a-fA-F]{3}|[0-9a-fA-F]{6})")
_RGB_COLOR = re.compile(r"rgb:([0-9a-fA-F]{1,4})/([0-9a-fA-F]{1,4})/([0-9a-fA-F]{1,4})")


def _scale(component):
    return int(component, 16) * 255 // (16 ** len(component) - 1)


def _parse_color(name):
    match = _HEX_COLOR.fullmatch(name)
    if match:
        digits = match.group(1)
        if len(digits) == 3:
            return tuple(_scale(d) for d in digits)
        return tuple(int(digits[i : i + 2], 16) for i in (0, 2, 4))
    match = _RGB_COLOR.fullmatch(name)
    if match:
        return tuple(_scale(part) for part in match.groups())
    raise ValueError(f"unknown colour name: {name!r}")


@dataclass
class Window:
    """In-memory window state: titles, modes, colours, selection and drawn lines."""

    default_title: str = "simpleterm"
    palette_size: int = 256
    mode: WinMode = WinMode.VISIBLE
    pointer_motion: bool = False
    selection: str | None = None
    clipboard: str | None = None
    colors: dict = field(default_factory=dict)
    cursor_style: int = 2
    bells: int = 0
    frames: int = 0
    lines: dict = field(default_factory=dict)
    cursor: tuple | None = None
    cursor_glyph: Glyph | None = None
    im_spot: tuple | None = None
    title: str = field(init=False)
    icon_title: str = field(init=False)

    def __post_init__(self):
        self.title = self.default_title
        self.icon_title = self.default_title

    def bell(self):
        self.bells += 1

    def clipcopy(self):
        self.clipboard = self.selection

    def set_title(self, title):
        """Set the window title; None restores the default."""
        self.title = self.default_title if title is None else title

    def set_icon_title(self, title):
        """Set the icon title; None restores the default."""
        self.icon_title = self.default_title if title is None else title

    def set_mode(self, enable, flag):
        if enable:
            self.mode |= flag
        else:
            self.mode &= ~flag

    def set_pointer_motion(self, enable):
        self.pointer_motion = bool(enable)

    def set_selection(self, text):
        if isinstance(text, (bytes, bytearray)):
            text = bytes(text).decode("utf-8", errors="replace")
        self.selection = text

    def set_color_name(self, index, name):
        """Override palette entry ``index``; a name of None resets it.

        Raises ValueError for an index outside the palette or an unknown name.
        """
        if not 0 <= index < self.palette_size:
            raise ValueError(f"colour index out of range: {index}")
        if name is None:
            self.colors.pop(index, None)
            return
        self.colors[index] = _parse_color(name)

    def set_cursor(self, style):
        """Set the cursor shape (0-7); raises ValueError otherwise."""
        if not 0 <= style <= 7:
            raise ValueError(f"unknown cursor style: {style}")
        self.cursor_style = style

    def load_colors(self):
        self.colors.clear()

    def start_draw(self):
        return bool(self.mode & WinMode.VISIBLE)

    def draw_line(self, line, x1, y, x2):
        self.lines[y] = [glyph.copy() for glyph in line[x1:x2]]

    def draw_cursor(self, cx, cy, glyph, ox, oy, oglyph, line, cols):
        if self.mode & WinMode.HIDE:
            self.cursor = None
            self.cursor_glyph = None
        else:
            self.cursor = (cx, cy)
            self.cursor_glyph = glyph.copy()

    def finish_draw(self):
        self.frames += 1

    def set_im_spot(self, x, y):
        self.im_spot = (x, y)