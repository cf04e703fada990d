"""The character grid: lines, history, cursor, scrolling and tab stops."""

from dataclasses import dataclass, field, replace
from enum import IntEnum, IntFlag

from simpleterm.glyph import Attr, Glyph
from simpleterm.selection import Selection
from simpleterm.window import Window


class TermMode(IntFlag):
    NONE = 0
    WRAP = 1 << 0
    INSERT = 1 << 1
    ALTSCREEN = 1 << 2
    CRLF = 1 << 3
    ECHO = 1 << 4
    PRINT = 1 << 5
    UTF8 = 1 << 6


class CursorState(IntFlag):
    DEFAULT = 0
    WRAPNEXT = 1
    ORIGIN = 2


class Charset(IntEnum):
    GRAPHIC0 = 0
    GRAPHIC1 = 1
    UK = 2
    USA = 3
    MULTI = 4
    GER = 5
    FIN = 6


@dataclass
class Cursor:
    """Cursor position, state and the attributes for newly written cells."""

    attr: Glyph = field(default_factory=Glyph)
    x: int = 0
    y: int = 0
    state: CursorState = CursorState.DEFAULT


@dataclass
class TermConfig:
    """Settings of the terminal."""

    tabspaces: int = 8
    default_fg: int = 7
    default_bg: int = 0
    word_delimiters: str = " "
    allow_alt_screen: bool = True
    allow_window_ops: bool = False
    vtiden: str = "\033[?6c"
    termname: str = "st-256color"
    stty_args: str = "stty raw pass8 nl -echo -iexten -cstopb 38400"
    utmp: str | None = None
    scroll: str | None = None
    history_size: int = 2000
    boxdraw_braille: bool = False


_VT100_0 = {
    ord(key): ord(value)
    for key, value in (
        list(zip("ABCDEFG", "↑↓→←█▚☃"))
        + [("_", " ")]
        + list(zip("`abcdefghijklmnopqrstuvwxyz{|}~", "◆▒␉␌␍␊°±␤␋┘┐┌└┼⎺⎻─⎼⎽├┤┴┬│≤≥π≠£·"))
    )
}


def _clamp(value, low, high):
    return low if value < low else high if value > high else value


def _copy_cursor(cursor):
    return replace(cursor, attr=cursor.attr.copy())


class Screen:
    """Primary and alternate screens with scroll-back history."""

    def __init__(self, cols, rows, config=None, window=None):
        self.config = config if config is not None else TermConfig()
        self.window = window if window is not None else Window()
        self.rows = 0
        self.cols = 0
        self.lines = []
        self.alt = []
        self.hist = [[] for _ in range(self.config.history_size)]
        self.histi = 0
        self.scr = 0
        self.dirty = []
        self.cursor = Cursor(Glyph(fg=self.config.default_fg, bg=self.config.default_bg))
        self.saved_cursors = [Cursor(), Cursor()]
        self.ocx = 0
        self.ocy = 0
        self.top = 0
        self.bot = 0
        self.mode = TermMode.NONE
        self.trantbl = [Charset.USA] * 4
        self.charset = 0
        self.icharset = 0
        self.tabs = []
        self.lastc = 0
        self.sel = Selection(self)
        self.resize(cols, rows)
        self.reset()

    @property
    def alt_screen(self):
        return bool(self.mode & TermMode.ALTSCREEN)

    def _blank(self):
        return Glyph(ord(" "), Attr.NULL, self.cursor.attr.fg, self.cursor.attr.bg)

    def line_at(self, y):
        """The line shown at row ``y``, taking scroll-back into account."""
        if y < self.scr:
            size = len(self.hist)
            return self.hist[(y + self.histi - self.scr + size + 1) % size]
        return self.lines[y - self.scr]

    def line_length(self, y):
        """Length of the shown line without trailing blanks."""
        line = self.line_at(y)
        length = self.cols
        if line[length - 1].mode & Attr.WRAP:
            return length
        while length > 0 and line[length - 1].u == ord(" "):
            length -= 1
        return length

    def set_dirty(self, top, bot):
        top = _clamp(top, 0, self.rows - 1)
        bot = _clamp(bot, 0, self.rows - 1)
        for y in range(top, bot + 1):
            self.dirty[y] = True

    def set_dirty_attr(self, attr):
        for y, line in enumerate(self.lines[: self.rows - 1]):
            if any(glyph.mode & attr for glyph in line[: self.cols - 1]):
                self.set_dirty(y, y)

    def attr_set(self, attr):
        return any(
            glyph.mode & attr
            for line in self.lines[: self.rows - 1]
            for glyph in line[: self.cols - 1]
        )

    def full_dirty(self):
        self.set_dirty(0, self.rows - 1)

    def save_cursor(self):
        self.saved_cursors[int(self.alt_screen)] = _copy_cursor(self.cursor)

    def load_cursor(self):
        saved = self.saved_cursors[int(self.alt_screen)]
        self.cursor = _copy_cursor(saved)
        self.move_to(saved.x, saved.y)

    def reset(self):
        config = self.config
        self.cursor = Cursor(Glyph(0, Attr.NULL, config.default_fg, config.default_bg))
        self.tabs = [False] * self.cols
        for x in range(config.tabspaces, self.cols, config.tabspaces):
            self.tabs[x] = True
        self.top = 0
        self.bot = self.rows - 1
        self.mode = TermMode.WRAP | TermMode.UTF8
        self.trantbl = [Charset.USA] * 4
        self.charset = 0
        for _ in range(2):
            self.move_to(0, 0)
            self.save_cursor()
            self.clear_region(0, 0, self.cols - 1, self.rows - 1)
            self.swap_screen()

    def swap_screen(self):
        self.lines, self.alt = self.alt, self.lines
        self.mode ^= TermMode.ALTSCREEN
        self.full_dirty()

    def scroll_back_down(self, n):
        """Scroll the view towards the live screen by ``n`` lines."""
        if n < 0:
            n += self.rows
        n = min(n, self.scr)
        if self.scr > 0:
            self.scr -= n
            self.sel.scroll(0, -n)
            self.full_dirty()

    def scroll_back_up(self, n):
        """Scroll the view into history by ``n`` lines."""
        if n < 0:
            n += self.rows
        if self.scr <= len(self.hist) - n:
            self.scr += n
            self.sel.scroll(0, n)
            self.full_dirty()

    def scroll_down(self, orig, n, copy_history):
        n = _clamp(n, 0, self.bot - orig + 1)
        lines = self.lines
        if copy_history:
            self.histi = (self.histi - 1) % len(self.hist)
            self.hist[self.histi], lines[self.bot] = lines[self.bot], self.hist[self.histi]

        self.set_dirty(orig, self.bot - n)
        self.clear_region(0, self.bot - n + 1, self.cols - 1, self.bot)

        for y in range(self.bot, orig + n - 1, -1):
            lines[y], lines[y - n] = lines[y - n], lines[y]

        if self.scr == 0:
            self.sel.scroll(orig, n)

    def scroll_up(self, orig, n, copy_history):
        n = _clamp(n, 0, self.bot - orig + 1)
        lines = self.lines
        size = len(self.hist)
        if copy_history:
            self.histi = (self.histi + 1) % size
            self.hist[self.histi], lines[orig] = lines[orig], self.hist[self.histi]

        if 0 < self.scr < size:
            self.scr = min(self.scr + n, size - 1)

        self.clear_region(0, orig, self.cols - 1, orig + n - 1)
        self.set_dirty(orig + n, self.bot)

        for y in range(orig, self.bot - n + 1):
            lines[y], lines[y + n] = lines[y + n], lines[y]

        if self.scr == 0:
            self.sel.scroll(orig, -n)

    def newline(self, first_col):
        y = self.cursor.y
        if y == self.bot:
            self.scroll_up(self.top, 1, True)
        else:
            y += 1
        self.move_to(0 if first_col else self.cursor.x, y)

    def move_to(self, x, y):
        if self.cursor.state & CursorState.ORIGIN:
            miny, maxy = self.top, self.bot
        else:
            miny, maxy = 0, self.rows - 1
        self.cursor.state &= ~CursorState.WRAPNEXT
        self.cursor.x = _clamp(x, 0, self.cols - 1)
        self.cursor.y = _clamp(y, miny, maxy)

    def move_to_abs(self, x, y):
        """Move relative to the scroll region when origin mode is on."""
        offset = self.top if self.cursor.state & CursorState.ORIGIN else 0
        self.move_to(x, y + offset)

    def _is_boxdraw(self, rune):
        return self.config.boxdraw_braille and (rune & ~0xFF) == 0x2800

    def set_char(self, rune, attr, x, y):
        if self.trantbl[self.charset] == Charset.GRAPHIC0 and rune in _VT100_0:
            rune = _VT100_0[rune]

        line = self.lines[y]
        cell = line[x]
        if cell.mode & Attr.WIDE:
            if x + 1 < self.cols:
                line[x + 1].u = ord(" ")
                line[x + 1].mode &= ~Attr.WDUMMY
        elif cell.mode & Attr.WDUMMY:
            line[x - 1].u = ord(" ")
            line[x - 1].mode &= ~Attr.WIDE

        self.dirty[y] = True
        glyph = attr.copy()
        glyph.u = rune
        if self._is_boxdraw(rune):
            glyph.mode |= Attr.BOXDRAW
        line[x] = glyph

    def clear_region(self, x1, y1, x2, y2):
        if x1 > x2:
            x1, x2 = x2, x1
        if y1 > y2:
            y1, y2 = y2, y1
        x1 = _clamp(x1, 0, self.cols - 1)
        x2 = _clamp(x2, 0, self.cols - 1)
        y1 = _clamp(y1, 0, self.rows - 1)
        y2 = _clamp(y2, 0, self.rows - 1)

        for y in range(y1, y2 + 1):
            self.dirty[y] = True
            line = self.lines[y]
            for x in range(x1, x2 + 1):
                if self.sel.selected(x, y):
                    self.sel.clear()
                line[x] = self._blank()

    def delete_chars(self, n):
        x, y = self.cursor.x, self.cursor.y
        n = _clamp(n, 0, self.cols - x)
        line = self.lines[y]
        src = x + n
        line[x : x + self.cols - src] = [glyph.copy() for glyph in line[src : self.cols]]
        self.clear_region(self.cols - n, y, self.cols - 1, y)

    def insert_blanks(self, n):
        x, y = self.cursor.x, self.cursor.y
        n = _clamp(n, 0, self.cols - x)
        line = self.lines[y]
        dst = x + n
        size = self.cols - dst
        line[dst : dst + size] = [glyph.copy() for glyph in line[x : x + size]]
        self.clear_region(x, y, dst - 1, y)

    def insert_blank_lines(self, n):
        if self.top <= self.cursor.y <= self.bot:
            self.scroll_down(self.cursor.y, n, False)

    def delete_lines(self, n):
        if self.top <= self.cursor.y <= self.bot:
            self.scroll_up(self.cursor.y, n, False)

    def set_scroll_region(self, top, bot):
        top = _clamp(top, 0, self.rows - 1)
        bot = _clamp(bot, 0, self.rows - 1)
        if top > bot:
            top, bot = bot, top
        self.top = top
        self.bot = bot

    def put_tab(self, n):
        """Move the cursor ``n`` tab stops forward, or back when negative."""
        x = self.cursor.x
        if n > 0:
            while x < self.cols and n:
                n -= 1
                x += 1
                while x < self.cols and not self.tabs[x]:
                    x += 1
        elif n < 0:
            while x > 0 and n:
                n += 1
                x -= 1
                while x > 0 and not self.tabs[x]:
                    x -= 1
        self.cursor.x = _clamp(x, 0, self.cols - 1)

    def resize(self, cols, rows):
        """Resize both screens and the history; raises ValueError below 1x1."""
        if cols < 1 or rows < 1:
            raise ValueError(f"cannot resize to {cols}x{rows}")

        minrow = min(rows, self.rows)
        mincol = min(cols, self.cols)
        old_cols = self.cols

        # Slide the screen up so that the cursor stays on it.
        shift = max(0, self.cursor.y - rows + 1)
        kept_lines = self.lines[shift : shift + rows]
        kept_alt = self.alt[shift : shift + rows]

        def fit(line):
            return line[:cols] + [Glyph(ord(" ")) for _ in range(cols - len(line))]

        self.lines = [fit(line) for line in kept_lines]
        self.lines += [fit([]) for _ in range(rows - len(self.lines))]
        self.alt = [fit(line) for line in kept_alt]
        self.alt += [fit([]) for _ in range(rows - len(self.alt))]

        self.dirty = self.dirty[:rows] + [True] * (rows - len(self.dirty[:rows]))

        self.tabs = self.tabs[:cols] + [False] * (cols - len(self.tabs[:cols]))
        if cols > old_cols:
            last = old_cols - 1
            while last > 0 and not self.tabs[last]:
                last -= 1
            for x in range(last + self.config.tabspaces, cols, self.config.tabspaces):
                self.tabs[x] = True

        def history_fill():
            glyph = self.cursor.attr.copy()
            glyph.u = ord(" ")
            return glyph

        self.hist = [
            line[:mincol] + [history_fill() for _ in range(cols - mincol)]
            for line in self.hist
        ]

        self.cols = cols
        self.rows = rows
        self.set_scroll_region(0, rows - 1)
        self.move_to(self.cursor.x, self.cursor.y)

        saved = _copy_cursor(self.cursor)
        for _ in range(2):
            if mincol < cols and minrow > 0:
                self.clear_region(mincol, 0, cols - 1, minrow - 1)
            if minrow < rows:
                self.clear_region(0, minrow, cols - 1, rows - 1)
            self.swap_screen()
            self.load_cursor()
        self.cursor = saved

    def draw(self):
        """Send dirty lines and the cursor to the window."""
        window = self.window
        cx, cy = self.cursor.x, self.cursor.y
        prev_ocx, prev_ocy = self.ocx, self.ocy

        if not window.start_draw():
            return

        self.ocx = _clamp(self.ocx, 0, self.cols - 1)
        self.ocy = _clamp(self.ocy, 0, self.rows - 1)
        if self.lines[self.ocy][self.ocx].mode & Attr.WDUMMY:
            self.ocx -= 1
        if self.lines[cy][cx].mode & Attr.WDUMMY:
            cx -= 1

        for y in range(self.rows):
            if not self.dirty[y]:
                continue
            self.dirty[y] = False
            window.draw_line(self.line_at(y), 0, y, self.cols)

        if self.scr == 0:
            window.draw_cursor(
                cx,
                cy,
                self.lines[cy][cx],
                self.ocx,
                self.ocy,
                self.lines[self.ocy][self.ocx],
                self.lines[self.ocy],
                self.cols,
            )
        self.ocx = cx
        self.ocy = cy
        window.finish_draw()
        if prev_ocx != self.ocx or prev_ocy != self.ocy:
            window.set_im_spot(self.ocx, self.ocy)

    def redraw(self):
        self.full_dirty()
        self.draw()