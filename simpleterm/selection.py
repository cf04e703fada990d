"""Mouse selection over the screen: snapping, normalisation and extraction."""

from dataclasses import dataclass

from simpleterm.glyph import Attr, SelMode, SelType, Snap
from simpleterm.utf8 import utf8_encode


@dataclass
class _Point:
    x: int = 0
    y: int = 0


class Selection:
    """Selection state tied to a screen.

    ``nb``/``ne`` are the normalised begin and end points, ``ob``/``oe``
    the points as the user gave them.
    """

    def __init__(self, screen):
        self.screen = screen
        self.mode = SelMode.IDLE
        self.kind = SelType.REGULAR
        self.snap = Snap.NONE
        self.nb = _Point()
        self.ne = _Point()
        self.ob = _Point(-1, 0)
        self.oe = _Point()
        self.alt = False

    @property
    def active(self):
        return self.ob.x != -1

    def clear(self):
        if self.ob.x == -1:
            return
        self.mode = SelMode.IDLE
        self.ob.x = -1
        self.screen.set_dirty(self.nb.y, self.ne.y)

    def start(self, col, row, snap):
        self.clear()
        self.mode = SelMode.EMPTY
        self.kind = SelType.REGULAR
        self.alt = self.screen.alt_screen
        self.snap = Snap(snap)
        self.ob = _Point(col, row)
        self.oe = _Point(col, row)
        self.normalize()
        if self.snap != Snap.NONE:
            self.mode = SelMode.READY
        self.screen.set_dirty(self.nb.y, self.ne.y)

    def extend(self, col, row, kind, done):
        if self.mode == SelMode.IDLE:
            return
        if done and self.mode == SelMode.EMPTY:
            self.clear()
            return

        old_ey, old_ex = self.oe.y, self.oe.x
        old_by, old_sey = self.nb.y, self.ne.y
        old_kind = self.kind

        self.oe = _Point(col, row)
        self.normalize()
        self.kind = SelType(kind)

        if (
            old_ey != self.oe.y
            or old_ex != self.oe.x
            or old_kind != self.kind
            or self.mode == SelMode.EMPTY
        ):
            self.screen.set_dirty(min(self.nb.y, old_by), max(self.ne.y, old_sey))

        self.mode = SelMode.IDLE if done else SelMode.READY

    def normalize(self):
        ob, oe = self.ob, self.oe
        if self.kind == SelType.REGULAR and ob.y != oe.y:
            nbx = ob.x if ob.y < oe.y else oe.x
            nex = oe.x if ob.y < oe.y else ob.x
        else:
            nbx = min(ob.x, oe.x)
            nex = max(ob.x, oe.x)
        nby = min(ob.y, oe.y)
        ney = max(ob.y, oe.y)

        nbx, nby = self.snap_point(nbx, nby, -1)
        nex, ney = self.snap_point(nex, ney, +1)
        self.nb = _Point(nbx, nby)
        self.ne = _Point(nex, ney)

        if self.kind == SelType.RECTANGULAR:
            return
        length = self.screen.line_length(self.nb.y)
        if length < self.nb.x:
            self.nb.x = length
        if self.screen.line_length(self.ne.y) <= self.ne.x:
            self.ne.x = self.screen.cols - 1

    def selected(self, x, y):
        if (
            self.mode == SelMode.EMPTY
            or self.ob.x == -1
            or self.alt != self.screen.alt_screen
        ):
            return False
        if self.kind == SelType.RECTANGULAR:
            return self.nb.y <= y <= self.ne.y and self.nb.x <= x <= self.ne.x
        return (
            self.nb.y <= y <= self.ne.y
            and (y != self.nb.y or x >= self.nb.x)
            and (y != self.ne.y or x <= self.ne.x)
        )

    def _is_delim(self, rune):
        return bool(rune) and chr(rune) in self.screen.config.word_delimiters

    def snap_point(self, x, y, direction):
        """Move a point to the edge of its word or line; returns ``(x, y)``."""
        screen = self.screen
        cols, rows = screen.cols, screen.rows
        if self.snap == Snap.WORD:
            prev = screen.line_at(y)[x]
            prev_delim = self._is_delim(prev.u)
            while True:
                newx = x + direction
                newy = y
                if not 0 <= newx <= cols - 1:
                    newy += direction
                    newx = (newx + cols) % cols
                    if not 0 <= newy <= rows - 1:
                        break
                    if direction > 0:
                        yt, xt = y, x
                    else:
                        yt, xt = newy, newx
                    if not screen.line_at(yt)[xt].mode & Attr.WRAP:
                        break
                if newx >= screen.line_length(newy):
                    break
                glyph = screen.line_at(newy)[newx]
                delim = self._is_delim(glyph.u)
                if not glyph.mode & Attr.WDUMMY and (
                    delim != prev_delim or (delim and glyph.u != prev.u)
                ):
                    break
                x, y = newx, newy
                prev, prev_delim = glyph, delim
        elif self.snap == Snap.LINE:
            x = 0 if direction < 0 else cols - 1
            if direction < 0:
                while y > 0 and screen.line_at(y - 1)[cols - 1].mode & Attr.WRAP:
                    y += direction
            elif direction > 0:
                while y < rows - 1 and screen.line_at(y)[cols - 1].mode & Attr.WRAP:
                    y += direction
        return x, y

    def scroll(self, orig, n):
        if self.ob.x == -1:
            return
        bot, top = self.screen.bot, self.screen.top
        begin_in = orig <= self.nb.y <= bot
        end_in = orig <= self.ne.y <= bot
        if begin_in != end_in:
            self.clear()
        elif begin_in:
            self.ob.y += n
            self.oe.y += n
            if not (top <= self.ob.y <= bot and top <= self.oe.y <= bot):
                self.clear()
            else:
                self.normalize()

    def get_text(self):
        """Return the selected text with '\\n' line ends, or None if nothing is selected."""
        if self.ob.x == -1:
            return None
        screen = self.screen
        rectangular = self.kind == SelType.RECTANGULAR
        out = bytearray()
        for y in range(self.nb.y, self.ne.y + 1):
            length = screen.line_length(y)
            if length == 0:
                out += b"\n"
                continue
            line = screen.line_at(y)
            if rectangular:
                first = self.nb.x
                lastx = self.ne.x
            else:
                first = self.nb.x if self.nb.y == y else 0
                lastx = self.ne.x if self.ne.y == y else screen.cols - 1
            last = min(lastx, length - 1)
            while last >= first and line[last].u == ord(" "):
                last -= 1

            for glyph in line[first : last + 1]:
                if not glyph.mode & Attr.WDUMMY:
                    out += utf8_encode(glyph.u)

            wrapped = last >= 0 and bool(line[last].mode & Attr.WRAP)
            if (y < self.ne.y or lastx >= length) and (not wrapped or rectangular):
                out += b"\n"
        return out.decode("utf-8", errors="replace")