"""The escape-sequence interpreter that drives a screen."""

import logging
import re
from enum import IntFlag

from wcwidth import wcwidth

from simpleterm.escape import CsiEscape, StrEscape
from simpleterm.glyph import Attr, WinMode, truecolor
from simpleterm.screen import Charset, CursorState, Screen, TermMode
from simpleterm.utf8 import UTF_SIZ, base64_decode, utf8_decode, utf8_encode

log = logging.getLogger(__name__)


class _Esc(IntFlag):
    NONE = 0
    START = 1
    CSI = 2
    STR = 4
    ALTCHARSET = 8
    STR_END = 16
    TEST = 32
    UTF8 = 64


_SGR_RESET = (
    Attr.BOLD
    | Attr.FAINT
    | Attr.ITALIC
    | Attr.UNDERLINE
    | Attr.BLINK
    | Attr.REVERSE
    | Attr.INVISIBLE
    | Attr.STRUCK
)
_SGR_SET = {
    1: Attr.BOLD,
    2: Attr.FAINT,
    3: Attr.ITALIC,
    4: Attr.UNDERLINE,
    5: Attr.BLINK,
    6: Attr.BLINK,
    7: Attr.REVERSE,
    8: Attr.INVISIBLE,
    9: Attr.STRUCK,
}
_SGR_CLEAR = {
    22: Attr.BOLD | Attr.FAINT,
    23: Attr.ITALIC,
    24: Attr.UNDERLINE,
    25: Attr.BLINK,
    27: Attr.REVERSE,
    28: Attr.INVISIBLE,
    29: Attr.STRUCK,
}

_PRIVATE_WIN_MODES = {
    1: WinMode.APPCURSOR,
    5: WinMode.REVERSE,
    1004: WinMode.FOCUS,
    1006: WinMode.MOUSESGR,
    1034: WinMode.EIGHT_BIT,
    2004: WinMode.BRCKTPASTE,
}
_MOUSE_MODES = {
    9: WinMode.MOUSEX10,
    1000: WinMode.MOUSEBTN,
    1002: WinMode.MOUSEMOTION,
    1003: WinMode.MOUSEMANY,
}
_IGNORED_PRIVATE = {0, 2, 3, 4, 8, 12, 18, 19, 42, 1001, 1005, 1015}

_STR_INTRODUCERS = {0x90: "P", 0x9F: "_", 0x9E: "^", 0x9D: "]"}
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _is_control_c1(rune):
    return 0x80 <= rune <= 0x9F


def _is_control(rune):
    return 0 <= rune <= 0x1F or rune == 0x7F or _is_control_c1(rune)


def _atoi(text):
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def _modbit(value, enable, bit):
    return value | bit if enable else value & ~bit


class Terminal:
    """Interprets bytes from the program and updates the screen and window.

    Answers to the program (device attributes, cursor reports) go to
    ``reply`` when given, otherwise they are collected in ``replies``.
    Printed output goes to ``printer``, a binary stream, when one is set.
    """

    def __init__(self, cols=80, rows=24, config=None, window=None, reply=None, printer=None):
        self.screen = Screen(cols, rows, config, window)
        self.config = self.screen.config
        self.window = self.screen.window
        self.esc = _Esc.NONE
        self.csi = CsiEscape()
        self.strseq = StrEscape()
        self.printer = printer
        self.replies = bytearray()
        self._reply = reply

    # output towards the program and the printer

    def _send(self, data):
        if isinstance(data, str):
            data = data.encode("utf-8")
        if self._reply is not None:
            self._reply(data)
        else:
            self.replies += data

    def _print(self, data):
        if self.printer is None:
            return
        try:
            self.printer.write(data)
        except OSError as error:
            log.error("Error writing to output file: %s", error)
            try:
                self.printer.close()
            except OSError:
                pass
            self.printer = None

    def set_printer(self, stream):
        """Send printed output to ``stream``; None discards it."""
        self.printer = stream

    def toggle_printer(self):
        self.screen.mode ^= TermMode.PRINT

    def dump_line(self, n):
        screen = self.screen
        line = screen.lines[n]
        end = min(screen.line_length(n), screen.cols) - 1
        if end != 0 or line[0].u != ord(" "):
            for glyph in line[: end + 1]:
                self._print(utf8_encode(glyph.u))
        self._print(b"\n")

    def dump_screen(self):
        for y in range(self.screen.rows):
            self.dump_line(y)

    def dump_selection(self):
        text = self.screen.sel.get_text()
        if text is not None:
            self._print(text.encode("utf-8"))

    # input from the program

    def write(self, data, show_ctrl=False):
        """Process ``data``; returns the number of bytes consumed.

        Bytes of an incomplete UTF-8 sequence at the end are left over.
        """
        data = bytes(data)
        pos = 0
        while pos < len(data):
            if self.screen.mode & TermMode.UTF8:
                rune, size = utf8_decode(data[pos : pos + UTF_SIZ])
                if size == 0:
                    break
            else:
                rune, size = data[pos], 1
            if show_ctrl and _is_control(rune):
                if rune & 0x80:
                    rune &= 0x7F
                    self.put_char(ord("^"))
                    self.put_char(ord("["))
                elif rune not in (0x0A, 0x0D, 0x09):
                    rune ^= 0x40
                    self.put_char(ord("^"))
            self.put_char(rune)
            pos += size
        return pos

    def put_char(self, rune):
        screen = self.screen
        control = _is_control(rune)
        width = 1
        if rune < 127 or not screen.mode & TermMode.UTF8:
            encoded = bytes([rune & 0xFF])
        else:
            encoded = utf8_encode(rune)
            if not control:
                width = wcwidth(chr(rune)) if rune <= 0x10FFFF else -1
                if width == -1:
                    width = 1

        if screen.mode & TermMode.PRINT:
            self._print(encoded)

        # A string sequence swallows everything up to its terminator.
        if self.esc & _Esc.STR:
            if rune in (0x07, 0x18, 0x1A, 0x1B) or _is_control_c1(rune):
                self.esc &= ~(_Esc.START | _Esc.STR)
                self.esc |= _Esc.STR_END
            else:
                self.strseq.append(encoded)
                return

        if control:
            self.control_code(rune)
            if not self.esc:
                screen.lastc = 0
            return

        if self.esc & _Esc.START:
            if self.esc & _Esc.CSI:
                self.csi.append(rune)
                if 0x40 <= rune <= 0x7E or self.csi.is_full():
                    self.esc = _Esc.NONE
                    self.csi.parse()
                    self.csi_handle()
                return
            if self.esc & _Esc.UTF8:
                self._define_utf8(rune)
            elif self.esc & _Esc.ALTCHARSET:
                self._define_translation(rune)
            elif self.esc & _Esc.TEST:
                self._dec_test(rune)
            elif not self.esc_handle(rune):
                return
            self.esc = _Esc.NONE
            return

        cursor = screen.cursor
        if screen.sel.selected(cursor.x, cursor.y):
            screen.sel.clear()

        if screen.mode & TermMode.WRAP and cursor.state & CursorState.WRAPNEXT:
            screen.lines[cursor.y][cursor.x].mode |= Attr.WRAP
            screen.newline(True)

        if screen.mode & TermMode.INSERT and cursor.x + width < screen.cols:
            line = screen.lines[cursor.y]
            x = cursor.x
            line[x + width : screen.cols] = [g.copy() for g in line[x : screen.cols - width]]

        if cursor.x + width > screen.cols:
            screen.newline(True)

        screen.set_char(rune, cursor.attr, cursor.x, cursor.y)
        screen.lastc = rune

        if width == 2:
            line = screen.lines[cursor.y]
            line[cursor.x].mode |= Attr.WIDE
            if cursor.x + 1 < screen.cols:
                line[cursor.x + 1].u = 0
                line[cursor.x + 1].mode = Attr.WDUMMY
        if cursor.x + width < screen.cols:
            screen.move_to(cursor.x + width, cursor.y)
        else:
            cursor.state |= CursorState.WRAPNEXT

    def _str_sequence(self, code):
        self.strseq.reset(_STR_INTRODUCERS.get(code, chr(code)))
        self.esc |= _Esc.STR

    def control_code(self, code):
        screen = self.screen
        cursor = screen.cursor
        if code == 0x09:
            screen.put_tab(1)
            return
        if code == 0x08:
            screen.move_to(cursor.x - 1, cursor.y)
            return
        if code == 0x0D:
            screen.move_to(0, cursor.y)
            return
        if code in (0x0A, 0x0B, 0x0C):
            screen.newline(bool(screen.mode & TermMode.CRLF))
            return
        if code == 0x1B:
            self.csi.reset()
            self.esc &= ~(_Esc.CSI | _Esc.ALTCHARSET | _Esc.TEST)
            self.esc |= _Esc.START
            return
        if code in (0x0E, 0x0F):
            screen.charset = 1 - (code - 0x0E)
            return
        if code in (0x05, 0x00, 0x11, 0x13, 0x7F):
            return
        if code in _STR_INTRODUCERS:
            self._str_sequence(code)
            return

        if code == 0x07:
            if self.esc & _Esc.STR_END:
                self.str_handle()
            else:
                self.window.bell()
        elif code == 0x1A:
            screen.set_char(ord("?"), cursor.attr, cursor.x, cursor.y)
            self.csi.reset()
        elif code == 0x18:
            self.csi.reset()
        elif code == 0x85:
            screen.newline(True)
        elif code == 0x88:
            screen.tabs[cursor.x] = True
        elif code == 0x9A:
            self._send(self.config.vtiden)
        # Only CAN, SUB, BEL and C1 codes interrupt a sequence.
        self.esc &= ~(_Esc.STR_END | _Esc.STR)

    def esc_handle(self, code):
        """Handle the byte after ESC; returns True when the sequence is complete."""
        screen = self.screen
        cursor = screen.cursor
        char = chr(code)
        if char == "[":
            self.esc |= _Esc.CSI
            return False
        if char == "#":
            self.esc |= _Esc.TEST
            return False
        if char == "%":
            self.esc |= _Esc.UTF8
            return False
        if char in "P_^]k":
            self._str_sequence(code)
            return False
        if char in "()*+":
            screen.icharset = code - ord("(")
            self.esc |= _Esc.ALTCHARSET
            return False

        if char in "no":
            screen.charset = 2 + (code - ord("n"))
        elif char == "D":
            if cursor.y == screen.bot:
                screen.scroll_up(screen.top, 1, True)
            else:
                screen.move_to(cursor.x, cursor.y + 1)
        elif char == "E":
            screen.newline(True)
        elif char == "H":
            screen.tabs[cursor.x] = True
        elif char == "M":
            if cursor.y == screen.top:
                screen.scroll_down(screen.top, 1, True)
            else:
                screen.move_to(cursor.x, cursor.y - 1)
        elif char == "Z":
            self._send(self.config.vtiden)
        elif char == "c":
            screen.reset()
            self.window.set_title(None)
            self.window.load_colors()
        elif char == "=":
            self.window.set_mode(True, WinMode.APPKEYPAD)
        elif char == ">":
            self.window.set_mode(False, WinMode.APPKEYPAD)
        elif char == "7":
            screen.save_cursor()
        elif char == "8":
            screen.load_cursor()
        elif char == "\\":
            if self.esc & _Esc.STR_END:
                self.str_handle()
        else:
            shown = char if 0x20 <= code <= 0x7E else "."
            log.warning("erresc: unknown sequence ESC 0x%02X '%s'", code & 0xFF, shown)
        return True

    def _define_utf8(self, code):
        if code == ord("G"):
            self.screen.mode |= TermMode.UTF8
        elif code == ord("@"):
            self.screen.mode &= ~TermMode.UTF8

    def _define_translation(self, code):
        charsets = {ord("0"): Charset.GRAPHIC0, ord("B"): Charset.USA}
        if code in charsets:
            self.screen.trantbl[self.screen.icharset] = charsets[code]
        else:
            log.warning("esc unhandled charset: ESC ( %c", code)

    def _dec_test(self, code):
        if code != ord("8"):
            return
        screen = self.screen
        for x in range(screen.cols):
            for y in range(screen.rows):
                screen.set_char(ord("E"), screen.cursor.attr, x, y)

    def csi_handle(self):
        screen = self.screen
        csi = self.csi
        args = csi.args
        x, y = screen.cursor.x, screen.cursor.y
        final, intermediate = csi.mode[0], csi.mode[1]

        def arg(index, default=1):
            return args[index] or default

        unknown = False
        if final == "@":
            screen.insert_blanks(arg(0))
        elif final == "A":
            screen.move_to(x, y - arg(0))
        elif final in "Be":
            screen.move_to(x, y + arg(0))
        elif final == "i":
            if args[0] == 0:
                self.dump_screen()
            elif args[0] == 1:
                self.dump_line(y)
            elif args[0] == 2:
                self.dump_selection()
            elif args[0] == 4:
                screen.mode &= ~TermMode.PRINT
            elif args[0] == 5:
                screen.mode |= TermMode.PRINT
        elif final == "c":
            if args[0] == 0:
                self._send(self.config.vtiden)
        elif final == "b":
            if screen.lastc:
                for _ in range(arg(0)):
                    self.put_char(screen.lastc)
        elif final in "Ca":
            screen.move_to(x + arg(0), y)
        elif final == "D":
            screen.move_to(x - arg(0), y)
        elif final == "E":
            screen.move_to(0, y + arg(0))
        elif final == "F":
            screen.move_to(0, y - arg(0))
        elif final == "g":
            if args[0] == 0:
                screen.tabs[x] = False
            elif args[0] == 3:
                screen.tabs = [False] * screen.cols
            else:
                unknown = True
        elif final in "G`":
            screen.move_to(arg(0) - 1, y)
        elif final in "Hf":
            screen.move_to_abs(arg(1) - 1, arg(0) - 1)
        elif final == "I":
            screen.put_tab(arg(0))
        elif final == "J":
            if args[0] == 0:
                screen.clear_region(x, y, screen.cols - 1, y)
                if y < screen.rows - 1:
                    screen.clear_region(0, y + 1, screen.cols - 1, screen.rows - 1)
            elif args[0] == 1:
                if y > 1:
                    screen.clear_region(0, 0, screen.cols - 1, y - 1)
                screen.clear_region(0, y, x, y)
            elif args[0] == 2:
                screen.clear_region(0, 0, screen.cols - 1, screen.rows - 1)
            else:
                unknown = True
        elif final == "K":
            if args[0] == 0:
                screen.clear_region(x, y, screen.cols - 1, y)
            elif args[0] == 1:
                screen.clear_region(0, y, x, y)
            elif args[0] == 2:
                screen.clear_region(0, y, screen.cols - 1, y)
        elif final == "S":
            screen.scroll_up(screen.top, arg(0), False)
        elif final == "T":
            screen.scroll_down(screen.top, arg(0), False)
        elif final == "L":
            screen.insert_blank_lines(arg(0))
        elif final == "l":
            self.set_mode(csi.priv, False, args[: csi.narg])
        elif final == "M":
            screen.delete_lines(arg(0))
        elif final == "X":
            screen.clear_region(x, y, x + arg(0) - 1, y)
        elif final == "P":
            screen.delete_chars(arg(0))
        elif final == "Z":
            screen.put_tab(-arg(0))
        elif final == "d":
            screen.move_to_abs(x, arg(0) - 1)
        elif final == "h":
            self.set_mode(csi.priv, True, args[: csi.narg])
        elif final == "m":
            self.set_attr(args[: csi.narg])
        elif final == "n":
            if args[0] == 6:
                self._send(f"\033[{y + 1};{x + 1}R")
        elif final == "r":
            if csi.priv:
                unknown = True
            else:
                screen.set_scroll_region(arg(0) - 1, arg(1, screen.rows) - 1)
                screen.move_to_abs(0, 0)
        elif final == "s":
            screen.save_cursor()
        elif final == "u":
            screen.load_cursor()
        elif final == " " and intermediate == "q":
            try:
                self.window.set_cursor(args[0])
            except ValueError:
                unknown = True
        else:
            unknown = True

        if unknown:
            log.warning("erresc: unknown csi %s", csi.dump())

    def str_handle(self):
        self.esc &= ~(_Esc.STR_END | _Esc.STR)
        args = self.strseq.parse()
        narg = len(args)
        par = _atoi(args[0]) if narg else 0
        window = self.window
        kind = self.strseq.kind

        if kind == "]":
            if par == 0:
                if narg > 1:
                    window.set_title(args[1])
                    window.set_icon_title(args[1])
                return
            if par == 1:
                if narg > 1:
                    window.set_icon_title(args[1])
                return
            if par == 2:
                if narg > 1:
                    window.set_title(args[1])
                return
            if par == 52:
                if narg > 2 and self.config.allow_window_ops:
                    window.set_selection(base64_decode(args[2]))
                    window.clipcopy()
                return
            if par in (4, 104) and not (par == 4 and narg < 3):
                name = args[2] if par == 4 else None
                index = _atoi(args[1]) if narg > 1 else -1
                try:
                    window.set_color_name(index, name)
                except ValueError:
                    if par == 104 and narg <= 1:
                        return
                    log.warning("erresc: invalid color j=%d, p=%s", index, name)
                else:
                    self.screen.redraw()
                return
        elif kind == "k":
            window.set_title(args[0] if args else None)
            return
        elif kind in ("P", "_", "^"):
            return

        log.warning("erresc: unknown str %s", self.strseq.dump())

    def define_color(self, attrs, index):
        """Read an extended colour starting at ``attrs[index]``.

        Returns ``(color, index)``: the colour, or None when invalid, and
        the index of the last argument used.
        """
        attrs = list(attrs)
        count = len(attrs)

        def at(k):
            return attrs[k] if 0 <= k < count else 0

        kind = at(index + 1)
        if kind == 2:
            if index + 4 >= count:
                log.warning("erresc(38): Incorrect number of parameters (%d)", index)
                return None, index
            r, g, b = at(index + 2), at(index + 3), at(index + 4)
            index += 4
            if not all(0 <= c <= 255 for c in (r, g, b)):
                log.warning("erresc: bad rgb color (%d,%d,%d)", r, g, b)
                return None, index
            return truecolor(r, g, b), index
        if kind == 5:
            if index + 2 >= count:
                log.warning("erresc(38): Incorrect number of parameters (%d)", index)
                return None, index
            index += 2
            value = attrs[index]
            if not 0 <= value <= 255:
                log.warning("erresc: bad fgcolor %d", value)
                return None, index
            return value, index
        log.warning("erresc(38): gfx attr %d unknown", at(index))
        return None, index

    def set_attr(self, attrs):
        attrs = list(attrs)
        attr = self.screen.cursor.attr
        config = self.config
        index = 0
        while index < len(attrs):
            value = attrs[index]
            if value == 0:
                attr.mode &= ~_SGR_RESET
                attr.fg = config.default_fg
                attr.bg = config.default_bg
            elif value in _SGR_SET:
                attr.mode |= _SGR_SET[value]
            elif value in _SGR_CLEAR:
                attr.mode &= ~_SGR_CLEAR[value]
            elif value in (38, 48):
                color, index = self.define_color(attrs, index)
                if color is not None:
                    if value == 38:
                        attr.fg = color
                    else:
                        attr.bg = color
            elif value == 39:
                attr.fg = config.default_fg
            elif value == 49:
                attr.bg = config.default_bg
            elif 30 <= value <= 37:
                attr.fg = value - 30
            elif 40 <= value <= 47:
                attr.bg = value - 40
            elif 90 <= value <= 97:
                attr.fg = value - 90 + 8
            elif 100 <= value <= 107:
                attr.bg = value - 100 + 8
            else:
                log.warning("erresc(default): gfx attr %d unknown %s", value, self.csi.dump())
            index += 1

    def set_mode(self, private, enable, args):
        enable = bool(enable)
        screen = self.screen
        window = self.window
        for arg in args:
            if not private:
                if arg == 2:
                    window.set_mode(enable, WinMode.KBDLOCK)
                elif arg == 4:
                    screen.mode = _modbit(screen.mode, enable, TermMode.INSERT)
                elif arg == 12:
                    screen.mode = _modbit(screen.mode, not enable, TermMode.ECHO)
                elif arg == 20:
                    screen.mode = _modbit(screen.mode, enable, TermMode.CRLF)
                elif arg != 0:
                    log.warning("erresc: unknown set/reset mode %d", arg)
                continue

            if arg in _PRIVATE_WIN_MODES:
                window.set_mode(enable, _PRIVATE_WIN_MODES[arg])
            elif arg in _MOUSE_MODES:
                window.set_pointer_motion(enable if arg == 1003 else False)
                window.set_mode(False, WinMode.MOUSE)
                window.set_mode(enable, _MOUSE_MODES[arg])
            elif arg == 6:
                screen.cursor.state = _modbit(screen.cursor.state, enable, CursorState.ORIGIN)
                screen.move_to_abs(0, 0)
            elif arg == 7:
                screen.mode = _modbit(screen.mode, enable, TermMode.WRAP)
            elif arg == 25:
                window.set_mode(not enable, WinMode.HIDE)
            elif arg in (47, 1047, 1049):
                if not self.config.allow_alt_screen:
                    continue
                if arg == 1049:
                    self._save_or_load(enable)
                if screen.alt_screen:
                    screen.clear_region(0, 0, screen.cols - 1, screen.rows - 1)
                if enable != screen.alt_screen:
                    screen.swap_screen()
                if arg == 1049:
                    self._save_or_load(enable)
            elif arg == 1048:
                self._save_or_load(enable)
            elif arg not in _IGNORED_PRIVATE:
                log.warning("erresc: unknown private set/reset mode %d", arg)

    def _save_or_load(self, save):
        if save:
            self.screen.save_cursor()
        else:
            self.screen.load_cursor()