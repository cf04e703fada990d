"""Buffers and parsers for CSI and string escape sequences."""

import re

UTF_SIZ = 4
ESC_BUF_SIZ = 128 * UTF_SIZ
ESC_ARG_SIZ = 16
STR_BUF_SIZ = ESC_BUF_SIZ
STR_ARG_SIZ = ESC_ARG_SIZ

_NUMBER = re.compile(rb"[ \t\n\v\f\r]*([+-]?[0-9]+)")
_LONG_MAX = 2**63 - 1
_LONG_MIN = -(2**63)


def _to_int32(value):
    return ((value + 2**31) % 2**32) - 2**31


def _describe(byte):
    if 0x20 <= byte <= 0x7E:
        return chr(byte)
    if byte == 0x0A:
        return "(\\n)"
    if byte == 0x0D:
        return "(\\r)"
    if byte == 0x1B:
        return "(\\e)"
    return f"({byte:02x})"


class CsiEscape:
    """A control sequence: ESC '[' [[ [<priv>] <arg> [;]] <mode> [<mode>]]."""

    def __init__(self):
        self.reset()

    def reset(self):
        self.buf = bytearray()
        self.priv = False
        self.args = [0] * ESC_ARG_SIZ
        self.narg = 0
        self.mode = "\0\0"

    def append(self, byte):
        self.buf.append(byte & 0xFF)

    def is_full(self):
        return len(self.buf) >= ESC_BUF_SIZ - 1

    def parse(self):
        """Split the raw buffer into private flag, arguments and mode.

        Returns the parsed arguments.
        """
        buf = bytes(self.buf)
        end = len(buf)
        pos = 0
        self.narg = 0
        if buf[:1] == b"?":
            self.priv = True
            pos = 1

        while pos < end:
            match = _NUMBER.match(buf, pos)
            if match:
                value = int(match.group(1))
                pos = match.end()
            else:
                value = 0
            if value >= _LONG_MAX or value <= _LONG_MIN:
                value = -1
            self.args[self.narg] = _to_int32(value)
            self.narg += 1
            if pos >= end or buf[pos] != ord(";") or self.narg == ESC_ARG_SIZ:
                break
            pos += 1

        final = buf[pos] if pos < end else 0
        pos += 1
        intermediate = buf[pos] if pos < end else 0
        self.mode = chr(final) + chr(intermediate)
        return self.args[: self.narg]

    def dump(self):
        """Return a readable rendering of the raw sequence."""
        return "ESC[" + "".join(_describe(byte) for byte in self.buf)


class StrEscape:
    """A string sequence: ESC type [[ [<priv>] <arg> [;]] <mode>] ESC '\\'."""

    def __init__(self, kind="\0"):
        self.reset(kind)

    def reset(self, kind):
        self.kind = kind
        self.buf = bytearray()
        self.args = []
        self.narg = 0

    def append(self, data):
        self.buf.extend(data)

    def parse(self):
        """Split the buffer on ';' into at most STR_ARG_SIZ arguments."""
        content = bytes(self.buf).split(b"\0", 1)[0]
        if not content:
            self.args = []
        else:
            self.args = [
                part.decode("utf-8", errors="replace")
                for part in content.split(b";")[:STR_ARG_SIZ]
            ]
        self.narg = len(self.args)
        return self.args

    def dump(self):
        """Return a readable rendering of the raw sequence."""
        parts = [f"ESC{self.kind}"]
        for byte in self.buf:
            if byte == 0:
                return "".join(parts)
            parts.append(_describe(byte))
        parts.append("ESC\\")
        return "".join(parts)