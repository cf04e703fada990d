"""Terminal emulation core: screen model, escape sequences, selection and pty handling."""

__version__ = "0.8.4"

__all__ = [
    "glyph",
    "utf8",
    "escape",
    "window",
    "selection",
    "screen",
    "terminal",
    "tty",
]