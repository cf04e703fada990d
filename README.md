# simpleterm

simpleterm is the core of a simple terminal emulator. It keeps the screen
model (lines of glyphs, scrollback history, alternate screen, cursor, tab
stops, scrolling region), interprets the byte stream a program writes to its
terminal (control codes, ESC, CSI and OSC/DCS string sequences, SGR colours
including 256-colour and truecolor), handles text selection, and talks to a
child process through a pseudo-terminal.

## Installing

```
pip install simpleterm
```

`wcwidth` is the only runtime dependency; it decides which characters take
two cells.

## Pieces

- `simpleterm.glyph`: the `Glyph` cell, the `Attr` and `WinMode` flags,
  the `SelMode`, `SelType` and `Snap` enums, `truecolor` / `is_truecolor`
  for 24-bit colours and `attrs_differ` for comparing cell attributes.
- `simpleterm.utf8`: `utf8_decode`, `utf8_encode`, `utf8_validate` and a
  lenient `base64_decode`; invalid code points become U+FFFD.
- `simpleterm.escape`: `CsiEscape` and `StrEscape`, the buffers that
  collect escape sequences and split them into arguments.
- `simpleterm.window`: `Window`, a headless front end that records what the
  terminal asks of it: title and icon title, bell count, mode flags,
  selection and clipboard, palette overrides (`#rgb`, `#rrggbb` and
  `rgb:r/g/b` names), cursor style, and the lines and cursor last drawn.
- `simpleterm.selection`: `Selection`, regular and rectangular selection
  with word and line snapping; `get_text` returns the selected text with
  `\n` line ends.
- `simpleterm.screen`: `Screen`, with `Cursor`, `TermMode`, `CursorState`,
  `Charset` and `TermConfig` (tab width, default colours, word delimiters,
  history size, answerback string, stty arguments and the like).
  `Screen.resize` raises `ValueError` below 1x1.
- `simpleterm.terminal`: `Terminal`, which takes bytes through
  `Terminal.write` and keeps its `screen` and `window` up to date. Answers
  meant for the program (device attributes, cursor position reports) go to
  the `reply` callable if one is given, otherwise they collect in
  `Terminal.replies`. Media-copy output goes to the binary stream set with
  `Terminal.set_printer`. Unknown sequences are reported through `logging`.
- `simpleterm.tty`: `Tty`, which starts a shell on a pseudo-terminal or
  opens a serial line (`Tty.spawn`), reads from it (`Tty.read`), writes
  input to it (`Tty.write`, `Tty.write_raw`), passes on window sizes
  (`Tty.resize`) and sends hangups and breaks. `Tty.read` raises `EOFError`
  when the program has gone and `TtyError` when it failed. The helpers
  `shell_argv`, `child_environment` and `stty_command` build the command
  and environment.

## Feeding bytes to the terminal

```python
from simpleterm.terminal import Terminal

term = Terminal()
term.write(b"hello \x1b[1mworld\x1b[0m\r\n", False)
print(term.screen.line_at(0)[0].u)   # ord("h")
print(term.screen.cursor.y)          # 1
```

## Running a shell

```python
import select

from simpleterm.terminal import Terminal
from simpleterm.tty import Tty

term = Terminal(cols=80, rows=24)
tty = Tty(term)
fd = tty.spawn()
tty.resize(0, 0)

while True:
    select.select([fd], [], [])
    try:
        tty.read()
    except EOFError:
        break
    if term.replies:
        tty.write_raw(term.replies)
        term.replies.clear()
    term.screen.draw()   # dirty lines land in term.window.lines
tty.close()
```

## What it does not do

simpleterm has no graphical window, font loading or glyph rendering, and it
does not read the keyboard or mouse. `Window` only records requests; to show
anything, subclass it and draw what `draw_line` and `draw_cursor` are given.
The package installs no command of its own.

## Running the tests

```
pip install simpleterm[test]
pytest
```