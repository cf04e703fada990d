import pytest

from simpleterm.glyph import Attr, Glyph
from simpleterm.screen import Charset, CursorState, Screen, TermConfig, TermMode
from simpleterm.window import Window


def make_screen(cols=10, rows=5, window=None, **options):
    config = TermConfig(history_size=8, **options)
    return Screen(cols, rows, config=config, window=window)


def put_text(screen, y, text, x=0):
    for offset, char in enumerate(text):
        screen.set_char(ord(char), screen.cursor.attr, x + offset, y)


def row_text(screen, y):
    return "".join(chr(glyph.u) for glyph in screen.line_at(y))


def test_new_screen_is_blank_and_reset():
    screen = make_screen()
    assert all(screen.line_length(y) == 0 for y in range(screen.rows))
    assert screen.mode == TermMode.WRAP | TermMode.UTF8
    assert (screen.top, screen.bot) == (0, screen.rows - 1)
    assert all(len(line) == screen.cols for line in screen.lines + screen.alt)
    assert not screen.alt_screen


def test_line_length_ignores_trailing_blanks_unless_wrapped():
    screen = make_screen()
    put_text(screen, 0, "ab")
    assert screen.line_length(0) == 2
    screen.lines[0][screen.cols - 1].mode |= Attr.WRAP
    assert screen.line_length(0) == screen.cols


def test_move_to_clamps_and_clears_wrapnext():
    screen = make_screen()
    screen.cursor.state |= CursorState.WRAPNEXT
    screen.move_to(100, -3)
    assert (screen.cursor.x, screen.cursor.y) == (screen.cols - 1, 0)
    assert not screen.cursor.state & CursorState.WRAPNEXT


def test_move_to_abs_honours_origin_mode():
    screen = make_screen()
    screen.set_scroll_region(2, 4)
    screen.cursor.state |= CursorState.ORIGIN
    screen.move_to_abs(0, 0)
    assert screen.cursor.y == screen.top
    screen.move_to(0, 0)
    assert screen.cursor.y == screen.top


def test_set_scroll_region_swaps_and_clamps():
    screen = make_screen()
    screen.set_scroll_region(3, 1)
    assert (screen.top, screen.bot) == (1, 3)
    screen.set_scroll_region(-5, 50)
    assert (screen.top, screen.bot) == (0, screen.rows - 1)


def test_tabs_forward_and_back():
    screen = make_screen(cols=20)
    screen.put_tab(1)
    assert screen.cursor.x == screen.config.tabspaces
    screen.put_tab(5)
    assert screen.cursor.x == screen.cols - 1
    screen.put_tab(-1)
    assert screen.cursor.x == screen.config.tabspaces
    screen.put_tab(-1)
    assert screen.cursor.x == 0


def test_graphic_charset_translates():
    screen = make_screen()
    screen.trantbl[0] = Charset.GRAPHIC0
    screen.set_char(ord("q"), screen.cursor.attr, 0, 0)
    assert screen.lines[0][0].u == ord("─")
    screen.trantbl[0] = Charset.USA
    screen.set_char(ord("q"), screen.cursor.attr, 1, 0)
    assert screen.lines[0][1].u == ord("q")


def test_overwriting_wide_dummy_clears_wide_cell():
    screen = make_screen()
    wide = screen.cursor.attr.copy()
    wide.mode |= Attr.WIDE
    screen.set_char(0x4E2D, wide, 0, 0)
    screen.lines[0][1] = Glyph(0, Attr.WDUMMY)
    screen.set_char(ord("x"), screen.cursor.attr, 1, 0)
    assert screen.lines[0][0].u == ord(" ")
    assert not screen.lines[0][0].mode & Attr.WIDE


def test_clear_region_uses_cursor_colours_and_swaps_bounds():
    screen = make_screen()
    put_text(screen, 1, "abcdef")
    screen.cursor.attr.fg = 3
    screen.clear_region(4, 1, 1, 1)
    assert row_text(screen, 1).startswith("a    f")
    assert all(screen.lines[1][x].fg == 3 for x in range(1, 5))
    assert screen.lines[1][0].fg != 3


def test_insert_then_delete_round_trips():
    screen = make_screen()
    put_text(screen, 0, "abc")
    screen.move_to(0, 0)
    screen.insert_blanks(2)
    assert row_text(screen, 0).startswith("  abc")
    screen.delete_chars(2)
    assert row_text(screen, 0).startswith("abc  ")
    assert screen.line_length(0) == 3


def test_insert_and_delete_lines():
    screen = make_screen()
    put_text(screen, 1, "one")
    put_text(screen, 2, "two")
    screen.move_to(0, 1)
    screen.insert_blank_lines(1)
    assert screen.line_length(1) == 0
    assert row_text(screen, 2).startswith("one")
    screen.delete_lines(1)
    assert row_text(screen, 1).startswith("one")
    assert row_text(screen, 2).startswith("two")


def test_scroll_up_keeps_history_and_scroll_back():
    screen = make_screen(rows=3)
    put_text(screen, 0, "A")
    screen.scroll_up(0, 1, True)
    assert screen.line_length(0) == 0
    screen.scroll_back_up(1)
    assert screen.scr == 1
    assert screen.line_at(0)[0].u == ord("A")
    screen.scroll_back_down(1)
    assert screen.scr == 0
    assert screen.line_at(0)[0].u == ord(" ")


def test_scroll_down_restores_from_history():
    screen = make_screen(rows=3)
    put_text(screen, 0, "top")
    screen.scroll_up(0, 1, True)
    screen.scroll_down(0, 1, True)
    assert row_text(screen, 0).startswith("top")


def test_newline_at_bottom_scrolls():
    screen = make_screen(rows=3)
    put_text(screen, 2, "last")
    screen.move_to(3, 2)
    screen.newline(True)
    assert (screen.cursor.x, screen.cursor.y) == (0, 2)
    assert row_text(screen, 1).startswith("last")


def test_swap_screen_toggles_buffers():
    screen = make_screen()
    put_text(screen, 0, "main")
    screen.swap_screen()
    assert screen.alt_screen
    assert screen.line_length(0) == 0
    screen.swap_screen()
    assert row_text(screen, 0).startswith("main")


def test_save_and_load_cursor():
    screen = make_screen()
    screen.move_to(3, 2)
    screen.cursor.attr.mode |= Attr.BOLD
    screen.save_cursor()
    screen.move_to(0, 0)
    screen.cursor.attr.mode = Attr.NULL
    screen.load_cursor()
    assert (screen.cursor.x, screen.cursor.y) == (3, 2)
    assert screen.cursor.attr.mode & Attr.BOLD


def test_attr_set_and_dirty_attr():
    screen = make_screen()
    bold = screen.cursor.attr.copy()
    bold.mode |= Attr.BOLD
    screen.set_char(ord("b"), bold, 0, 1)
    assert screen.attr_set(Attr.BOLD)
    assert not screen.attr_set(Attr.ITALIC)
    screen.dirty = [False] * screen.rows
    screen.set_dirty_attr(Attr.BOLD)
    assert [y for y, flag in enumerate(screen.dirty) if flag] == [1]


def test_resize_keeps_content_and_grows():
    screen = make_screen()
    put_text(screen, 0, "hi")
    screen.resize(20, 8)
    assert (screen.cols, screen.rows) == (20, 8)
    assert all(len(line) == 20 for line in screen.lines)
    assert len(screen.tabs) == 20 and len(screen.dirty) == 8
    assert screen.line_length(0) == 2
    assert screen.tabs[screen.config.tabspaces]


def test_resize_shrink_keeps_cursor_row_visible():
    screen = make_screen(rows=3)
    put_text(screen, 1, "X")
    screen.move_to(0, 2)
    screen.resize(10, 2)
    assert screen.lines[0][0].u == ord("X")
    assert screen.cursor.y == 1


@pytest.mark.parametrize("size", [(0, 5), (5, 0), (-1, -1)])
def test_resize_rejects_empty_sizes(size):
    screen = make_screen()
    with pytest.raises(ValueError):
        screen.resize(*size)


def test_draw_sends_dirty_lines_and_cursor():
    window = Window()
    screen = make_screen(cols=6, rows=3, window=window)
    put_text(screen, 0, "abc")
    screen.draw()
    assert sorted(window.lines) == [0, 1, 2]
    assert [chr(g.u) for g in window.lines[0][:3]] == list("abc")
    assert window.cursor == (0, 0)
    assert not any(screen.dirty)
    screen.move_to(2, 1)
    screen.draw()
    assert window.cursor == (2, 1)
    assert window.im_spot == (2, 1)


def test_redraw_marks_everything_and_draws():
    window = Window()
    screen = make_screen(cols=4, rows=2, window=window)
    screen.draw()
    window.lines.clear()
    screen.redraw()
    assert sorted(window.lines) == [0, 1]
    assert window.frames == 2


def test_braille_marked_as_boxdraw_when_enabled():
    screen = make_screen(boxdraw_braille=True)
    screen.set_char(0x2801, screen.cursor.attr, 0, 0)
    screen.set_char(ord("a"), screen.cursor.attr, 1, 0)
    assert screen.lines[0][0].u == 0x2801
    assert (screen.lines[0][0].mode & Attr.BOXDRAW) == Attr.BOXDRAW
    assert (screen.lines[0][1].mode & Attr.BOXDRAW) == 0