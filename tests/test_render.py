import time

from tilde.render import compose_frame, refresh_screen, scroll


def test_scroll_follows_cursor_vertically(make_editor):
    editor = make_editor(lines=[str(i) for i in range(100)], size=(22, 80))
    assert editor.view.screenrows == 20

    editor.cursor.cy = 99
    scroll(editor)
    assert editor.view.rowoff == 80

    editor.cursor.cy = 0
    scroll(editor)
    assert editor.view.rowoff == 0


def test_scroll_uses_render_column(make_editor):
    editor = make_editor(lines=["\t\t\tx"], size=(10, 10))
    editor.cursor.cx = 3
    scroll(editor)
    assert editor.cursor.rx == 24
    assert editor.view.coloff == 15

    editor.cursor.cx = 0
    scroll(editor)
    assert editor.view.coloff == 0


def test_scroll_on_virtual_row(make_editor):
    editor = make_editor(lines=["abc"])
    editor.cursor.cy = 1
    scroll(editor)
    assert editor.cursor.rx == 0


def test_frame_layout(make_editor):
    editor = make_editor(lines=["int x = 10;"], filename="a.c", size=(5, 40))
    scroll(editor)
    frame = compose_frame(editor)

    assert frame.startswith("\x1b[?25l\x1b[H")
    assert frame.endswith("\x1b[1;1H\x1b[?25h")
    assert "\x1b[32mint\x1b[39m x = \x1b[31m10\x1b[39m;\x1b[39m\x1b[K\r\n" in frame
    assert frame.count("~\x1b[K\r\n") == 2
    status = "a.c - 1 lines " + " " * 19 + "c | 1/1"
    assert "\x1b[7m" + status + "\x1b[m\r\n" in frame


def test_color_codes_are_coalesced_per_run(make_editor):
    editor = make_editor(lines=["// a long comment"], filename="a.c")
    scroll(editor)
    frame = compose_frame(editor)
    assert frame.count("\x1b[36m") == 1
    assert "\x1b[36m// a long comment\x1b[39m" in frame


def test_control_characters_render_inverted(make_editor):
    editor = make_editor(lines=["a\x01b\x1fc"], filename="a.c")
    scroll(editor)
    frame = compose_frame(editor)
    assert "a\x1b[7mA\x1b[mb\x1b[7m?\x1b[mc" in frame


def test_control_character_restores_active_color(make_editor):
    editor = make_editor(lines=['"a\x02b"'], filename="a.c")
    scroll(editor)
    frame = compose_frame(editor)
    assert '\x1b[35m"a\x1b[7mB\x1b[m\x1b[35mb"' in frame


def test_status_bar_shows_dirty_and_unnamed(make_editor):
    editor = make_editor(lines=["x"], size=(5, 60))
    editor.buf.insert_char(0, 0, "y")
    scroll(editor)
    frame = compose_frame(editor)
    assert "[No Name] - 1 lines (modified)" in frame
    assert "no ft | 1/1\x1b[m" in frame


def test_long_filename_is_truncated(make_editor):
    editor = make_editor(lines=["x"], filename="a" * 30 + ".txt", size=(5, 60))
    scroll(editor)
    assert "a" * 20 + " - 1 lines" in compose_frame(editor)


def test_rows_are_clipped_to_the_viewport(make_editor):
    editor = make_editor(lines=["0123456789abcdef"], size=(5, 8))
    editor.cursor.cx = 12
    scroll(editor)
    frame = compose_frame(editor)
    assert editor.view.coloff == 5
    assert "56789abc\x1b[39m\x1b[K" in frame
    assert frame.endswith("\x1b[1;8H\x1b[?25h")


def test_welcome_banner_on_empty_document(make_editor):
    editor = make_editor(size=(12, 80))
    scroll(editor)
    assert "Tilde editor -- version" in compose_frame(editor)


def test_message_bar_expires(make_editor):
    editor = make_editor(lines=["x"])
    editor.set_status_message("hello %d", 5)
    scroll(editor)
    assert compose_frame(editor).endswith("\x1b[Khello 5\x1b[1;1H\x1b[?25h")

    editor.statusmsg_time = time.time() - 10
    assert "hello 5" not in compose_frame(editor)


def test_refresh_screen_writes_one_frame(make_editor):
    editor = make_editor(lines=["abc"])
    refresh_screen(editor)
    assert len(editor.write.frames) == 1
    assert editor.write.last.endswith("\x1b[?25h")
