"""Tests for the body TextBuffer."""

import random

from vreq.buffer import Direction, TextBuffer


def assert_in_bounds(buf: TextBuffer) -> None:
    assert 0 <= buf.cursor_row < len(buf.lines)
    assert 0 <= buf.cursor_col <= len(buf.lines[buf.cursor_row])


class TestBufferBasic:
    """Initialization and content access."""

    def test_init_empty(self):
        buf = TextBuffer()
        assert buf.lines == [""]
        assert buf.cursor == (0, 0)

    def test_init_multiline(self):
        buf = TextBuffer('{\n    "a": 1\n}')
        assert len(buf.lines) == 3
        assert buf.lines[1] == '    "a": 1'

    def test_text_joins_lines(self):
        content = '{\n    "a": 1\n}'
        assert TextBuffer(content).text() == content

    def test_set_text_resets_cursor(self):
        buf = TextBuffer("abc")
        buf.move_to_line_end()
        buf.set_text("x\ny")
        assert buf.lines == ["x", "y"]
        assert buf.cursor == (0, 0)


class TestInsert:
    def test_insert_chars(self):
        buf = TextBuffer()
        for ch in "abc":
            buf.insert(ch)
        assert buf.lines == ["abc"]
        assert buf.cursor_col == 3

    def test_insert_in_middle(self):
        buf = TextBuffer("ac")
        buf.move_cursor(Direction.RIGHT)
        buf.insert("b")
        assert buf.text() == "abc"
        assert buf.cursor_col == 2

    def test_tab_inserts_spaces(self):
        buf = TextBuffer()
        buf.insert("\t")
        assert buf.lines == ["    "]
        assert buf.cursor_col == 4

    def test_insert_empty_is_noop(self):
        buf = TextBuffer("abc")
        buf.insert("")
        assert buf.text() == "abc"

    def test_closing_bracket_dedents(self):
        buf = TextBuffer("{\n    ")
        buf.move_cursor(Direction.DOWN)
        buf.move_to_line_end()
        buf.insert("}")
        assert buf.lines == ["{", "}"]
        assert buf.cursor == (1, 1)

    def test_insert_text_multiline(self):
        buf = TextBuffer("[]")
        buf.move_cursor(Direction.RIGHT)
        buf.insert_text("1,\n2")
        assert buf.lines == ["[1,", "2]"]
        assert buf.cursor == (1, 1)


class TestNewline:
    def test_split_line(self):
        buf = TextBuffer("ab")
        buf.move_cursor(Direction.RIGHT)
        buf.insert_newline()
        assert buf.lines == ["a", "b"]
        assert buf.cursor == (1, 0)

    def test_keeps_indent(self):
        buf = TextBuffer('    "a": 1,')
        buf.move_to_line_end()
        buf.insert_newline()
        assert buf.lines == ['    "a": 1,', "    "]
        assert buf.cursor == (1, 4)

    def test_indent_after_open_brace(self):
        buf = TextBuffer("{")
        buf.move_to_line_end()
        buf.insert_newline()
        assert buf.lines == ["{", "    "]
        assert buf.cursor == (1, 4)

    def test_split_bracket_pair(self):
        buf = TextBuffer("{}")
        buf.move_cursor(Direction.RIGHT)
        buf.insert_newline()
        assert buf.lines == ["{", "    ", "}"]
        assert buf.cursor == (1, 4)

    def test_insert_newline_char(self):
        buf = TextBuffer("ab")
        buf.move_cursor(Direction.RIGHT)
        buf.insert("\n")
        assert buf.lines == ["a", "b"]


class TestDelete:
    def test_backspace_at_origin_is_noop(self):
        buf = TextBuffer("abc")
        buf.delete_backward()
        assert buf.text() == "abc"
        assert buf.cursor == (0, 0)

    def test_backspace_removes_char(self):
        buf = TextBuffer("abc")
        buf.move_to_line_end()
        buf.delete_backward()
        assert buf.text() == "ab"
        assert buf.cursor_col == 2

    def test_backspace_joins_lines(self):
        buf = TextBuffer("ab\ncd")
        buf.move_cursor(Direction.DOWN)
        buf.move_to_line_start()
        buf.delete_backward()
        assert buf.lines == ["abcd"]
        assert buf.cursor == (0, 2)

    def test_delete_forward_removes_char(self):
        buf = TextBuffer("abc")
        buf.delete_forward()
        assert buf.text() == "bc"
        assert buf.cursor == (0, 0)

    def test_delete_forward_joins_lines(self):
        buf = TextBuffer("ab\ncd")
        buf.move_to_line_end()
        buf.delete_forward()
        assert buf.lines == ["abcd"]
        assert buf.cursor == (0, 2)

    def test_delete_forward_at_end_is_noop(self):
        buf = TextBuffer("ab")
        buf.move_to_line_end()
        buf.delete_forward()
        assert buf.text() == "ab"
        assert buf.cursor == (0, 2)


class TestMovement:
    def test_left_at_origin_is_noop(self):
        buf = TextBuffer("abc")
        buf.move_cursor(Direction.LEFT)
        assert buf.cursor == (0, 0)

    def test_up_at_top_is_noop(self):
        buf = TextBuffer("abc\ndef")
        buf.move_cursor(Direction.RIGHT)
        buf.move_cursor(Direction.UP)
        assert buf.cursor == (0, 1)

    def test_right_at_end_is_noop(self):
        buf = TextBuffer("ab")
        buf.move_to_line_end()
        buf.move_cursor(Direction.RIGHT)
        assert buf.cursor == (0, 2)

    def test_left_wraps_to_previous_line(self):
        buf = TextBuffer("ab\ncd")
        buf.move_cursor(Direction.DOWN)
        buf.move_cursor(Direction.LEFT)
        assert buf.cursor == (0, 2)

    def test_right_wraps_to_next_line(self):
        buf = TextBuffer("ab\ncd")
        buf.move_to_line_end()
        buf.move_cursor(Direction.RIGHT)
        assert buf.cursor == (1, 0)

    def test_vertical_keeps_goal_column(self):
        buf = TextBuffer("abcdef\nab\nabcdef")
        buf.move_to_line_end()
        buf.move_cursor(Direction.LEFT)
        buf.move_cursor(Direction.DOWN)
        assert buf.cursor == (1, 2)
        buf.move_cursor(Direction.DOWN)
        assert buf.cursor == (2, 5)

    def test_home_toggles_between_indent_and_zero(self):
        buf = TextBuffer("    x")
        buf.move_to_line_end()
        buf.move_to_line_start()
        assert buf.cursor_col == 4
        buf.move_to_line_start()
        assert buf.cursor_col == 0


class TestSelection:
    def test_no_selection_by_default(self):
        buf = TextBuffer("abc")
        assert buf.selection() is None
        assert buf.selected_text() == ""

    def test_shift_select_and_replace(self):
        buf = TextBuffer("hello world")
        for _ in range(5):
            buf.move_cursor(Direction.RIGHT, select=True)
        assert buf.selected_text() == "hello"
        buf.insert("X")
        assert buf.text() == "X world"
        assert buf.selection() is None

    def test_backward_selection_is_ordered(self):
        buf = TextBuffer("abcdef")
        buf.move_to_line_end()
        buf.move_cursor(Direction.LEFT, select=True)
        buf.move_cursor(Direction.LEFT, select=True)
        assert buf.selection() == (0, 4, 0, 6)
        assert buf.selected_text() == "ef"

    def test_multiline_selected_text(self):
        buf = TextBuffer("ab\ncd\nef")
        buf.move_cursor(Direction.RIGHT)
        buf.move_cursor(Direction.DOWN, select=True)
        buf.move_cursor(Direction.DOWN, select=True)
        assert buf.selected_text() == "b\ncd\ne"

    def test_select_all_then_delete(self):
        buf = TextBuffer('{\n    "a": 1\n}')
        buf.select_all()
        buf.delete_backward()
        assert buf.lines == [""]
        assert buf.cursor == (0, 0)

    def test_plain_move_clears_selection(self):
        buf = TextBuffer("abc")
        buf.move_cursor(Direction.RIGHT, select=True)
        buf.move_cursor(Direction.RIGHT)
        assert buf.selection() is None

    def test_clear_selection(self):
        buf = TextBuffer("abc")
        buf.select_all()
        buf.clear_selection()
        assert buf.selection() is None


class TestBounds:
    """The cursor never leaves the document, whatever the edit sequence."""

    def test_random_edit_sequences_stay_in_bounds(self):
        rng = random.Random(1234)
        ops = [
            lambda b: b.insert(rng.choice('ab{}[]":, ')),
            lambda b: b.insert_newline(),
            lambda b: b.delete_backward(),
            lambda b: b.delete_forward(),
            lambda b: b.move_cursor(rng.choice(list(Direction))),
            lambda b: b.move_cursor(rng.choice(list(Direction)), select=True),
            lambda b: b.move_to_line_start(),
            lambda b: b.move_to_line_end(),
            lambda b: b.select_all(),
        ]
        for _ in range(20):
            buf = TextBuffer()
            for _ in range(200):
                rng.choice(ops)(buf)
                assert_in_bounds(buf)
