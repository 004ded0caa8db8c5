"""Multi-line text buffer used by the Body panel."""

from __future__ import annotations

from enum import Enum, auto

INDENT = "    "


class Direction(Enum):
    UP = auto()
    DOWN = auto()
    LEFT = auto()
    RIGHT = auto()


class TextBuffer:
    """A list of lines with a cursor and an optional selection anchor.

    The cursor may sit one past the last character of a line (insert-style
    positioning).  Every public operation leaves ``cursor_row`` and
    ``cursor_col`` in bounds; requests that cannot be honoured are no-ops.
    """

    def __init__(self, text: str = "") -> None:
        self.lines: list[str] = text.split("\n") if text else [""]
        self.cursor_row: int = 0
        self.cursor_col: int = 0
        self._anchor: tuple[int, int] | None = None
        self._goal_col: int | None = None

    def __repr__(self) -> str:
        return (
            f"TextBuffer(lines={self.lines!r}, "
            f"cursor=({self.cursor_row}, {self.cursor_col}))"
        )

    # -- Content -----------------------------------------------------------

    def text(self) -> str:
        return "\n".join(self.lines)

    def set_text(self, text: str) -> None:
        """Replace the whole document and put the cursor at the start."""
        self.lines = text.split("\n") if text else [""]
        self.cursor_row = 0
        self.cursor_col = 0
        self._anchor = None
        self._goal_col = None

    @property
    def cursor(self) -> tuple[int, int]:
        return self.cursor_row, self.cursor_col

    def _clamp_cursor(self) -> None:
        self.cursor_row = max(0, min(self.cursor_row, len(self.lines) - 1))
        line_len = len(self.lines[self.cursor_row])
        self.cursor_col = max(0, min(self.cursor_col, line_len))

    # -- Selection ---------------------------------------------------------

    def start_selection(self) -> None:
        """Anchor a selection at the cursor unless one is already active."""
        if self._anchor is None:
            self._anchor = (self.cursor_row, self.cursor_col)

    def clear_selection(self) -> None:
        self._anchor = None

    def select_all(self) -> None:
        self._anchor = (0, 0)
        self.cursor_row = len(self.lines) - 1
        self.cursor_col = len(self.lines[-1])

    def selection(self) -> tuple[int, int, int, int] | None:
        """Return ``(start_row, start_col, end_row, end_col)``, end exclusive.

        An anchor that coincides with the cursor is an empty selection and
        reported as ``None``.
        """
        if self._anchor is None:
            return None
        ar, ac = self._anchor
        cr, cc = self.cursor_row, self.cursor_col
        if (ar, ac) == (cr, cc):
            return None
        if (ar, ac) <= (cr, cc):
            return (ar, ac, cr, cc)
        return (cr, cc, ar, ac)

    def selected_text(self) -> str:
        span = self.selection()
        if span is None:
            return ""
        sr, sc, er, ec = span
        if sr == er:
            return self.lines[sr][sc:ec]
        parts = [self.lines[sr][sc:]]
        parts.extend(self.lines[sr + 1 : er])
        parts.append(self.lines[er][:ec])
        return "\n".join(parts)

    def delete_selection(self) -> bool:
        """Remove the selected span. Returns True if anything was removed."""
        span = self.selection()
        self._anchor = None
        if span is None:
            return False
        sr, sc, er, ec = span
        before = self.lines[sr][:sc]
        after = self.lines[er][ec:]
        self.lines[sr : er + 1] = [before + after]
        self.cursor_row = sr
        self.cursor_col = sc
        self._goal_col = None
        return True

    # -- Editing -----------------------------------------------------------

    def insert(self, char: str) -> None:
        """Insert a single character at the cursor."""
        if not char:
            return
        if char == "\n":
            self.insert_newline()
            return
        if char == "\t":
            char = INDENT
        self.delete_selection()
        self._goal_col = None
        line = self.lines[self.cursor_row]
        col = self.cursor_col
        # closing bracket on a blank prefix drops one indent level
        if char in ("}", "]") and line[:col].strip() == "" and col > 0:
            new_indent = max(0, col - len(INDENT))
            self.lines[self.cursor_row] = " " * new_indent + char + line[col:]
            self.cursor_col = new_indent + 1
            return
        self.lines[self.cursor_row] = line[:col] + char + line[col:]
        self.cursor_col = col + len(char)

    def insert_text(self, text: str) -> None:
        """Insert *text* verbatim, splitting on newlines, without auto-indent."""
        if not text:
            return
        self.delete_selection()
        self._goal_col = None
        line = self.lines[self.cursor_row]
        before, after = line[: self.cursor_col], line[self.cursor_col :]
        parts = text.split("\n")
        if len(parts) == 1:
            self.lines[self.cursor_row] = before + text + after
            self.cursor_col += len(text)
            return
        new_lines = [before + parts[0], *parts[1:-1], parts[-1] + after]
        self.lines[self.cursor_row : self.cursor_row + 1] = new_lines
        self.cursor_row += len(parts) - 1
        self.cursor_col = len(parts[-1])

    def insert_newline(self) -> None:
        """Split the line at the cursor, carrying indentation forward."""
        self.delete_selection()
        self._goal_col = None
        row, col = self.cursor_row, self.cursor_col
        line = self.lines[row]
        indent = len(line) - len(line.lstrip()) if line.strip() else 0
        before = line[:col].rstrip()
        after = line[col:].lstrip()

        if before.endswith(("{", "[")) and after and after[0] in ("}", "]"):
            inner = " " * indent + INDENT
            self.lines[row : row + 1] = [line[:col], inner, " " * indent + after]
            self.cursor_row = row + 1
            self.cursor_col = len(inner)
            return

        extra = INDENT if before.endswith(("{", "[")) else ""
        new_line = " " * indent + extra + line[col:]
        self.lines[row : row + 1] = [line[:col], new_line]
        self.cursor_row = row + 1
        self.cursor_col = indent + len(extra)

    def delete_backward(self) -> None:
        if self.delete_selection():
            return
        self._goal_col = None
        row, col = self.cursor_row, self.cursor_col
        if col > 0:
            line = self.lines[row]
            self.lines[row] = line[: col - 1] + line[col:]
            self.cursor_col = col - 1
        elif row > 0:
            prev = self.lines[row - 1]
            self.lines[row - 1 : row + 1] = [prev + self.lines[row]]
            self.cursor_row = row - 1
            self.cursor_col = len(prev)

    def delete_forward(self) -> None:
        if self.delete_selection():
            return
        self._goal_col = None
        row, col = self.cursor_row, self.cursor_col
        line = self.lines[row]
        if col < len(line):
            self.lines[row] = line[:col] + line[col + 1 :]
        elif row < len(self.lines) - 1:
            self.lines[row : row + 2] = [line + self.lines[row + 1]]

    # -- Movement ----------------------------------------------------------

    def move_cursor(self, direction: Direction, *, select: bool = False) -> None:
        if select:
            self.start_selection()
        else:
            self._anchor = None
        row, col = self.cursor_row, self.cursor_col
        if direction is Direction.LEFT:
            self._goal_col = None
            if col > 0:
                self.cursor_col = col - 1
            elif row > 0:
                self.cursor_row = row - 1
                self.cursor_col = len(self.lines[row - 1])
        elif direction is Direction.RIGHT:
            self._goal_col = None
            if col < len(self.lines[row]):
                self.cursor_col = col + 1
            elif row < len(self.lines) - 1:
                self.cursor_row = row + 1
                self.cursor_col = 0
        else:
            target = row - 1 if direction is Direction.UP else row + 1
            if not 0 <= target < len(self.lines):
                return
            if self._goal_col is None:
                self._goal_col = col
            self.cursor_row = target
            self.cursor_col = self._goal_col
        self._clamp_cursor()

    def move_to_line_start(self, *, select: bool = False) -> None:
        """Jump to the first non-blank column, or to column 0 if already there."""
        if select:
            self.start_selection()
        else:
            self._anchor = None
        self._goal_col = None
        line = self.lines[self.cursor_row]
        first = len(line) - len(line.lstrip())
        self.cursor_col = 0 if self.cursor_col == first else first

    def move_to_line_end(self, *, select: bool = False) -> None:
        if select:
            self.start_selection()
        else:
            self._anchor = None
        self._goal_col = None
        self.cursor_col = len(self.lines[self.cursor_row])
