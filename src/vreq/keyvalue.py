"""Editable key/value rows for headers, query params and auth."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum, auto


class KeyValueField(Enum):
    KEY = auto()
    VALUE = auto()


@dataclass
class KeyValueEntry:
    key: str = ""
    value: str = ""
    enabled: bool = True
    # cell cursors; -1 means "end of text"
    key_cursor: int = field(default=-1, compare=False, repr=False)
    value_cursor: int = field(default=-1, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.key_cursor < 0:
            self.key_cursor = len(self.key)
        if self.value_cursor < 0:
            self.value_cursor = len(self.value)

    def get(self, which: KeyValueField) -> tuple[str, int]:
        if which is KeyValueField.KEY:
            return self.key, self.key_cursor
        return self.value, self.value_cursor

    def put(self, which: KeyValueField, text: str, cursor: int) -> None:
        cursor = max(0, min(cursor, len(text)))
        if which is KeyValueField.KEY:
            self.key, self.key_cursor = text, cursor
        else:
            self.value, self.value_cursor = text, cursor


class KeyValueList:
    """An ordered list of rows with one selected row and one focused field.

    An empty list behaves as a single virtual placeholder row: typing into
    it creates the first entry, while toggling or deleting it does nothing.
    """

    def __init__(self, entries: Iterable[KeyValueEntry] = ()) -> None:
        self.entries: list[KeyValueEntry] = list(entries)
        self.selected_index: int = 0
        self.focused_field: KeyValueField = KeyValueField.KEY

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return (
            f"KeyValueList({self.entries!r}, selected={self.selected_index}, "
            f"field={self.focused_field.name})"
        )

    # -- Helpers -----------------------------------------------------------

    def _clamp(self) -> None:
        last = max(1, len(self.entries)) - 1
        self.selected_index = max(0, min(self.selected_index, last))

    def selected_entry(self) -> KeyValueEntry | None:
        if not self.entries:
            return None
        return self.entries[self.selected_index]

    def _materialize(self) -> KeyValueEntry:
        """Return the selected entry, creating it from the placeholder row."""
        if not self.entries:
            self.entries.append(KeyValueEntry())
            self.selected_index = 0
        return self.entries[self.selected_index]

    def cell_cursor(self) -> int:
        entry = self.selected_entry()
        if entry is None:
            return 0
        return entry.get(self.focused_field)[1]

    # -- Navigation --------------------------------------------------------

    def move_selection(self, delta: int) -> None:
        self.selected_index += delta
        self._clamp()

    def switch_field(self) -> None:
        if self.focused_field is KeyValueField.KEY:
            self.focused_field = KeyValueField.VALUE
        else:
            self.focused_field = KeyValueField.KEY

    def move_cell_cursor(self, delta: int) -> None:
        entry = self.selected_entry()
        if entry is None:
            return
        text, cursor = entry.get(self.focused_field)
        entry.put(self.focused_field, text, cursor + delta)

    def cell_cursor_to_start(self) -> None:
        entry = self.selected_entry()
        if entry is not None:
            entry.put(self.focused_field, entry.get(self.focused_field)[0], 0)

    def cell_cursor_to_end(self) -> None:
        entry = self.selected_entry()
        if entry is not None:
            text = entry.get(self.focused_field)[0]
            entry.put(self.focused_field, text, len(text))

    # -- Cell editing ------------------------------------------------------

    def insert_char(self, char: str) -> None:
        if not char:
            return
        entry = self._materialize()
        text, cursor = entry.get(self.focused_field)
        entry.put(
            self.focused_field, text[:cursor] + char + text[cursor:], cursor + len(char)
        )

    def delete_char_before_cursor(self) -> None:
        entry = self.selected_entry()
        if entry is None:
            return
        text, cursor = entry.get(self.focused_field)
        if cursor == 0:
            return
        entry.put(self.focused_field, text[: cursor - 1] + text[cursor:], cursor - 1)

    def delete_char_at_cursor(self) -> None:
        entry = self.selected_entry()
        if entry is None:
            return
        text, cursor = entry.get(self.focused_field)
        if cursor >= len(text):
            return
        entry.put(self.focused_field, text[:cursor] + text[cursor + 1 :], cursor)

    # -- Row operations ----------------------------------------------------

    def add_row(self, key: str = "", value: str = "", enabled: bool = True) -> None:
        """Append a row and select it."""
        self.entries.append(KeyValueEntry(key, value, enabled))
        self.selected_index = len(self.entries) - 1
        self.focused_field = KeyValueField.KEY

    def commit_row(self) -> None:
        """Enter: advance to the next row, growing the list at the end.

        On an empty list the placeholder row becomes the first real row.
        """
        if not self.entries:
            self._materialize()
            self.focused_field = KeyValueField.KEY
        elif self.selected_index >= len(self.entries) - 1:
            self.add_row()
        else:
            self.selected_index += 1
            self.focused_field = KeyValueField.KEY

    def toggle_enabled(self) -> None:
        entry = self.selected_entry()
        if entry is not None:
            entry.enabled = not entry.enabled

    def delete_row(self) -> None:
        if not self.entries:
            return
        del self.entries[self.selected_index]
        self._clamp()

    # -- Export ------------------------------------------------------------

    def to_pairs(self) -> list[tuple[str, str]]:
        """Enabled rows with a non-empty key, in order, duplicates kept."""
        return [(e.key, e.value) for e in self.entries if e.enabled and e.key]

    def to_triples(self) -> tuple[tuple[str, str, bool], ...]:
        return tuple((e.key, e.value, e.enabled) for e in self.entries)

    def load_triples(self, triples: Iterable[tuple[str, str, bool]]) -> None:
        self.entries = [KeyValueEntry(k, v, enabled) for k, v, enabled in triples]
        self.selected_index = 0
        self.focused_field = KeyValueField.KEY
