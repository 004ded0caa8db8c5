"""Log of dispatched requests with non-destructive browsing."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vreq.draft import RequestDraft

log = logging.getLogger(__name__)

HISTORY_MAX_ENTRIES = 500

Rows = tuple[tuple[str, str, bool], ...]


@dataclass(frozen=True)
class RequestHistoryEntry:
    method: str
    url: str
    headers: Rows = ()
    params: Rows = ()
    auth: Rows = ()
    body: str = ""
    timestamp: float = 0.0


class HistoryFileError(Exception):
    """History file could not be read or written."""


class HistoryLog:
    """Append-only request history with a browse cursor.

    ``cursor`` is None while the user edits a fresh draft.  The first
    ``prev()`` stashes that draft so that stepping past the newest entry
    with ``next()`` brings it back unchanged.
    """

    def __init__(
        self,
        entries: list[RequestHistoryEntry] | None = None,
        *,
        max_entries: int = HISTORY_MAX_ENTRIES,
    ) -> None:
        self.max_entries: int = max_entries
        kept = list(entries or [])
        self.entries: list[RequestHistoryEntry] = kept[max(0, len(kept) - max_entries) :]
        self.cursor: int | None = None
        self._stash: RequestHistoryEntry | None = None

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[RequestHistoryEntry]:
        return iter(self.entries)

    @property
    def is_browsing(self) -> bool:
        return self.cursor is not None

    def current(self) -> RequestHistoryEntry | None:
        if self.cursor is None:
            return None
        return self.entries[self.cursor]

    def push(self, entry: RequestHistoryEntry) -> None:
        self.entries.append(entry)
        if len(self.entries) > self.max_entries:
            del self.entries[: len(self.entries) - self.max_entries]
        self.cursor = None
        self._stash = None

    def prev(self, draft: RequestDraft) -> bool:
        """Step to an older entry and load it into *draft*."""
        if not self.entries:
            return False
        if self.cursor is None:
            self._stash = draft.snapshot()
            self.cursor = len(self.entries) - 1
        else:
            self.cursor = max(0, self.cursor - 1)
        log.debug("history prev -> %d/%d", self.cursor + 1, len(self.entries))
        draft.load(self.entries[self.cursor])
        return True

    def next(self, draft: RequestDraft) -> bool:
        """Step to a newer entry, or back to the stashed draft past the end."""
        if self.cursor is None:
            return False
        if self.cursor + 1 < len(self.entries):
            self.cursor += 1
            log.debug("history next -> %d/%d", self.cursor + 1, len(self.entries))
            draft.load(self.entries[self.cursor])
            return True
        self.cursor = None
        stash, self._stash = self._stash, None
        if stash is not None:
            draft.load(stash)
        log.debug("history next -> draft restored")
        return True


# -- Persistence -------------------------------------------------------------


def entry_to_dict(entry: RequestHistoryEntry) -> dict:
    return {
        "method": entry.method,
        "url": entry.url,
        "headers": [list(row) for row in entry.headers],
        "params": [list(row) for row in entry.params],
        "auth": [list(row) for row in entry.auth],
        "body": entry.body,
        "timestamp": entry.timestamp,
    }


def _rows(raw) -> Rows:
    return tuple((str(k), str(v), bool(enabled)) for k, v, enabled in raw or [])


def entry_from_dict(data: dict) -> RequestHistoryEntry:
    return RequestHistoryEntry(
        method=str(data.get("method", "GET")),
        url=str(data.get("url", "")),
        headers=_rows(data.get("headers")),
        params=_rows(data.get("params")),
        auth=_rows(data.get("auth")),
        body=str(data.get("body", "")),
        timestamp=float(data.get("timestamp", 0.0)),
    )


def save_history(path: str | Path, history: HistoryLog) -> None:
    path = Path(path)
    payload = [entry_to_dict(e) for e in history]
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(payload, indent=4, ensure_ascii=False), encoding="utf-8"
        )
    except OSError as exc:
        raise HistoryFileError(f"cannot write {path}: {exc}") from exc


def load_history(
    path: str | Path, max_entries: int = HISTORY_MAX_ENTRIES
) -> HistoryLog:
    """Read a history file; a missing file yields an empty log."""
    path = Path(path)
    if not path.exists():
        return HistoryLog(max_entries=max_entries)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise HistoryFileError(f"cannot read {path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise HistoryFileError(f"{path}: not valid UTF-8: {exc.reason}") from exc
    except json.JSONDecodeError as exc:
        raise HistoryFileError(f"{path}: {exc.msg} (line {exc.lineno})") from exc
    except (ValueError, RecursionError) as exc:
        raise HistoryFileError(f"{path}: cannot decode: {exc}") from exc
    if not isinstance(raw, list):
        raise HistoryFileError(f"{path}: expected a JSON array")
    try:
        entries = [entry_from_dict(item) for item in raw]
    except (TypeError, ValueError, AttributeError, OverflowError) as exc:
        raise HistoryFileError(f"{path}: malformed entry: {exc}") from exc
    log.debug("loaded %d history entries from %s", len(entries), path)
    return HistoryLog(entries, max_entries=max_entries)
