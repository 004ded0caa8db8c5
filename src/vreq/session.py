"""Editing session state and the (panel, mode) key dispatcher."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto
from typing import Protocol

from vreq.buffer import Direction
from vreq.draft import OutgoingRequest, RequestDraft, RequestTab
from vreq.executor import HttpResponse, TransportError
from vreq.history import HistoryLog
from vreq.keyvalue import KeyValueList
from vreq.validate import ValidationError, format_json, validate_json

log = logging.getLogger(__name__)

PAGE_SIZE = 10


class PanelKind(Enum):
    URL = auto()
    REQUEST_DETAILS = auto()
    BODY = auto()
    RESPONSE = auto()


_PANEL_ORDER = (
    PanelKind.URL,
    PanelKind.REQUEST_DETAILS,
    PanelKind.BODY,
    PanelKind.RESPONSE,
)
_EDITABLE = frozenset({PanelKind.URL, PanelKind.REQUEST_DETAILS, PanelKind.BODY})


@dataclass(frozen=True)
class FocusedPanel:
    kind: PanelKind
    tab: RequestTab | None = None

    def __post_init__(self) -> None:
        if (self.kind is PanelKind.REQUEST_DETAILS) != (self.tab is not None):
            raise ValueError("tab is required for, and only for, REQUEST_DETAILS")

    @classmethod
    def url(cls) -> FocusedPanel:
        return cls(PanelKind.URL)

    @classmethod
    def details(cls, tab: RequestTab = RequestTab.HEADERS) -> FocusedPanel:
        return cls(PanelKind.REQUEST_DETAILS, tab)

    @classmethod
    def body(cls) -> FocusedPanel:
        return cls(PanelKind.BODY)

    @classmethod
    def response(cls) -> FocusedPanel:
        return cls(PanelKind.RESPONSE)

    def cycle(self, step: int) -> FocusedPanel:
        """Next panel in Url -> RequestDetails(Headers) -> Body -> Response."""
        i = _PANEL_ORDER.index(self.kind)
        kind = _PANEL_ORDER[(i + step) % len(_PANEL_ORDER)]
        if kind is PanelKind.REQUEST_DETAILS:
            return FocusedPanel.details()
        return FocusedPanel(kind)

    @property
    def editable(self) -> bool:
        return self.kind in _EDITABLE


class InputMode(Enum):
    NORMAL = auto()
    EDITING = auto()


class KeyResult(Enum):
    IGNORED = auto()
    HANDLED = auto()
    SEND = auto()
    CANCEL = auto()
    QUIT = auto()


class KeyEvent(Protocol):
    key: str
    character: str | None


class Session:
    """All mutable editor state, owned by a single front end."""

    def __init__(
        self,
        draft: RequestDraft | None = None,
        history: HistoryLog | None = None,
    ) -> None:
        self.draft: RequestDraft = draft or RequestDraft()
        self.history: HistoryLog = history if history is not None else HistoryLog()
        self.focus: FocusedPanel = FocusedPanel.url()
        self.mode: InputMode = InputMode.NORMAL
        self.validation_error: ValidationError | None = None
        self.response: HttpResponse | TransportError | None = None
        self.response_scroll: int = 0
        self.pending_id: int | None = None
        self.status_msg: str = ""
        self._request_seq: int = 0
        self.revalidate()

    @property
    def active_list(self) -> KeyValueList:
        tab = self.focus.tab or RequestTab.HEADERS
        return self.draft.list_for(tab)

    def revalidate(self) -> None:
        self.validation_error = validate_json(self.draft.body.text())

    # -- Request lifecycle -------------------------------------------------

    def begin_send(self) -> tuple[int, OutgoingRequest] | None:
        """Snapshot the draft into history and mark a request as pending.

        Returns None without touching history when the URL is blank.
        """
        request = self.draft.to_request()
        if not request.url:
            self.status_msg = "no URL given"
            return None
        self.history.push(self.draft.snapshot())
        self._request_seq += 1
        self.pending_id = self._request_seq
        self.response_scroll = 0
        self.status_msg = f"{request.method} {request.url}"
        log.debug("request #%d: %s %s", self.pending_id, request.method, request.url)
        return self.pending_id, request

    def complete(self, request_id: int, outcome: HttpResponse | TransportError) -> bool:
        """Accept the outcome of the pending request; stale ids are dropped."""
        if request_id != self.pending_id:
            log.debug("dropping stale result for request #%d", request_id)
            return False
        self.pending_id = None
        self.response = outcome
        self.response_scroll = 0
        if isinstance(outcome, TransportError):
            self.status_msg = f"request failed: {outcome.message}"
        else:
            self.status_msg = f"{outcome.status} {outcome.reason}".strip()
        return True

    def cancel(self) -> bool:
        if self.pending_id is None:
            return False
        log.debug("request #%d cancelled", self.pending_id)
        self.pending_id = None
        self.status_msg = "request cancelled"
        return True

    def response_line_count(self) -> int:
        if isinstance(self.response, HttpResponse):
            return len(self.response.body.split("\n"))
        return 1

    def scroll_response(self, delta: int) -> None:
        last = max(0, self.response_line_count() - 1)
        self.response_scroll = max(0, min(self.response_scroll + delta, last))


class FocusController:
    """Routes one key event to the component owning (panel, mode)."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self._handlers: dict[
            tuple[PanelKind, InputMode], Callable[[str, str], KeyResult]
        ] = {
            (PanelKind.URL, InputMode.NORMAL): self._url_normal,
            (PanelKind.URL, InputMode.EDITING): self._url_editing,
            (PanelKind.REQUEST_DETAILS, InputMode.NORMAL): self._details_normal,
            (PanelKind.REQUEST_DETAILS, InputMode.EDITING): self._details_editing,
            (PanelKind.BODY, InputMode.NORMAL): self._body_normal,
            (PanelKind.BODY, InputMode.EDITING): self._body_editing,
            (PanelKind.RESPONSE, InputMode.NORMAL): self._response_normal,
            (PanelKind.RESPONSE, InputMode.EDITING): self._ignore,
        }

    def handle_key(self, event: KeyEvent) -> KeyResult:
        key = event.key
        char = event.character or ""
        s = self.session

        if s.mode is InputMode.NORMAL:
            result = self._common_normal(key)
            if result is not None:
                return result
        elif key == "escape":
            s.mode = InputMode.NORMAL
            s.status_msg = ""
            return KeyResult.HANDLED

        return self._handlers[(s.focus.kind, s.mode)](key, char)

    # -- NORMAL, any panel -------------------------------------------------

    def _common_normal(self, key: str) -> KeyResult | None:
        s = self.session
        if key == "tab":
            s.focus = s.focus.cycle(1)
            return KeyResult.HANDLED
        if key == "shift+tab":
            s.focus = s.focus.cycle(-1)
            return KeyResult.HANDLED
        if key in ("i", "enter"):
            if not s.focus.editable:
                return KeyResult.IGNORED
            s.mode = InputMode.EDITING
            s.status_msg = "-- EDITING --"
            return KeyResult.HANDLED
        if key == "ctrl+s":
            return KeyResult.SEND
        if key == "ctrl+x":
            return KeyResult.CANCEL if s.pending_id is not None else KeyResult.IGNORED
        if key == "q":
            return KeyResult.QUIT
        return None

    @staticmethod
    def _ignore(key: str, char: str) -> KeyResult:
        return KeyResult.IGNORED

    # -- URL ---------------------------------------------------------------

    def _url_normal(self, key: str, char: str) -> KeyResult:
        s = self.session
        if key in ("up", "ctrl+p"):
            moved = s.history.prev(s.draft)
        elif key in ("down", "ctrl+n"):
            moved = s.history.next(s.draft)
        elif key == "left":
            s.draft.cycle_method(-1)
            return KeyResult.HANDLED
        elif key == "right":
            s.draft.cycle_method(1)
            return KeyResult.HANDLED
        else:
            return KeyResult.IGNORED
        if not moved:
            s.status_msg = "no history" if not s.history.entries else ""
            return KeyResult.IGNORED
        s.revalidate()
        if s.history.cursor is None:
            s.status_msg = "draft restored"
        else:
            s.status_msg = f"history {s.history.cursor + 1}/{len(s.history)}"
        return KeyResult.HANDLED

    def _url_editing(self, key: str, char: str) -> KeyResult:
        draft = self.session.draft
        if key == "enter":
            self.session.mode = InputMode.NORMAL
            self.session.status_msg = ""
        elif key == "backspace":
            draft.delete_url_backward()
        elif key == "delete":
            draft.delete_url_forward()
        elif key == "left":
            draft.move_url_cursor(-1)
        elif key == "right":
            draft.move_url_cursor(1)
        elif key == "home":
            draft.url_cursor_home()
        elif key == "end":
            draft.url_cursor_end()
        elif char and char.isprintable():
            draft.insert_url_char(char)
        else:
            return KeyResult.IGNORED
        return KeyResult.HANDLED

    # -- Request details ---------------------------------------------------

    def _details_normal(self, key: str, char: str) -> KeyResult:
        s = self.session
        kv = s.active_list
        if key in ("left", "right"):
            s.focus = FocusedPanel.details(s.focus.tab.cycle(1 if key == "right" else -1))
        elif key in ("up", "k"):
            kv.move_selection(-1)
        elif key in ("down", "j"):
            kv.move_selection(1)
        elif key == "space":
            kv.toggle_enabled()
        elif key == "a":
            kv.add_row()
            s.mode = InputMode.EDITING
            s.status_msg = "-- EDITING --"
        elif key in ("d", "delete"):
            kv.delete_row()
        else:
            return KeyResult.IGNORED
        return KeyResult.HANDLED

    def _details_editing(self, key: str, char: str) -> KeyResult:
        kv = self.session.active_list
        if key in ("tab", "shift+tab"):
            kv.switch_field()
        elif key == "enter":
            kv.commit_row()
        elif key == "up":
            kv.move_selection(-1)
        elif key == "down":
            kv.move_selection(1)
        elif key == "left":
            kv.move_cell_cursor(-1)
        elif key == "right":
            kv.move_cell_cursor(1)
        elif key == "home":
            kv.cell_cursor_to_start()
        elif key == "end":
            kv.cell_cursor_to_end()
        elif key == "backspace":
            kv.delete_char_before_cursor()
        elif key == "delete":
            kv.delete_char_at_cursor()
        elif key == "ctrl+d":
            kv.delete_row()
        elif key == "ctrl+t":
            kv.toggle_enabled()
        elif char and char.isprintable():
            kv.insert_char(char)
        else:
            return KeyResult.IGNORED
        return KeyResult.HANDLED

    # -- Body --------------------------------------------------------------

    _ARROWS = {
        "up": Direction.UP,
        "down": Direction.DOWN,
        "left": Direction.LEFT,
        "right": Direction.RIGHT,
    }

    def _body_normal(self, key: str, char: str) -> KeyResult:
        s = self.session
        buf = s.draft.body
        if key in self._ARROWS:
            buf.move_cursor(self._ARROWS[key])
            return KeyResult.HANDLED
        if key == "equals_sign" or char == "=":
            formatted = format_json(buf.text())
            if formatted is None:
                s.status_msg = "cannot format: body is not valid JSON"
                return KeyResult.IGNORED
            buf.set_text(formatted)
            s.revalidate()
            s.status_msg = "formatted"
            return KeyResult.HANDLED
        return KeyResult.IGNORED

    def _body_editing(self, key: str, char: str) -> KeyResult:
        s = self.session
        buf = s.draft.body
        select = key.startswith("shift+")
        base = key[len("shift+") :] if select else key
        if base in self._ARROWS:
            buf.move_cursor(self._ARROWS[base], select=select)
        elif base == "home":
            buf.move_to_line_start(select=select)
        elif base == "end":
            buf.move_to_line_end(select=select)
        elif key == "ctrl+a":
            buf.select_all()
        elif key == "enter":
            buf.insert_newline()
        elif key == "tab":
            buf.insert("\t")
        elif key == "backspace":
            buf.delete_backward()
        elif key == "delete":
            buf.delete_forward()
        elif char and char.isprintable():
            buf.insert(char)
        else:
            return KeyResult.IGNORED
        s.revalidate()
        return KeyResult.HANDLED

    # -- Response ----------------------------------------------------------

    def _response_normal(self, key: str, char: str) -> KeyResult:
        s = self.session
        if key in ("up", "k"):
            s.scroll_response(-1)
        elif key in ("down", "j"):
            s.scroll_response(1)
        elif key == "pageup":
            s.scroll_response(-PAGE_SIZE)
        elif key == "pagedown":
            s.scroll_response(PAGE_SIZE)
        elif key == "home":
            s.response_scroll = 0
        elif key == "end":
            s.scroll_response(s.response_line_count())
        else:
            return KeyResult.IGNORED
        return KeyResult.HANDLED
