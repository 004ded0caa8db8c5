"""Derive renderer-neutral panels from a Session."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto

from vreq.draft import RequestTab
from vreq.executor import HttpResponse, TransportError
from vreq.highlight import Fragment, Tag, highlight
from vreq.keyvalue import KeyValueField
from vreq.session import InputMode, PanelKind, Session
from vreq.validate import body_status


class PanelStyle(Enum):
    NORMAL = auto()
    FOCUSED = auto()
    ERROR = auto()


@dataclass
class Panel:
    kind: PanelKind
    title: str
    lines: list[list[Fragment]] = field(default_factory=list)
    cursor: tuple[int, int] | None = None  # (row, col) within ``lines``
    style: PanelStyle = PanelStyle.NORMAL
    scroll: int = 0  # first visible line (Response)
    anchor: int = 0  # line kept in view by the renderer


def _plain(text: str, tag: Tag = Tag.DEFAULT) -> list[Fragment]:
    return [Fragment(text, tag)] if text else []


def _style(session: Session, kind: PanelKind) -> PanelStyle:
    if kind is PanelKind.BODY and session.validation_error is not None:
        return PanelStyle.ERROR
    if kind is PanelKind.RESPONSE and isinstance(session.response, TransportError):
        return PanelStyle.ERROR
    if session.focus.kind is kind:
        return PanelStyle.FOCUSED
    return PanelStyle.NORMAL


def _editing(session: Session, kind: PanelKind) -> bool:
    return session.focus.kind is kind and session.mode is InputMode.EDITING


def url_panel(session: Session) -> Panel:
    draft = session.draft
    prefix = f"{draft.method.value:<7} "
    title = "URL"
    if session.history.cursor is not None:
        title += f" (history {session.history.cursor + 1}/{len(session.history)})"
    cursor = None
    if _editing(session, PanelKind.URL):
        cursor = (0, len(prefix) + draft.url_cursor)
    return Panel(
        PanelKind.URL,
        title,
        [[Fragment(prefix, Tag.KEY), *_plain(draft.url)]],
        cursor,
        _style(session, PanelKind.URL),
    )


def details_panel(session: Session) -> Panel:
    active = session.focus.tab or RequestTab.HEADERS
    tabs = " ".join(
        f"[{tab.value}]" if tab is active else f" {tab.value} " for tab in RequestTab
    )
    kv = session.draft.list_for(active)
    lines: list[list[Fragment]] = []
    cursor = None
    for i, entry in enumerate(kv.entries):
        box = "[x] " if entry.enabled else "[ ] "
        key_tag = Tag.KEY if entry.enabled else Tag.DEFAULT
        val_tag = Tag.STRING if entry.enabled else Tag.DEFAULT
        key_cell = f"{entry.key:<20}"
        lines.append(
            [
                Fragment(box, Tag.PUNCTUATION),
                Fragment(key_cell, key_tag),
                Fragment(" : ", Tag.PUNCTUATION),
                *_plain(entry.value, val_tag),
            ]
        )
        if i == kv.selected_index and _editing(session, PanelKind.REQUEST_DETAILS):
            if kv.focused_field is KeyValueField.KEY:
                col = len(box) + entry.key_cursor
            else:
                col = len(box) + max(len(entry.key), 20) + 3 + entry.value_cursor
            cursor = (i, col)
    if not kv.entries:
        lines.append(_plain("(empty - press i to edit, a to add)", Tag.DEFAULT))
        if _editing(session, PanelKind.REQUEST_DETAILS):
            cursor = (0, 0)
    return Panel(
        PanelKind.REQUEST_DETAILS,
        f"Request {tabs}",
        lines,
        cursor,
        _style(session, PanelKind.REQUEST_DETAILS),
        anchor=kv.selected_index,
    )


def body_panel(session: Session) -> Panel:
    buf = session.draft.body
    status = body_status(buf.text(), session.validation_error)
    title = f"Body ({status})" if status else "Body"
    cursor = buf.cursor if _editing(session, PanelKind.BODY) else None
    return Panel(
        PanelKind.BODY,
        title,
        list(highlight(buf.text())),
        cursor,
        _style(session, PanelKind.BODY),
        anchor=buf.cursor_row,
    )


def response_panel(session: Session) -> Panel:
    resp = session.response
    if session.pending_id is not None:
        title, lines = "Response (sending...)", [_plain("Loading...")]
    elif isinstance(resp, TransportError):
        title, lines = "Response (failed)", [_plain(f"Error: {resp.message}")]
    elif isinstance(resp, HttpResponse):
        title = f"Response (Status: {resp.status}, {resp.elapsed * 1000:.0f} ms)"
        lines = list(highlight(resp.body, resp.content_type or "application/json"))
    else:
        title, lines = "Response", [_plain("No response yet...")]
    return Panel(
        PanelKind.RESPONSE,
        title,
        lines,
        None,
        _style(session, PanelKind.RESPONSE),
        scroll=session.response_scroll,
    )


def build_panels(session: Session) -> list[Panel]:
    return [
        url_panel(session),
        details_panel(session),
        body_panel(session),
        response_panel(session),
    ]
