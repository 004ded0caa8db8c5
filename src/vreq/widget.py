"""Modal request composer widget."""

from __future__ import annotations

from dataclasses import dataclass

from rich.text import Text
from textual import events
from textual.message import Message
from textual.widget import Widget

from vreq.draft import OutgoingRequest
from vreq.executor import HttpResponse, TransportError
from vreq.highlight import Fragment, Tag
from vreq.panels import Panel, PanelStyle, build_panels
from vreq.session import FocusController, InputMode, KeyResult, PanelKind, Session


class ComposerView(Widget, can_focus=True):
    """Four stacked panels (URL, request details, body, response).

    Supported keys:
      NORMAL:  Tab/S-Tab panel  i/Enter edit  ^S send  ^X cancel  q quit
               URL: Up/Down history  Left/Right method
               Request: Left/Right tab  Up/Down row  Space toggle  a add  d delete
               Body: = format     Response: Up/Down PgUp/PgDn Home/End scroll
      EDITING: typing / Backspace / Delete / arrows / Home / End / Escape
               Request: Tab field  Enter next row  ^D delete  ^T toggle
               Body: Enter / Tab / Shift+arrows select / ^A select all
    """

    DEFAULT_CSS = """
    ComposerView {
        height: 1fr;
        background: $surface;
        padding: 0 1;
    }
    """

    # -- Messages ----------------------------------------------------------

    @dataclass
    class SendRequested(Message):
        request_id: int
        request: OutgoingRequest

    @dataclass
    class CancelRequested(Message):
        pass

    @dataclass
    class Quit(Message):
        pass

    # -- Init --------------------------------------------------------------

    def __init__(
        self,
        session: Session | None = None,
        *,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        super().__init__(name=name, id=id, classes=classes)
        self.session: Session = session or Session()
        self.controller: FocusController = FocusController(self.session)
        self._scroll_top: dict[PanelKind, int] = {kind: 0 for kind in PanelKind}

    # -- Public API --------------------------------------------------------

    def deliver(self, request_id: int, outcome: HttpResponse | TransportError) -> bool:
        """Hand the executor's result back; stale results are ignored."""
        accepted = self.session.complete(request_id, outcome)
        if accepted:
            self.refresh()
        return accepted

    # =====================================================================
    # Rendering
    # =====================================================================

    _TAG_STYLE = {
        Tag.KEY: "cyan",
        Tag.STRING: "green",
        Tag.NUMBER: "yellow",
        Tag.LITERAL: "magenta",
        Tag.PUNCTUATION: "bold white",
        Tag.DEFAULT: "white",
    }
    _TITLE_STYLE = {
        PanelStyle.NORMAL: "dim",
        PanelStyle.FOCUSED: "bold yellow",
        PanelStyle.ERROR: "bold red",
    }
    _MODE_STYLE = {
        InputMode.NORMAL: "bold white on dark_green",
        InputMode.EDITING: "bold white on dark_blue",
    }

    def _heights(self, height: int) -> dict[PanelKind, int]:
        """Content rows per panel; 4 title bars and the status bar are fixed."""
        avail = max(3, height - 6)
        details = max(1, avail // 4)
        body = max(1, avail * 3 // 8)
        return {
            PanelKind.URL: 1,
            PanelKind.REQUEST_DETAILS: details,
            PanelKind.BODY: body,
            PanelKind.RESPONSE: max(1, avail - details - body),
        }

    def _first_visible(self, panel: Panel, rows: int) -> int:
        if panel.kind is PanelKind.RESPONSE:
            return panel.scroll
        top = self._scroll_top[panel.kind]
        if panel.anchor < top:
            top = panel.anchor
        elif panel.anchor >= top + rows:
            top = panel.anchor - rows + 1
        top = max(0, min(top, max(0, len(panel.lines) - 1)))
        self._scroll_top[panel.kind] = top
        return top

    def _render_title(self, result: Text, panel: Panel, width: int) -> None:
        focused = self.session.focus.kind is panel.kind
        marker = "> " if focused else "  "
        label = f"{marker}{panel.title} "
        style = self._TITLE_STYLE[panel.style]
        if focused and panel.style is PanelStyle.ERROR:
            style = "bold white on dark_red"
        result.append(label[:width], style=style)
        if width > len(label):
            result.append("─" * (width - len(label)), style=style)
        result.append("\n")

    def _render_line(
        self, fragments: list[Fragment], width: int, cursor_col: int | None
    ) -> Text:
        line = Text()
        for frag in fragments:
            line.append(frag.text, style=self._TAG_STYLE[frag.tag])
        if cursor_col is not None:
            if cursor_col < len(line):
                line.stylize("reverse", cursor_col, cursor_col + 1)
            else:
                line.append(" ", style="reverse")
            # keep the cursor on screen for long lines
            offset = max(0, cursor_col - width + 2)
            if offset:
                line = line.divide([offset])[-1]
        line.truncate(width)
        return line

    def render(self) -> Text:
        width = self.content_region.width
        height = self.content_region.height
        if height < 10 or width < 20:
            return Text("(too small)")

        heights = self._heights(height)
        result = Text()
        for panel in build_panels(self.session):
            rows = heights[panel.kind]
            self._render_title(result, panel, width)
            first = self._first_visible(panel, rows)
            for offset in range(rows):
                idx = first + offset
                if idx < len(panel.lines):
                    cursor_col = None
                    if panel.cursor is not None and panel.cursor[0] == idx:
                        cursor_col = panel.cursor[1]
                    result.append_text(
                        self._render_line(panel.lines[idx], width, cursor_col)
                    )
                elif panel.kind is PanelKind.BODY and idx > 0:
                    result.append("~", style="dim blue")
                result.append("\n")

        # status bar
        mode = self.session.mode
        mode_label = f" {mode.name} "
        result.append(mode_label, style=self._MODE_STYLE[mode])
        if mode is InputMode.NORMAL:
            hint = " Tab panel  i edit  ^S send  q quit "
        else:
            hint = " Esc done "
        status_msg = self.session.status_msg
        spacer_len = max(0, width - len(mode_label) - len(status_msg) - len(hint) - 2)
        result.append(f"  {status_msg}")
        if spacer_len:
            result.append(" " * spacer_len)
        result.append(hint, style="dim")
        return result

    # =====================================================================
    # Key handling
    # =====================================================================

    def on_key(self, event: events.Key) -> None:
        event.prevent_default()
        event.stop()

        result = self.controller.handle_key(event)
        if result is KeyResult.SEND:
            started = self.session.begin_send()
            if started is not None:
                self.post_message(self.SendRequested(*started))
        elif result is KeyResult.CANCEL:
            if self.session.cancel():
                self.post_message(self.CancelRequested())
        elif result is KeyResult.QUIT:
            self.post_message(self.Quit())

        self.refresh()
