"""Tests for the focus/mode state machine."""

import random
from types import SimpleNamespace

import pytest

from vreq.draft import RequestDraft, RequestTab
from vreq.executor import HttpResponse, TransportError
from vreq.history import HistoryLog
from vreq.session import (
    FocusController,
    FocusedPanel,
    InputMode,
    KeyResult,
    PanelKind,
    Session,
)

# Textual key names for characters used in the tests
_KEY_NAMES = {
    " ": "space",
    "{": "left_curly_bracket",
    "}": "right_curly_bracket",
    '"': "quotation_mark",
    ":": "colon",
    "-": "minus",
    "=": "equals_sign",
}


def key(name, char=None):
    return SimpleNamespace(key=name, character=char)


def press(ctl, *names):
    return [ctl.handle_key(key(name)) for name in names]


def type_text(ctl, text):
    for ch in text:
        ctl.handle_key(key(_KEY_NAMES.get(ch, ch), ch))


def make_controller(**kwargs):
    session = Session(**kwargs)
    return session, FocusController(session)


class TestInitialState:
    def test_starts_on_url_in_normal_mode(self):
        session, _ = make_controller()
        assert session.focus == FocusedPanel.url()
        assert session.mode is InputMode.NORMAL
        assert session.validation_error is None

    def test_details_requires_tab(self):
        with pytest.raises(ValueError):
            FocusedPanel(PanelKind.REQUEST_DETAILS)
        with pytest.raises(ValueError):
            FocusedPanel(PanelKind.BODY, RequestTab.PARAMS)


class TestPanelCycle:
    def test_cycle_order(self):
        session, ctl = make_controller()
        seen = []
        for _ in range(4):
            press(ctl, "tab")
            seen.append(session.focus)
        assert seen == [
            FocusedPanel.details(RequestTab.HEADERS),
            FocusedPanel.body(),
            FocusedPanel.response(),
            FocusedPanel.url(),
        ]

    def test_shift_tab_goes_backwards(self):
        session, ctl = make_controller()
        press(ctl, "shift+tab")
        assert session.focus == FocusedPanel.response()

    def test_tab_cycle_within_details(self):
        session, ctl = make_controller()
        press(ctl, "tab", "right")
        assert session.focus == FocusedPanel.details(RequestTab.PARAMS)
        press(ctl, "right", "right")
        assert session.focus == FocusedPanel.details(RequestTab.HEADERS)
        press(ctl, "left")
        assert session.focus == FocusedPanel.details(RequestTab.AUTHORIZATION)

    def test_panel_switch_disabled_while_editing(self):
        session, ctl = make_controller()
        press(ctl, "tab", "tab", "i")
        assert press(ctl, "shift+tab") == [KeyResult.IGNORED]
        assert session.focus == FocusedPanel.body()
        assert session.mode is InputMode.EDITING


class TestModes:
    def test_confirm_and_cancel(self):
        session, ctl = make_controller()
        press(ctl, "enter")
        assert session.mode is InputMode.EDITING
        press(ctl, "escape")
        assert session.mode is InputMode.NORMAL

    def test_response_is_not_editable(self):
        session, ctl = make_controller()
        press(ctl, "shift+tab")
        assert press(ctl, "i") == [KeyResult.IGNORED]
        assert session.mode is InputMode.NORMAL

    def test_unknown_key_is_noop(self):
        session, ctl = make_controller()
        assert press(ctl, "f12") == [KeyResult.IGNORED]
        assert session.focus == FocusedPanel.url()

    def test_send_quit_results(self):
        _, ctl = make_controller()
        assert press(ctl, "ctrl+s") == [KeyResult.SEND]
        assert press(ctl, "q") == [KeyResult.QUIT]

    def test_q_is_text_while_editing(self):
        session, ctl = make_controller()
        press(ctl, "i")
        type_text(ctl, "q")
        assert session.draft.url == "q"


class TestUrlPanel:
    def test_typing_url(self):
        session, ctl = make_controller()
        press(ctl, "i")
        type_text(ctl, "http://x")
        press(ctl, "left", "backspace")
        assert session.draft.url == "http:/x"
        press(ctl, "home", "delete")
        assert session.draft.url == "ttp:/x"
        press(ctl, "enter")
        assert session.mode is InputMode.NORMAL

    def test_method_cycle(self):
        session, ctl = make_controller()
        press(ctl, "right")
        assert session.draft.method.value == "POST"
        press(ctl, "left", "left")
        assert session.draft.method.value == "PATCH"

    def test_history_keys(self):
        session, ctl = make_controller()
        session.draft.url = "http://sent"
        session.draft.body.set_text("{")
        session.begin_send()
        session.draft.url = "http://unsent"
        session.draft.body.set_text("{}")

        press(ctl, "up")
        assert session.draft.url == "http://sent"
        assert session.validation_error is not None
        assert session.focus == FocusedPanel.url()
        assert session.mode is InputMode.NORMAL

        press(ctl, "down")
        assert session.draft.url == "http://unsent"
        assert session.validation_error is None
        assert session.history.cursor is None

    def test_history_prev_on_empty_log(self):
        session, ctl = make_controller()
        assert press(ctl, "ctrl+p") == [KeyResult.IGNORED]
        assert session.status_msg == "no history"


class TestDetailsPanel:
    def test_disabled_duplicate_header_via_keys(self):
        session, ctl = make_controller()
        press(ctl, "tab", "i")
        type_text(ctl, "X-Test")
        press(ctl, "tab")
        type_text(ctl, "1")
        press(ctl, "enter")
        type_text(ctl, "X-Test")
        press(ctl, "tab")
        type_text(ctl, "2")
        press(ctl, "escape", "up", "space")
        assert session.draft.headers.to_pairs() == [("X-Test", "2")]
        assert session.draft.to_request().headers == (("X-Test", "2"),)

    def test_rows_go_to_active_tab(self):
        session, ctl = make_controller()
        press(ctl, "tab", "right", "a")
        assert session.mode is InputMode.EDITING
        type_text(ctl, "page")
        assert session.draft.params.entries[0].key == "page"
        assert len(session.draft.headers) == 0

    def test_delete_row_keys(self):
        session, ctl = make_controller()
        session.draft.headers.add_row("a", "1")
        session.draft.headers.add_row("b", "2")
        press(ctl, "tab", "d")
        assert [e.key for e in session.draft.headers.entries] == ["a"]
        press(ctl, "i", "ctrl+d")
        assert len(session.draft.headers) == 0


class TestBodyPanel:
    def test_live_validation_scenario(self):
        session, ctl = make_controller()
        press(ctl, "tab", "tab", "i")
        type_text(ctl, '{"a":1')
        err = session.validation_error
        assert err is not None
        assert err.line == 1
        assert err.column == 6
        assert "unterminated object" in err.message
        type_text(ctl, "}")
        assert session.validation_error is None
        assert session.draft.body.text() == '{"a":1}'

    def test_long_number_keystroke_keeps_session_alive(self):
        session, ctl = make_controller()
        session.draft.body.set_text("1" * 4400)
        session.draft.body.move_to_line_end()
        press(ctl, "tab", "tab", "i")
        type_text(ctl, "1")
        assert session.validation_error is None
        type_text(ctl, "NaN")
        assert session.validation_error is not None

    def test_enter_and_backspace(self):
        session, ctl = make_controller()
        press(ctl, "tab", "tab", "i")
        type_text(ctl, "{")
        press(ctl, "enter")
        assert session.draft.body.lines == ["{", "    "]
        press(ctl, "backspace", "backspace", "backspace", "backspace", "backspace")
        assert session.draft.body.lines == ["{"]

    def test_shift_selection_and_select_all(self):
        session, ctl = make_controller()
        press(ctl, "tab", "tab", "i")
        type_text(ctl, "[1]")
        press(ctl, "ctrl+a", "delete")
        assert session.draft.body.text() == ""
        type_text(ctl, "ab")
        press(ctl, "shift+left")
        assert session.draft.body.selected_text() == "b"

    def test_format_in_normal_mode(self):
        session, ctl = make_controller()
        session.draft.body.set_text('{"a":1}')
        press(ctl, "tab", "tab")
        type_text(ctl, "=")
        assert session.draft.body.text() == '{\n    "a": 1\n}'
        assert session.status_msg == "formatted"

    def test_format_invalid_body(self):
        session, ctl = make_controller()
        session.draft.body.set_text("{")
        press(ctl, "tab", "tab")
        type_text(ctl, "=")
        assert session.draft.body.text() == "{"


class TestRequestLifecycle:
    def test_begin_send_pushes_history(self):
        session, _ = make_controller(draft=RequestDraft("http://a"))
        request_id, request = session.begin_send()
        assert request.url == "http://a"
        assert session.pending_id == request_id
        assert len(session.history) == 1

    def test_blank_url_is_not_sent(self):
        session, ctl = make_controller()
        session.draft.url = "   "
        assert press(ctl, "ctrl+s") == [KeyResult.SEND]
        assert session.begin_send() is None
        assert len(session.history) == 0
        assert session.pending_id is None
        assert session.status_msg == "no URL given"

    def test_stale_results_are_dropped(self):
        session, _ = make_controller(draft=RequestDraft("http://a"))
        first, _ = session.begin_send()
        second, _ = session.begin_send()
        assert session.complete(first, TransportError("late")) is False
        assert session.response is None
        assert session.complete(second, TransportError("boom")) is True
        assert session.response == TransportError("boom")
        assert session.pending_id is None

    def test_cancel(self):
        session, ctl = make_controller(draft=RequestDraft("http://a"))
        assert press(ctl, "ctrl+x") == [KeyResult.IGNORED]
        request_id, _ = session.begin_send()
        assert press(ctl, "ctrl+x") == [KeyResult.CANCEL]
        assert session.cancel() is True
        assert session.complete(request_id, TransportError("x")) is False

    def test_response_scroll_clamps(self):
        session, ctl = make_controller(draft=RequestDraft("http://a"))
        request_id, _ = session.begin_send()
        body = "\n".join(str(i) for i in range(5))
        session.complete(request_id, HttpResponse(200, "OK", (), body, 0.01))
        press(ctl, "shift+tab")
        press(ctl, *["down"] * 10)
        assert session.response_scroll == 4
        press(ctl, "up")
        assert session.response_scroll == 3
        press(ctl, "home")
        assert session.response_scroll == 0
        press(ctl, "end")
        assert session.response_scroll == 4
        press(ctl, "pageup")
        assert session.response_scroll == 0


class TestTransitionClosure:
    """No key sequence reaches an inconsistent state."""

    KEYS = [
        "tab", "shift+tab", "i", "enter", "escape", "up", "down", "left",
        "right", "home", "end", "space", "a", "d", "backspace", "delete",
        "ctrl+a", "ctrl+d", "ctrl+t", "shift+right", "pagedown", "x", "{", "}",
    ]

    def test_random_key_sequences(self):
        rng = random.Random(7)
        session, ctl = make_controller(history=HistoryLog())
        for _ in range(2000):
            name = rng.choice(self.KEYS)
            char = name if len(name) == 1 else None
            ctl.handle_key(key(name, char))
            if rng.random() < 0.02:
                session.begin_send()
            assert session.mode in (InputMode.NORMAL, InputMode.EDITING)
            focus = session.focus
            assert (focus.kind is PanelKind.REQUEST_DETAILS) == (focus.tab is not None)
            buf = session.draft.body
            assert 0 <= buf.cursor_row < len(buf.lines)
            assert 0 <= buf.cursor_col <= len(buf.lines[buf.cursor_row])
            for tab in RequestTab:
                kv = session.draft.list_for(tab)
                assert 0 <= kv.selected_index < max(1, len(kv))
            assert 0 <= session.draft.url_cursor <= len(session.draft.url)
