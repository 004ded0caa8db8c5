"""Terminal HTTP request composer application."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from textual.app import App, ComposeResult
from textual.logging import TextualHandler
from textual.widgets import Header
from textual.worker import Worker, get_current_worker

from vreq.draft import HttpMethod, OutgoingRequest, RequestDraft
from vreq.executor import DEFAULT_TIMEOUT, TransportError, execute
from vreq.history import (
    HISTORY_MAX_ENTRIES,
    HistoryFileError,
    HistoryLog,
    load_history,
    save_history,
)
from vreq.session import Session
from vreq.widget import ComposerView

log = logging.getLogger(__name__)


class RequestComposerApp(App):
    """TUI app that wraps the ComposerView widget."""

    CSS = """
    Screen {
        layout: vertical;
    }
    #composer {
        height: 1fr;
    }
    """

    TITLE = "vreq"
    BINDINGS = []
    ENABLE_COMMAND_PALETTE = False

    def __init__(
        self,
        url: str = "",
        method: HttpMethod = HttpMethod.GET,
        timeout: float = DEFAULT_TIMEOUT,
        history_path: str = "",
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.timeout = timeout
        self.history_path = history_path
        self._startup_error: str = ""
        history = HistoryLog()
        if history_path:
            try:
                history = load_history(history_path, HISTORY_MAX_ENTRIES)
            except HistoryFileError as exc:
                log.warning("history not loaded: %s", exc)
                self._startup_error = str(exc)
        self.session = Session(RequestDraft(url, method), history)
        self._worker: Worker | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield ComposerView(self.session, id="composer")

    def on_mount(self) -> None:
        self._update_title()
        self.query_one("#composer").focus()
        if self._startup_error:
            self.notify(self._startup_error, severity="error", timeout=6)

    def _update_title(self) -> None:
        count = len(self.session.history)
        self.sub_title = f"{count} in history" if count else "[new]"

    # -- Event handlers ----------------------------------------------------

    def on_composer_view_quit(self, event: ComposerView.Quit) -> None:
        self.exit()

    def on_composer_view_send_requested(
        self, event: ComposerView.SendRequested
    ) -> None:
        self._update_title()
        if self.history_path:
            try:
                save_history(self.history_path, self.session.history)
            except HistoryFileError as exc:
                log.warning("history not saved: %s", exc)
                self.notify(f"History save failed: {exc}", severity="error", timeout=6)
        self._worker = self.run_worker(
            lambda: self._perform(event.request_id, event.request),
            name=f"request-{event.request_id}",
            group="request",
            exclusive=True,
            thread=True,
        )

    def on_composer_view_cancel_requested(
        self, event: ComposerView.CancelRequested
    ) -> None:
        if self._worker is not None:
            self._worker.cancel()
            self._worker = None
        self.notify("Request cancelled", severity="warning")

    # -- Request worker ----------------------------------------------------

    def _perform(self, request_id: int, request: OutgoingRequest) -> None:
        """Runs in a worker thread; never touches the session directly."""
        outcome = execute(request, timeout=self.timeout)
        if not get_current_worker().is_cancelled:
            self.call_from_thread(self._deliver, request_id, outcome)

    def _deliver(self, request_id: int, outcome) -> None:
        composer = self.query_one("#composer", ComposerView)
        if not composer.deliver(request_id, outcome):
            return
        self._worker = None
        if isinstance(outcome, TransportError):
            self.notify(f"Request failed: {outcome.message}", severity="error", timeout=6)


def _configure_logging(log_file: str) -> None:
    if log_file:
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
        level = logging.DEBUG
    else:
        handler = TextualHandler()
        level = logging.INFO
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    logging.basicConfig(level=level, handlers=[handler], force=True)


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="vreq",
        description="Compose and send HTTP requests in the terminal",
    )
    parser.add_argument(
        "url",
        nargs="?",
        default="",
        help="initial request URL",
    )
    parser.add_argument(
        "-X", "--method",
        type=str.upper,
        choices=[m.value for m in HttpMethod],
        default=HttpMethod.GET.value,
        help="initial HTTP method",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="request timeout in seconds",
    )
    parser.add_argument(
        "--history",
        default="",
        metavar="FILE",
        help="JSON file to load request history from and save it to",
    )
    parser.add_argument(
        "--log-file",
        default="",
        metavar="FILE",
        help="write debug logs to FILE instead of the Textual console",
    )
    args = parser.parse_args()

    if args.timeout <= 0:
        print("vreq: --timeout must be positive", file=sys.stderr)
        sys.exit(2)
    if args.history and Path(args.history).is_dir():
        print(f"vreq: {args.history} is a directory", file=sys.stderr)
        sys.exit(2)

    _configure_logging(args.log_file)
    app = RequestComposerApp(
        url=args.url,
        method=HttpMethod(args.method),
        timeout=args.timeout,
        history_path=args.history,
    )
    app.run()


if __name__ == "__main__":
    main()
