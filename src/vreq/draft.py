"""The live, mutable request being composed."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum

from vreq.buffer import TextBuffer
from vreq.history import RequestHistoryEntry
from vreq.keyvalue import KeyValueList


class HttpMethod(Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"

    def cycle(self, step: int) -> HttpMethod:
        members = list(HttpMethod)
        return members[(members.index(self) + step) % len(members)]


class RequestTab(Enum):
    HEADERS = "Headers"
    PARAMS = "Params"
    AUTHORIZATION = "Auth"

    def cycle(self, step: int) -> RequestTab:
        members = list(RequestTab)
        return members[(members.index(self) + step) % len(members)]


@dataclass(frozen=True)
class OutgoingRequest:
    """Immutable request handed to the executor."""

    method: str
    url: str
    headers: tuple[tuple[str, str], ...] = ()
    params: tuple[tuple[str, str], ...] = ()
    auth: tuple[tuple[str, str], ...] = ()
    body: str = ""


class RequestDraft:
    def __init__(self, url: str = "", method: HttpMethod = HttpMethod.GET) -> None:
        self.method: HttpMethod = method
        self.url: str = url
        self.url_cursor: int = len(url)
        self.headers: KeyValueList = KeyValueList()
        self.params: KeyValueList = KeyValueList()
        self.auth: KeyValueList = KeyValueList()
        self.body: TextBuffer = TextBuffer()

    def list_for(self, tab: RequestTab) -> KeyValueList:
        if tab is RequestTab.HEADERS:
            return self.headers
        if tab is RequestTab.PARAMS:
            return self.params
        return self.auth

    def cycle_method(self, step: int = 1) -> None:
        self.method = self.method.cycle(step)

    # -- URL line ----------------------------------------------------------

    def insert_url_char(self, char: str) -> None:
        col = self.url_cursor
        self.url = self.url[:col] + char + self.url[col:]
        self.url_cursor = col + len(char)

    def delete_url_backward(self) -> None:
        col = self.url_cursor
        if col > 0:
            self.url = self.url[: col - 1] + self.url[col:]
            self.url_cursor = col - 1

    def delete_url_forward(self) -> None:
        col = self.url_cursor
        if col < len(self.url):
            self.url = self.url[:col] + self.url[col + 1 :]

    def move_url_cursor(self, delta: int) -> None:
        self.url_cursor = max(0, min(self.url_cursor + delta, len(self.url)))

    def url_cursor_home(self) -> None:
        self.url_cursor = 0

    def url_cursor_end(self) -> None:
        self.url_cursor = len(self.url)

    # -- Snapshots ---------------------------------------------------------

    def snapshot(self, timestamp: float | None = None) -> RequestHistoryEntry:
        return RequestHistoryEntry(
            method=self.method.value,
            url=self.url,
            headers=self.headers.to_triples(),
            params=self.params.to_triples(),
            auth=self.auth.to_triples(),
            body=self.body.text(),
            timestamp=time.time() if timestamp is None else timestamp,
        )

    def load(self, entry: RequestHistoryEntry) -> None:
        """Overwrite every field from *entry*."""
        try:
            method = HttpMethod(entry.method.upper())
        except ValueError:
            method = HttpMethod.GET
        self.method = method
        self.url = entry.url
        self.url_cursor = len(entry.url)
        self.headers.load_triples(entry.headers)
        self.params.load_triples(entry.params)
        self.auth.load_triples(entry.auth)
        self.body.set_text(entry.body)

    def to_request(self) -> OutgoingRequest:
        return OutgoingRequest(
            method=self.method.value,
            url=self.url.strip(),
            headers=tuple(self.headers.to_pairs()),
            params=tuple(self.params.to_pairs()),
            auth=tuple(self.auth.to_pairs()),
            body=self.body.text(),
        )
