"""Send an OutgoingRequest over HTTP."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass

import requests

from vreq.draft import OutgoingRequest

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class HttpResponse:
    status: int
    reason: str
    headers: tuple[tuple[str, str], ...]
    body: str
    elapsed: float  # seconds

    @property
    def content_type(self) -> str:
        for k, v in self.headers:
            if k.lower() == "content-type":
                return v
        return ""


@dataclass(frozen=True)
class TransportError:
    message: str


def _pretty_body(text: str) -> str:
    try:
        parsed = json.loads(text)
    except (ValueError, RecursionError):
        return text
    return json.dumps(parsed, indent=4, ensure_ascii=False)


def build_headers(request: OutgoingRequest) -> dict[str, str]:
    """Merge header and auth rows; later rows win on duplicate names."""
    headers: dict[str, str] = {}
    for key, value in (*request.headers, *request.auth):
        headers[key] = value
    if request.body.strip() and not any(k.lower() == "content-type" for k in headers):
        headers["Content-Type"] = "application/json"
    return headers


def execute(
    request: OutgoingRequest,
    timeout: float = DEFAULT_TIMEOUT,
    session: requests.Session | None = None,
) -> HttpResponse | TransportError:
    """Perform *request*; transport failures are returned, not raised."""
    if not request.url:
        return TransportError("no URL given")
    http = session or requests.Session()
    body = request.body.encode("utf-8") if request.body.strip() else None
    log.debug("%s %s", request.method, request.url)
    started = time.perf_counter()
    try:
        resp = http.request(
            request.method,
            request.url,
            params=list(request.params),
            headers=build_headers(request),
            data=body,
            timeout=timeout,
        )
    except requests.RequestException as exc:
        log.warning("%s %s failed: %s", request.method, request.url, exc)
        return TransportError(str(exc) or exc.__class__.__name__)
    finally:
        if session is None:
            http.close()
    elapsed = time.perf_counter() - started
    return HttpResponse(
        status=resp.status_code,
        reason=resp.reason or "",
        headers=tuple(resp.headers.items()),
        body=_pretty_body(resp.text),
        elapsed=elapsed,
    )
