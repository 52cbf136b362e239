# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""In-process HttpClient implementations."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Union

from .client import HttpClient
from .models import HttpRequest, HttpResponse

StubEntry = Union[HttpResponse, list[HttpResponse], Callable[[HttpRequest], HttpResponse]]


class StubHttpClient(HttpClient):
    """
    Deterministic, programmable HttpClient for tests and offline runs.

    Entries are keyed by URL. A list entry is consumed in order (the last item repeats),
    and a callable entry receives the request and returns the response.
    """

    def __init__(self, responses: dict[str, StubEntry] | None = None):
        self._responses: dict[str, StubEntry] = dict(responses or {})
        self._cursor: dict[str, int] = {}
        self._lock = threading.Lock()
        self.requests: list[HttpRequest] = []
        self.closed = False

    def add(self, url: str, response: StubEntry) -> None:
        with self._lock:
            self._responses[url] = response
            self._cursor.pop(url, None)

    def calls_to(self, url: str) -> int:
        return sum(1 for request in self.requests if request.url == url)

    def request(self, request: HttpRequest) -> HttpResponse:
        with self._lock:
            self.requests.append(request)
            entry = self._responses.get(request.url)
            if isinstance(entry, list):
                index = self._cursor.get(request.url, 0)
                self._cursor[request.url] = index + 1
                entry = entry[min(index, len(entry) - 1)] if entry else None
        if entry is None:
            return HttpResponse(ok=False, status_code=None, url=request.url, error_message="No stubbed response configured")
        if callable(entry):
            return entry(request)
        return entry

    def close(self) -> None:
        self.closed = True
