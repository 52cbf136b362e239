# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP request/response data models used by the remote clients."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..errors import ErrorCategory

Headers = dict[str, str]


@dataclass
class HttpRequest:
    """Normalized request representation consumed by HttpClient implementations."""

    url: str
    method: str = "GET"
    headers: Headers | None = None
    body: bytes | str | None = None
    timeout: float | None = None

    @classmethod
    def for_json(
        cls,
        url: str,
        payload: Any,
        *,
        method: str = "POST",
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpRequest:
        merged: Headers = {"Content-Type": "application/json", "Accept": "application/json"}
        merged.update(headers or {})
        return cls(url=url, method=method, headers=merged, body=json.dumps(payload, default=str), timeout=timeout)


@dataclass
class HttpResponse:
    """Normalized HTTP response; ``ok`` means the exchange completed, not that the status was 2xx."""

    ok: bool
    status_code: int | None = None
    headers: Headers = field(default_factory=dict)
    text: str = ""
    content: bytes = b""
    url: str | None = None
    error_message: str | None = None
    error_type: str | None = None
    error_category: ErrorCategory = ErrorCategory.NONE
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.ok and self.status_code is not None and 200 <= self.status_code < 300

    def json(self) -> Any:
        """Decode the body as JSON; raises ValueError on malformed content."""
        return json.loads(self.text or (self.content.decode("utf-8", errors="replace") if self.content else ""))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> HttpResponse:
        """Build a response from a plain mapping (used by stub transports and fixtures)."""
        headers: Headers = {}
        raw_headers = data.get("headers") or {}
        if isinstance(raw_headers, Mapping):
            for key, value in raw_headers.items():
                if key is None:
                    continue
                headers[str(key).lower()] = "" if value is None else str(value)

        raw_body = data.get("body")
        if "json" in data:
            raw_body = json.dumps(data["json"])
        content: bytes = b""
        text: str = ""
        if isinstance(raw_body, (bytes, bytearray, memoryview)):
            content = bytes(raw_body)
            text = content.decode("utf-8", errors="replace")
        elif isinstance(raw_body, str):
            text = raw_body
            content = raw_body.encode("utf-8")

        category = data.get("error_category") or ErrorCategory.NONE
        return cls(
            ok=bool(data.get("ok", True)),
            status_code=data.get("status_code"),
            headers=headers,
            text=text,
            content=content,
            url=data.get("url"),
            error_message=data.get("error_message"),
            error_type=data.get("error_type"),
            error_category=ErrorCategory(category),
            meta={
                k: v
                for k, v in data.items()
                if k not in {"ok", "status_code", "headers", "body", "json", "url", "error_message", "error_type", "error_category"}
            },
        )
