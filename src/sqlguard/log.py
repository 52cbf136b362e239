# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Logging helpers for SqlGuard."""

from __future__ import annotations

import logging
import os

DEFAULT_LOG_LEVEL = os.getenv("SQLGUARD_LOG_LEVEL", "WARNING").upper()
LOG_TEXT_PREVIEW_CHARS = 80


def setup_logging(level: str | None = None) -> None:
    """Configure standard logging for CLI/library use."""
    effective_level = (level or DEFAULT_LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, effective_level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


def preview(text: str | None, limit: int = LOG_TEXT_PREVIEW_CHARS) -> str:
    """Shorten query text before it reaches a log line."""
    if not text:
        return ""
    flat = " ".join(text.split())
    if len(flat) <= limit:
        return flat
    return flat[: max(0, limit - 3)] + "..."


__all__ = ["preview", "setup_logging"]
