"""Masking and trimming helpers for anything that goes into the logs."""

from __future__ import annotations

import re

_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
_PHONE_RE = re.compile(r"\d{2,4}-\d{2,4}-\d{3,4}")
_LONG_NUMBER_RE = re.compile(r"\d{8,}")

MASK_LIMIT = 1200
TRIM_LIMIT = 1200
TRIM_HEAD = 800
TRIM_TAIL = 200


def trim_long(value: str | None) -> str:
    """Keep the head and tail of long text: 800 chars + '...' + last 200."""
    if not value or not value.strip():
        return ""
    if len(value) <= TRIM_LIMIT:
        return value
    return value[:TRIM_HEAD] + "..." + value[-TRIM_TAIL:]


def mask_sensitive(raw: str | None, limit: int = MASK_LIMIT) -> str:
    """Redact emails, phone-shaped numbers and long digit runs, then cap length."""
    if not raw or not raw.strip():
        return ""
    masked = _EMAIL_RE.sub("[email]", raw)
    masked = _PHONE_RE.sub("[phone]", masked)
    masked = _LONG_NUMBER_RE.sub("[number]", masked)
    if len(masked) > limit:
        return masked[:limit] + "..."
    return masked


def preview_text(text: str | None, limit: int = 180) -> str:
    """Single-line preview for info logs."""
    raw = str(text or "").replace("\r", " ").replace("\n", " ").strip()
    if len(raw) <= limit:
        return raw
    return raw[:limit].rstrip() + " ..."
