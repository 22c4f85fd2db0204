"""Utilities for result summaries and MongoDB values."""
from __future__ import annotations

import html
import re
from typing import Any, Dict

from bson import ObjectId

SUMMARY_LENGTH = 100

_TAG_RE = re.compile(r"<!--.*?-->|<[^>]*>", re.DOTALL)


def strip_tags(value: Any) -> str:
    """Remove markup from ``value`` and unescape entities."""
    if value is None:
        return ""
    return html.unescape(_TAG_RE.sub("", str(value)))


def summarize(value: Any, length: int = SUMMARY_LENGTH) -> str:
    """Strip markup first, then keep the first ``length`` characters."""
    return strip_tags(value)[:length]


def sanitize_value(obj: Any) -> Any:
    """Recursively convert Mongo-specific types to JSON-safe forms."""
    if isinstance(obj, dict):
        out: Dict[str, Any] = {}
        for key, value in obj.items():
            out[key] = sanitize_value(value)
        return out
    if isinstance(obj, list):
        return [sanitize_value(item) for item in obj]
    if isinstance(obj, ObjectId):
        return str(obj)
    if isinstance(obj, (str, int, float, bool)) or obj is None:
        return obj
    return str(obj)


__all__ = [
    "SUMMARY_LENGTH",
    "sanitize_value",
    "strip_tags",
    "summarize",
]
