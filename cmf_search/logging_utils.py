"""Logging helpers and request context for structured stage instrumentation."""
from __future__ import annotations

import contextvars
import datetime as _dt
import json
import logging
import re
import uuid
from typing import Any, Dict, Iterable, List, Optional, Tuple

_logger = logging.getLogger("uvicorn.error")

_request_context: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar("request_context", default={})

_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
_PHONE_RE = re.compile(r"\b(?:\+?\d{1,3}[ -]?)?(?:\(\d{3}\)|\d{3})[ -]?\d{3}[ -]?\d{4}\b")


def new_request_id() -> str:
    return str(uuid.uuid4())


def set_request_context(request_id: str, query: str, page: int, per_page: int) -> None:
    _request_context.set({"request_id": request_id, "query": query, "page": page, "per_page": per_page})


def clear_request_context() -> None:
    _request_context.set({})


def get_request_context() -> Dict[str, Any]:
    return _request_context.get() or {}


def redact_query(query: str) -> Tuple[str, bool]:
    if not query:
        return "", False
    if _EMAIL_RE.search(query) or _PHONE_RE.search(query):
        truncated = (query[:50] + "…") if len(query) > 50 else query
        return f"[REDACTED] {truncated}", True
    if len(query) > 200:
        return query[:200] + "…", False
    return query, False


def _item_id(item: Any) -> Optional[str]:
    for attr in ("content_id", "identifier", "path"):
        value = getattr(item, attr, None)
        if value:
            return str(value)
    return None


def _extract_top_ids(items: Iterable[Any], max_items: int = 10) -> List[Optional[str]]:
    ids: List[Optional[str]] = []
    for item in items:
        if len(ids) >= max_items:
            break
        ids.append(_item_id(item))
    return ids


def log_stage(stage: str, items: Iterable[Any], *, duration_ms: float | None = None, note: str | None = None) -> None:
    ctx = get_request_context()
    request_id = ctx.get("request_id") or new_request_id()
    display_query, redacted = redact_query(ctx.get("query", ""))
    per_page = ctx.get("per_page")

    items_list = list(items)
    count = len(items_list)

    entry: Dict[str, Any] = {
        "timestamp": _dt.datetime.now(_dt.timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        "request_id": request_id,
        "stage": stage,
        "query": display_query,
        "page": ctx.get("page"),
        "per_page": per_page,
        "count": count,
        "top_ids": _extract_top_ids(items_list),
        "duration_ms": round(duration_ms, 2) if duration_ms is not None else None,
    }
    if note:
        entry["note"] = note
    if redacted:
        entry["redacted"] = True

    _logger.info("%s", json.dumps(entry, default=str))


__all__ = [
    "new_request_id",
    "set_request_context",
    "clear_request_context",
    "get_request_context",
    "log_stage",
    "redact_query",
]
