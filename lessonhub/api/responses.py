"""
Response envelope.

    success: {"status": "success", "message"?, "results"?, "data": {...}}
    error:   {"status": "error", "message": "...", "errors"?: [...], "error"?: "..."}
"""

from __future__ import annotations

from typing import Any


def success(
    data: dict[str, Any] | None = None,
    message: str | None = None,
    results: int | None = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {"status": "success"}
    if message is not None:
        body["message"] = message
    if results is not None:
        body["results"] = results
    body["data"] = data or {}
    return body


def error(
    message: str,
    errors: list[str] | None = None,
    detail: str | None = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {"status": "error", "message": message}
    if errors:
        body["errors"] = errors
    if detail is not None:
        body["error"] = detail
    return body
