from __future__ import annotations

"""
flowcond.security.display
=========================

Escaping for echoing user-authored condition text (and reasons derived from
it) back into HTML: error banners, node previews, toasts.

Only `<`, `>`, `"` and `'` are escaped. `&` is passed through unchanged, so
already-escaped entities in the input are not double-escaped; callers that
need full HTML escaping must use a template engine's autoescape instead.
"""

from typing import Any, Final

__all__ = ["sanitize_for_display"]

_DISPLAY_ESCAPES: Final[dict[int, str]] = str.maketrans(
    {
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#39;",
    }
)


def sanitize_for_display(text: Any) -> str:
    """Escape markup-significant characters. Total: non-str input is stringified first."""
    if not isinstance(text, str):
        text = "" if text is None else str(text)
    return text.translate(_DISPLAY_ESCAPES)
