"""Client-side search refinement.

The document store has no substring matching, so the search term is applied
to already fetched pages. A page may therefore hold fewer items than its
page size.
"""

from collections.abc import Sequence
from typing import Any

VIDEO_SEARCH_FIELDS = ("title", "channel_title")
CHANNEL_SEARCH_FIELDS = ("title",)


def _field_value(item: Any, field: str) -> Any:
    if isinstance(item, dict):
        return item.get(field)
    return getattr(item, field, None)


def matches_term(item: Any, term: str, fields: Sequence[str]) -> bool:
    """Case-insensitive substring match of ``term`` against any of ``fields``."""
    needle = term.strip().lower()
    if not needle:
        return True
    for field in fields:
        value = _field_value(item, field)
        if isinstance(value, str) and needle in value.lower():
            return True
    return False


def refine_items(items: Sequence[Any], term: str | None, fields: Sequence[str]) -> list[Any]:
    """Keep items matching the search term, preserving their order.

    A blank term returns the items unchanged. Refinement is idempotent.
    """
    if not term or not term.strip():
        return list(items)
    return [item for item in items if matches_term(item, term, fields)]
