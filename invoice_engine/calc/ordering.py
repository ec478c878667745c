"""Contiguous display order for invoice line items.

The list's element sequence is authoritative; ``order`` is a derived display
field. Every editing helper here returns a new, renumbered list so callers
(PDF rendering, persistence) can trust ``order == 1..N`` without re-deriving it.
"""

from __future__ import annotations

from typing import Iterable, Optional

from invoice_engine.calc.models import LineItem

# Persisted items without an order value sort after everything else.
_MISSING_ORDER = 999


def normalize(items: Iterable[LineItem]) -> list[LineItem]:
    return [item.model_copy(update={"order": index + 1}) for index, item in enumerate(items)]


def sort_by_order(items: Iterable[LineItem]) -> list[LineItem]:
    """Load persisted items: stable sort by stored order, then renumber."""
    ordered = sorted(items, key=lambda it: it.order if it.order else _MISSING_ORDER)
    return normalize(ordered)


def _index_of(items: list[LineItem], item_id: str) -> Optional[int]:
    for index, item in enumerate(items):
        if item.id == item_id:
            return index
    return None


def insert_item(items: Iterable[LineItem], item: LineItem, position: Optional[int] = None) -> list[LineItem]:
    out = list(items)
    if position is None:
        out.append(item)
    else:
        out.insert(position, item)
    return normalize(out)


def remove_item(items: Iterable[LineItem], item_id: str) -> list[LineItem]:
    return normalize(it for it in items if it.id != item_id)


def move_item(items: Iterable[LineItem], old_index: int, new_index: int) -> list[LineItem]:
    """Drag-and-drop move: take the element at ``old_index`` and reinsert it at ``new_index``."""
    out = list(items)
    if not out:
        return out
    old_index = max(0, min(old_index, len(out) - 1))
    new_index = max(0, min(new_index, len(out) - 1))
    out.insert(new_index, out.pop(old_index))
    return normalize(out)


def move_item_up(items: Iterable[LineItem], item_id: str) -> list[LineItem]:
    out = list(items)
    index = _index_of(out, item_id)
    if index is None or index == 0:
        return normalize(out)
    out[index - 1], out[index] = out[index], out[index - 1]
    return normalize(out)


def move_item_down(items: Iterable[LineItem], item_id: str) -> list[LineItem]:
    out = list(items)
    index = _index_of(out, item_id)
    if index is None or index >= len(out) - 1:
        return normalize(out)
    out[index], out[index + 1] = out[index + 1], out[index]
    return normalize(out)
