"""Payload regulation for docsync.

Every remote call is bounded by a size and an item-count budget. This
module splits a named payload into a batch that fits those budgets and
the remainder that has to go out in later calls:
- Size is the UTF-8 JSON encoding of each item, in kilobytes
- Both counters run across all keys, so the split is a global prefix/suffix
- Per-key order is preserved in both halves
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

# Payload budgets (per remote call)
MAX_KILOBYTES_PER_PAYLOAD = 4
MAX_DOCUMENTS_PER_PAYLOAD = 10

# Page size for full-collection queries
MAX_DOCUMENTS_PER_QUERY = 100


@dataclass
class PayloadBatch:
    """Result of regulating a payload.

    Attributes:
        included: Items that fit the budgets, keyed like the input payload.
        remainder: Everything else, in visit order.
    """

    included: dict[str, list[Any]] = field(default_factory=dict)
    remainder: dict[str, list[Any]] = field(default_factory=dict)

    @property
    def has_included(self) -> bool:
        """Check if any key has included items."""
        return any(self.included.values())

    @property
    def has_remainder(self) -> bool:
        """Check if any key has items left over."""
        return any(self.remainder.values())


@dataclass
class _Accumulator:
    """Running totals shared by every key of one regulation pass."""

    kilobytes: float = 0.0
    count: int = 0

    def add(self, kilobytes: float) -> None:
        self.kilobytes += kilobytes
        self.count += 1

    def within(self, max_kilobytes: float, max_items: int) -> bool:
        return self.kilobytes < max_kilobytes and self.count <= max_items


def encoded_size(item: Any) -> float:
    """Estimate the serialized size of an item in kilobytes.

    Objects exposing ``to_json()`` (remote documents) are measured by their
    JSON representation.

    Args:
        item: Item or document to measure.

    Returns:
        Size of the compact UTF-8 JSON encoding divided by 1024.
    """
    if hasattr(item, "to_json"):
        item = item.to_json()
    encoded = json.dumps(item, separators=(",", ":"), default=str).encode("utf-8")
    return len(encoded) / 1024


def regulate_payload(
    payload: Mapping[str, Sequence[Any]],
    max_kilobytes: float = MAX_KILOBYTES_PER_PAYLOAD,
    max_items: int = MAX_DOCUMENTS_PER_PAYLOAD,
    force_first: bool = False,
) -> PayloadBatch:
    """Split a payload into an in-budget batch and a remainder.

    Items are visited key by key. Each one is added to the running totals
    and included only while the totals are strictly under ``max_kilobytes``
    and at or under ``max_items``. Totals never decrease, so once the budget
    is crossed every later item, under any key, lands in the remainder.

    Args:
        payload: Mapping of key to ordered items.
        max_kilobytes: Size budget in kilobytes (exclusive).
        max_items: Item count budget (inclusive).
        force_first: Include the first visited item even when it alone
            exceeds the budget. Loops draining a remainder use this so an
            oversized item still goes out in a chunk of its own.

    Returns:
        PayloadBatch with every input key present in both halves.
    """
    included: dict[str, list[Any]] = {key: [] for key in payload}
    remainder: dict[str, list[Any]] = {key: [] for key in payload}
    totals = _Accumulator()

    for key, items in payload.items():
        for item in items:
            first = totals.count == 0
            totals.add(encoded_size(item))

            if totals.within(max_kilobytes, max_items) or (force_first and first):
                included[key].append(item)
            else:
                remainder[key].append(item)

    return PayloadBatch(included=included, remainder=remainder)
