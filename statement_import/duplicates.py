"""Removal of structurally identical transactions.

Lookahead windows can re-trigger on overlapping tokens near page boundaries,
and statement headers repeated on every page can be read as rows more than
once. Both produce exact copies. Two records are copies when their
``(date, description, amount)`` triples are equal; the first occurrence wins
and the relative order of the survivors is preserved.

Two genuinely distinct transactions sharing all three fields (two equal
transfers on the same day) are collapsed as well. Provenance is
not part of the key.
"""

from __future__ import annotations

from collections.abc import Iterable

from .models import ParsedTransaction


def dedupe_transactions(transactions: Iterable[ParsedTransaction]) -> list[ParsedTransaction]:
    """Keep the first transaction for each ``(date, description, amount)``."""

    seen: set[tuple] = set()
    out: list[ParsedTransaction] = []
    for tx in transactions:
        key = tx.dedupe_key
        if key in seen:
            continue
        seen.add(key)
        out.append(tx)
    return out


__all__ = ["dedupe_transactions"]
