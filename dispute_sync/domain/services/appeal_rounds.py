"""Fill-forward rules for per-round appeal arrays.

Arrays such as appealCreatedAt or appealDeadlines are indexed by appeal
round. They may be sparse while events are still being processed, so unknown
slots are stored as None.

Invariants:
- An array is never shortened.
- A slot that already holds a value is never cleared by an empty value.
- Writing round N never touches rounds other than N.
"""

from __future__ import annotations

from typing import Any, Sequence


def is_empty(value: Any) -> bool:
    """True for None and for empty collections (an unknown draw list)."""
    if value is None:
        return True
    if isinstance(value, (list, tuple, dict, str)):
        return len(value) == 0
    return False


def fill_round(existing: Sequence[Any] | None, index: int, value: Any) -> list[Any]:
    """Return a copy of existing with round index set to value.

    The array is padded with None up to index. An empty value never clears
    an already-set slot.

    Raises:
        ValueError: If index is negative.
    """
    if index < 0:
        raise ValueError(f"appeal round index must be >= 0, got {index}")
    rounds = list(existing or [])
    if len(rounds) <= index:
        rounds.extend([None] * (index + 1 - len(rounds)))
    if is_empty(value) and not is_empty(rounds[index]):
        return rounds
    rounds[index] = value
    return rounds


def merge_rounds(current: Sequence[Any] | None, incoming: Sequence[Any] | None) -> list[Any]:
    """Merge two round arrays slot by slot without losing data.

    Used when a caller supplies a whole array: the result is at least as
    long as either input and incoming values win only where non-empty.
    """
    merged = list(current or [])
    for index, value in enumerate(incoming or []):
        merged = fill_round(merged, index, value)
    return merged


def round_value(rounds: Sequence[Any], index: int, default: Any = None) -> Any:
    """Read a round slot, returning default for missing or empty slots."""
    if index < len(rounds) and not is_empty(rounds[index]):
        return rounds[index]
    return default
