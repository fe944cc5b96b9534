"""Response coercion helpers and the single-best-answer policy.

Responses come from the delivery client as loose JSON. These helpers turn
them into indices, index lists or decimals, returning ``None`` when a value
cannot be interpreted; callers report that as an ungradable response.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, List, Mapping, Optional

from qbank.schemas.results import ScoreResult

# ASCII digits only; longer strings are not option or step positions
_INDEX_RX = re.compile(r"-?[0-9]{1,9}")


def as_index(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        cleaned = value.strip()
        if _INDEX_RX.fullmatch(cleaned):
            return int(cleaned)
    return None


def as_index_list(value: Any) -> Optional[List[int]]:
    """Indices of a list/tuple/set response; ``None`` if any entry is not an index."""

    if isinstance(value, (set, frozenset)):
        value = sorted(value, key=lambda entry: (str(type(entry)), entry))
    if not isinstance(value, (list, tuple)):
        return None
    indices = [as_index(entry) for entry in value]
    if any(idx is None for idx in indices):
        return None
    return indices


def as_decimal(value: Any) -> Optional[Decimal]:
    """Exact decimal of a numeric response; floats go through ``str`` so 5.7 stays 5.7."""

    if isinstance(value, bool) or value is None:
        return None
    try:
        if isinstance(value, (int, float)):
            text = str(value)
        elif isinstance(value, str):
            text = value.strip()
        else:
            return None
        number = Decimal(text)
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def as_part_selections(value: Any, size: int) -> Optional[List[Optional[int]]]:
    """One entry per part (row or slot), ``None`` where the response has no answer.

    Accepts a list in part order or a mapping keyed by part index. Returns
    ``None`` for responses that cannot be read at all (wrong container, too
    many entries, unknown or repeated keys, non-index values).
    """

    selections: List[Optional[int]] = [None] * size
    if isinstance(value, (list, tuple)):
        if len(value) > size:
            return None
        entries = enumerate(value)
    elif isinstance(value, Mapping):
        entries = []
        for key, entry in value.items():
            position = as_index(key)
            if position is None or position < 0 or position >= size:
                return None
            if any(position == seen for seen, _ in entries):
                return None
            entries.append((position, entry))
    else:
        return None

    for position, entry in entries:
        if entry is None:
            continue
        idx = as_index(entry)
        if idx is None:
            return None
        selections[position] = idx
    return selections


def out_of_range(indices: List[Optional[int]], size: int) -> List[int]:
    return [idx for idx in indices if idx is not None and (idx < 0 or idx >= size)]


def single_best(option_count: int, key_index: int, response: Any, part: str = "answer") -> ScoreResult:
    """Exact index match against a single keyed option."""

    chosen = as_index(response)
    if chosen is None:
        return ScoreResult.malformed(f"{part}: expected an option index, got {response!r}", [part])
    if out_of_range([chosen], option_count):
        return ScoreResult.malformed(
            f"{part}: option {chosen} is outside 0..{option_count - 1}", [part]
        )
    return ScoreResult.exact(chosen == key_index, part)
