"""Grading engine: one scoring policy per question format.

``score`` is total. A response that cannot be interpreted against the item,
or an item whose key is not in canonical shape, yields a result with
``ungradable=True`` and a reason; it never scores as a silent zero and never
raises.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel, ValidationError

from qbank.case_study import score_steps
from qbank.exceptions import UnknownFormatError
from qbank.highlight import clickable_tokens
from qbank.models.enums import FormatTag
from qbank.registry import FormatDescriptor, describe
from qbank.schemas.formats import BOWTIE_POOLS
from qbank.schemas.items import AssessmentItem
from qbank.schemas.results import ScoreResult
from qbank.scoring import (
    as_decimal,
    as_index_list,
    as_part_selections,
    out_of_range,
    single_best,
)

logger = logging.getLogger(__name__)

Policy = Callable[[Any, Any, Any], ScoreResult]


def _single_best_answer(payload, key, response) -> ScoreResult:
    return single_best(len(payload.options), key.index, response)


def _index_set(response: Any, size: int, label: str = "answer"):
    """Validated index set of a response, or the ungradable result explaining why not."""

    indices = as_index_list(response)
    if indices is None:
        return None, ScoreResult.malformed(f"{label}: expected a list of indices, got {response!r}", [label])
    if len(set(indices)) != len(indices):
        return None, ScoreResult.malformed(f"{label}: duplicate selections {indices}", [label])
    bad = out_of_range(indices, size)
    if bad:
        return None, ScoreResult.malformed(f"{label}: indices {bad} are outside 0..{size - 1}", [label])
    return set(indices), None


def _exact_set(size: int, key: List[int], response: Any, required: Optional[int] = None) -> ScoreResult:
    chosen, problem = _index_set(response, size)
    if problem:
        return problem
    if required is not None and len(chosen) != required:
        return ScoreResult.malformed(
            f"answer: exactly {required} selections required, got {len(chosen)}", ["answer"]
        )
    return ScoreResult.exact(chosen == set(key))


def _sata(payload, key, response) -> ScoreResult:
    return _exact_set(len(payload.options), key.indices, response)


def _select_n(payload, key, response) -> ScoreResult:
    return _exact_set(len(payload.options), key.indices, response, required=payload.select_count)


def _highlight(payload, key, response) -> ScoreResult:
    return _exact_set(len(clickable_tokens(payload.text)), key.indices, response)


def _ranking(payload, key, response) -> ScoreResult:
    order = as_index_list(response)
    size = len(payload.items)
    if order is None or sorted(order) != list(range(size)):
        return ScoreResult.malformed(
            f"ranking: expected a permutation of 0..{size - 1}, got {response!r}", ["order"]
        )
    matched, unmatched = [], []
    for position, (given, expected) in enumerate(zip(order, key.order)):
        (matched if given == expected else unmatched).append(f"position {position + 1}")
    result = ScoreResult.exact(order == key.order, "order")
    return result.model_copy(update={"matched": matched, "unmatched": unmatched})


def _dosage(payload, key, response) -> ScoreResult:
    if key.correct_value is None:
        return ScoreResult.malformed("dosage: the item has no correct value", ["value"])
    given = as_decimal(response)
    if given is None:
        return ScoreResult.malformed(f"dosage: expected a number, got {response!r}", ["value"])
    correct = as_decimal(key.correct_value)
    tolerance = as_decimal(key.tolerance)
    if correct is None or tolerance is None:
        return ScoreResult.malformed("dosage: the answer key is not a finite number", ["value"])
    try:
        within = abs(given - correct) <= tolerance
    except ArithmeticError:
        return ScoreResult.malformed(f"dosage: {response!r} is out of the comparable range", ["value"])
    return ScoreResult.exact(within, "value")


def _per_part(
    labels: List[str],
    sizes: List[int],
    key: List[Optional[int]],
    response: Any,
) -> ScoreResult:
    unset = [label for label, expected in zip(labels, key) if expected is None]
    if unset:
        return ScoreResult.malformed(f"answer key has no selection for {', '.join(unset)}", unset)
    chosen = as_part_selections(response, len(labels))
    if chosen is None:
        return ScoreResult.malformed(
            f"expected one selection for each of {len(labels)} parts, got {response!r}"
        )
    missing = [label for label, value in zip(labels, chosen) if value is None]
    if missing:
        return ScoreResult.malformed(f"no selection for {', '.join(missing)}", missing)

    matched, unmatched = [], []
    for label, size, expected, given in zip(labels, sizes, key, chosen):
        if out_of_range([given], size):
            return ScoreResult.malformed(f"{label}: choice {given} is outside 0..{size - 1}", [label])
        (matched if given == expected else unmatched).append(label)
    return ScoreResult.from_parts(matched, unmatched)


def _matrix(payload, key, response) -> ScoreResult:
    labels = [f"row {position}" for position in range(len(payload.rows))]
    return _per_part(labels, [len(payload.columns)] * len(labels), key.selections, response)


def _slots(payload, key, response) -> ScoreResult:
    labels = [f"slot {position}" for position in range(len(payload.slots))]
    sizes = [len(slot.options) for slot in payload.slots]
    return _per_part(labels, sizes, key.choices, response)


def _bowtie(payload, key, response) -> ScoreResult:
    if not isinstance(response, Mapping):
        return ScoreResult.malformed(
            f"bowtie: expected selections keyed by {', '.join(BOWTIE_POOLS)}, got {response!r}"
        )
    unknown = [name for name in response if name not in BOWTIE_POOLS]
    missing = [name for name in BOWTIE_POOLS if name not in response]
    if unknown or missing:
        return ScoreResult.malformed(
            f"bowtie: unknown pools {unknown}, missing pools {missing}", missing
        )

    matched, unmatched = [], []
    extra = False
    for name in BOWTIE_POOLS:
        chosen, problem = _index_set(response[name], len(payload.pool(name)), name)
        if problem:
            return problem
        if len(chosen) > payload.limit(name):
            return ScoreResult.malformed(
                f"{name}: {len(chosen)} selections exceed the limit of {payload.limit(name)}", [name]
            )
        for idx in key.pool(name):
            (matched if idx in chosen else unmatched).append(f"{name}[{idx}]")
        extra = extra or bool(chosen - set(key.pool(name)))

    result = ScoreResult.from_parts(matched, unmatched)
    if extra and result.is_correct:
        result = result.model_copy(update={"is_correct": False, "is_partially_correct": True})
    return result


def _case_study(payload, key, response) -> ScoreResult:
    return score_steps(payload, key, response)


_POLICIES: Dict[FormatTag, Policy] = {
    FormatTag.MULTIPLE_CHOICE: _single_best_answer,
    FormatTag.TREND_ITEM: _single_best_answer,
    FormatTag.SATA: _sata,
    FormatTag.SELECT_N: _select_n,
    FormatTag.HIGHLIGHT_TEXT: _highlight,
    FormatTag.RANKING: _ranking,
    FormatTag.DOSAGE_CALCULATION: _dosage,
    FormatTag.MATRIX_MULTIPLE_RESPONSE: _matrix,
    FormatTag.CLOZE_DROPDOWN: _slots,
    FormatTag.EXTENDED_DRAG_DROP: _slots,
    FormatTag.EXTENDED_MULTIPLE_RESPONSE: _slots,
    FormatTag.BOWTIE: _bowtie,
    FormatTag.CASE_STUDY: _case_study,
}

_missing = set(FormatTag) - set(_POLICIES)
if _missing:
    raise RuntimeError(f"formats without a scoring policy: {sorted(tag.value for tag in _missing)}")


def _coerce(model, value):
    if isinstance(value, BaseModel):
        return value
    return model.model_validate(value)


def score(
    descriptor: Union[FormatDescriptor, FormatTag, str],
    payload: Any,
    answer_key: Any,
    response: Any,
) -> ScoreResult:
    """Grade one response. Payload and answer key may be models or wire dicts."""

    try:
        if not isinstance(descriptor, FormatDescriptor):
            descriptor = describe(descriptor)
        payload = _coerce(descriptor.payload_model, payload)
        answer_key = _coerce(descriptor.answer_model, answer_key)
    except (UnknownFormatError, ValidationError) as exc:
        result = ScoreResult.malformed(f"item cannot be graded: {exc}")
        logger.debug("Ungradable item: %s", result.reason)
        return result

    problems = descriptor.check_shape(payload, answer_key)
    if problems:
        result = ScoreResult.malformed(f"answer key does not fit the payload: {problems[0]}")
    else:
        result = _POLICIES[descriptor.tag](payload, answer_key, response)
    if result.ungradable:
        logger.debug("Ungradable %s response %r: %s", descriptor.tag.value, response, result.reason)
    return result


def score_item(item: AssessmentItem, response: Any) -> ScoreResult:
    """Grade against an item and fill ``points_earned`` from its point value."""

    result = score(item.descriptor, item.payload, item.answer_key, response)
    if result.ungradable:
        return result
    return result.model_copy(update={"points_earned": round(result.credit_fraction * item.points, 2)})


def score_many(
    descriptor: Union[FormatDescriptor, FormatTag, str],
    payload: Any,
    answer_key: Any,
    responses: Iterable[Any],
    executor: Optional[Executor] = None,
) -> List[ScoreResult]:
    """Grade a batch of responses to the same item, in order."""

    def grade(response: Any) -> ScoreResult:
        return score(descriptor, payload, answer_key, response)

    if executor is None:
        return [grade(response) for response in responses]
    return list(executor.map(grade, responses))
