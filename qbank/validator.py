"""Publish validator.

``validate`` lists every field that blocks an item from being marked ready
for delivery. It is idempotent and never changes the item. Structural shape
is already guaranteed by the item model; the rules here are about
completeness (non-empty text, a chosen answer, the right number of
selections).
"""

from __future__ import annotations

from typing import Callable, Dict, List

from qbank.highlight import clickable_tokens, correct_indices
from qbank.models.enums import FormatTag
from qbank.schemas.formats import BOWTIE_POOLS, TREND_PANELS
from qbank.schemas.items import AssessmentItem
from qbank.schemas.results import MissingFieldError

CLOZE_MARKER = "[DROPDOWN]"

Rule = Callable[[AssessmentItem], List[MissingFieldError]]


def _error(field: str, message: str) -> MissingFieldError:
    return MissingFieldError(field=field, message=message)


def _filled(values: List[str]) -> List[str]:
    return [value for value in values if value and value.strip()]


def _option_list(options: List[str], field: str = "payload.options", minimum: int = 2) -> List[MissingFieldError]:
    if len(_filled(options)) < minimum:
        return [_error(field, f"at least {minimum} non-empty options are required")]
    return []


def _single_answer(options: List[str], index: int, field: str = "answerKey.index") -> List[MissingFieldError]:
    if not 0 <= index < len(options):
        return [_error(field, "choose the correct option")]
    if not options[index].strip():
        return [_error(field, f"the correct option {index + 1} is empty")]
    return []


def _multiple_choice(item: AssessmentItem) -> List[MissingFieldError]:
    options = item.payload.options
    return _option_list(options) + _single_answer(options, item.answer_key.index)


def _trend(item: AssessmentItem) -> List[MissingFieldError]:
    errors = _multiple_choice(item)
    panels = item.payload.panels
    if not any(getattr(panels, name) for name in TREND_PANELS):
        errors.append(_error("payload.panels", "at least one clinical data panel must have content"))
    return errors


def _sata(item: AssessmentItem) -> List[MissingFieldError]:
    errors = _option_list(item.payload.options)
    if not item.answer_key.indices:
        errors.append(_error("answerKey.indices", "select at least one correct option"))
    return errors


def _select_n(item: AssessmentItem) -> List[MissingFieldError]:
    errors = _option_list(item.payload.options)
    wanted = item.payload.select_count
    chosen = len(item.answer_key.indices)
    if chosen != wanted:
        errors.append(
            _error("answerKey.indices", f"exactly {wanted} correct options are required, {chosen} selected")
        )
    return errors


def _matrix(item: AssessmentItem) -> List[MissingFieldError]:
    payload = item.payload
    errors = []
    if not payload.rows:
        errors.append(_error("payload.rows", "at least one row is required"))
    if len(payload.columns) < 2:
        errors.append(_error("payload.columns", "at least two columns are required"))
    for position, row in enumerate(payload.rows):
        if not row.strip():
            errors.append(_error(f"payload.rows.{position}", f"row {position + 1} has no text"))
    for position, column in enumerate(payload.columns):
        if not column.strip():
            errors.append(_error(f"payload.columns.{position}", f"column {position + 1} has no label"))
    for position, selection in enumerate(item.answer_key.selections):
        if selection is None:
            errors.append(
                _error(f"answerKey.selections.{position}", f"row {position + 1} has no correct column")
            )
    return errors


def _slots(item: AssessmentItem) -> List[MissingFieldError]:
    payload = item.payload
    if not payload.slots:
        return [_error("payload.slots", "at least one response slot is required")]
    errors = []
    for position, (slot, choice) in enumerate(zip(payload.slots, item.answer_key.choices)):
        errors.extend(_option_list(slot.options, f"payload.slots.{position}.options"))
        if choice is None:
            errors.append(
                _error(f"answerKey.choices.{position}", f"slot {position + 1} has no correct choice")
            )
        elif not slot.options[choice].strip():
            errors.append(
                _error(f"answerKey.choices.{position}", f"the correct choice of slot {position + 1} is empty")
            )
    return errors


def _cloze(item: AssessmentItem) -> List[MissingFieldError]:
    errors = _slots(item)
    markers = item.payload.text.count(CLOZE_MARKER)
    if markers != len(item.payload.slots):
        errors.append(
            _error(
                "payload.text",
                f"text has {markers} {CLOZE_MARKER} markers for {len(item.payload.slots)} drop-downs",
            )
        )
    return errors


def _bowtie(item: AssessmentItem) -> List[MissingFieldError]:
    payload, key = item.payload, item.answer_key
    errors = []
    for name in BOWTIE_POOLS:
        options = payload.pool(name)
        if not options or len(_filled(options)) != len(options):
            errors.append(_error(f"payload.{name}", f"every {name} option needs text"))
        chosen, limit = len(key.pool(name)), payload.limit(name)
        if chosen != limit:
            errors.append(
                _error(f"answerKey.{name}", f"select exactly {limit} correct {name}, {chosen} selected")
            )
    return errors


def _highlight(item: AssessmentItem) -> List[MissingFieldError]:
    text = item.payload.text
    expected = correct_indices(text)
    if not expected:
        return [_error("payload.text", "mark at least one [correct] phrase")]
    if sorted(item.answer_key.indices) != expected:
        return [
            _error(
                "answerKey.indices",
                f"answer key {sorted(item.answer_key.indices)} does not match the marked phrases {expected}"
                f" of {len(clickable_tokens(text))} clickable phrases",
            )
        ]
    return []


def _ranking(item: AssessmentItem) -> List[MissingFieldError]:
    errors = _option_list(item.payload.items, "payload.items")
    for position, text in enumerate(item.payload.items):
        if not text.strip():
            errors.append(_error(f"payload.items.{position}", f"item {position + 1} has no text"))
    return errors


def _dosage(item: AssessmentItem) -> List[MissingFieldError]:
    if item.answer_key.correct_value is None:
        return [_error("answerKey.correctValue", "enter the correct value")]
    return []


def _case_study(item: AssessmentItem) -> List[MissingFieldError]:
    errors = []
    for number, step in item.payload.steps.items():
        field = f"payload.steps.{number}"
        if not step.question.strip():
            errors.append(_error(f"{field}.question", f"step {number} has no question"))
        if len(_filled(step.options)) < 2:
            errors.append(_error(f"{field}.options", f"step {number} needs at least 2 non-empty options"))
        index = item.answer_key.steps[number]
        if not 0 <= index < len(step.options) or not step.options[index].strip():
            errors.append(
                _error(f"answerKey.steps.{number}", f"step {number} has no valid correct answer")
            )
    return errors


_RULES: Dict[FormatTag, Rule] = {
    FormatTag.MULTIPLE_CHOICE: _multiple_choice,
    FormatTag.TREND_ITEM: _trend,
    FormatTag.SATA: _sata,
    FormatTag.SELECT_N: _select_n,
    FormatTag.MATRIX_MULTIPLE_RESPONSE: _matrix,
    FormatTag.EXTENDED_MULTIPLE_RESPONSE: _slots,
    FormatTag.EXTENDED_DRAG_DROP: _slots,
    FormatTag.CLOZE_DROPDOWN: _cloze,
    FormatTag.BOWTIE: _bowtie,
    FormatTag.HIGHLIGHT_TEXT: _highlight,
    FormatTag.RANKING: _ranking,
    FormatTag.DOSAGE_CALCULATION: _dosage,
    FormatTag.CASE_STUDY: _case_study,
}

_missing = set(FormatTag) - set(_RULES)
if _missing:
    raise RuntimeError(f"formats without a publish rule: {sorted(tag.value for tag in _missing)}")


def validate(item: AssessmentItem) -> List[MissingFieldError]:
    errors = []
    if item.format_tag is FormatTag.CASE_STUDY:
        # the case description doubles as the stem
        if not item.stem.strip() and not item.payload.description.strip():
            errors.append(_error("stem", "a case study needs a stem or a case description"))
    elif not item.stem.strip():
        errors.append(_error("stem", "question stem is required"))
    errors.extend(_RULES[item.format_tag](item))
    return errors


def is_ready(item: AssessmentItem) -> bool:
    return not validate(item)
