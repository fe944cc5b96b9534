"""Canonical payload and answer-key shapes of every question format.

Each format stores two JSON documents: a payload (options, rows, pools,
panels...) and an answer key whose shape is coupled to the payload. The
models below are the only accepted shapes; they serialize with camelCase
keys so the stored envelope matches what the authoring client sends.

``answer_problems`` on each payload lists the structural mismatches between
the payload and a candidate answer key (index ranges, cardinalities). It
says nothing about completeness, which is the publish validator's job.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, FiniteFloat, field_validator
from pydantic.alias_generators import to_camel

from qbank.highlight import clickable_tokens
from qbank.models.enums import BowtiePool

CASE_STUDY_STEP_KEYS = (1, 2, 3, 4, 5, 6)
TREND_PANELS = ("vitals", "notes", "labs", "intake_output", "mar", "imaging")
BOWTIE_POOLS = tuple(pool.value for pool in BowtiePool)


class WireModel(BaseModel):
    """Base for shapes exchanged with the authoring client and the item store.

    Validation is strict: a value of the wrong JSON type is rejected rather
    than converted, so what an author sends is exactly what gets stored.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        strict=True,
        frozen=True,
    )


def _blank(count: int) -> List[str]:
    return ["" for _ in range(count)]


def _index_problems(name: str, indices: Iterable[Optional[int]], size: int) -> List[str]:
    problems = []
    for idx in indices:
        if idx is None:
            continue
        if idx < 0 or idx >= size:
            problems.append(f"{name}: index {idx} is outside 0..{size - 1}" if size else f"{name}: index {idx} but there are no choices")
    return problems


def _duplicate_problems(name: str, indices: List[int]) -> List[str]:
    if len(set(indices)) != len(indices):
        return [f"{name}: duplicate indices {indices}"]
    return []


_STEP_KEY_TEXT = {str(key): key for key in CASE_STUDY_STEP_KEYS}


def _numbered_steps(value: Any) -> Any:
    # JSON object keys are strings, so stored steps arrive keyed "1".."6"
    if not isinstance(value, dict):
        return value
    numbered = {
        _STEP_KEY_TEXT.get(key, key) if isinstance(key, str) else key: entry
        for key, entry in value.items()
    }
    if len(numbered) != len(value):
        raise ValueError("case study steps repeat a step number")
    return numbered


# === Answer keys ===

class SingleIndexAnswer(WireModel):
    """One correct option index."""

    index: int = 0


class IndexSetAnswer(WireModel):
    """Unordered set of correct indices, kept in the order given."""

    indices: List[int] = Field(default_factory=list)

    @field_validator("indices")
    @classmethod
    def _no_duplicates(cls, value: List[int]) -> List[int]:
        if len(set(value)) != len(value):
            raise ValueError("indices must be unique")
        return value


class MatrixAnswer(WireModel):
    """One column index per row; ``None`` while the author has not picked one."""

    selections: List[Optional[int]] = Field(default_factory=list)


class SlotAnswer(WireModel):
    """One option index per slot; ``None`` while unset."""

    choices: List[Optional[int]] = Field(default_factory=list)


class BowtieAnswer(WireModel):
    """Correct option indices per bow-tie pool."""

    findings: List[int] = Field(default_factory=list)
    conditions: List[int] = Field(default_factory=list)
    actions: List[int] = Field(default_factory=list)

    def pool(self, name: str) -> List[int]:
        return list(getattr(self, name))


class RankingAnswer(WireModel):
    """Item indices in their correct order, first to last."""

    order: List[int] = Field(default_factory=list)


class DosageAnswer(WireModel):
    correct_value: Optional[FiniteFloat] = None
    tolerance: FiniteFloat = Field(default=0.0, ge=0)

    @field_validator("correct_value", "tolerance", mode="before")
    @classmethod
    def _whole_numbers(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return float(value)
            except OverflowError:
                raise ValueError("number is too large") from None
        return value


class CaseStudyAnswer(WireModel):
    """Correct option index of each clinical judgment step, keyed 1-6."""

    steps: Dict[int, int] = Field(default_factory=lambda: {key: 0 for key in CASE_STUDY_STEP_KEYS})

    _numbered = field_validator("steps", mode="before")(_numbered_steps)

    @field_validator("steps")
    @classmethod
    def _six_steps(cls, value: Dict[int, int]) -> Dict[int, int]:
        if set(value) != set(CASE_STUDY_STEP_KEYS):
            raise ValueError("case study answers must be keyed by steps 1-6")
        return value


# === Payloads ===

class OptionListPayload(WireModel):
    """Flat option list used by single best answer and SATA items."""

    options: List[str] = Field(default_factory=lambda: _blank(4))

    def answer_problems(self, answer: Union[SingleIndexAnswer, IndexSetAnswer]) -> List[str]:
        if isinstance(answer, SingleIndexAnswer):
            return _index_problems("answer", [answer.index], len(self.options))
        return _index_problems("answer", answer.indices, len(self.options))


class SelectNPayload(WireModel):
    options: List[str] = Field(default_factory=lambda: _blank(4))
    select_count: int = Field(default=3, ge=1)

    def answer_problems(self, answer: IndexSetAnswer) -> List[str]:
        problems = []
        if self.select_count > len(self.options):
            problems.append(
                f"selectCount {self.select_count} exceeds the {len(self.options)} available options"
            )
        if len(answer.indices) > self.select_count:
            problems.append(
                f"answer selects {len(answer.indices)} options but N is {self.select_count}"
            )
        problems.extend(_index_problems("answer", answer.indices, len(self.options)))
        return problems


class MatrixPayload(WireModel):
    """Rows are statements to judge, columns the fixed response labels."""

    rows: List[str] = Field(default_factory=lambda: ["Option 1", "Option 2"])
    columns: List[str] = Field(default_factory=lambda: ["Yes", "No"])

    def answer_problems(self, answer: MatrixAnswer) -> List[str]:
        problems = []
        if len(answer.selections) != len(self.rows):
            problems.append(
                f"answer has {len(answer.selections)} row selections for {len(self.rows)} rows"
            )
        problems.extend(_index_problems("answer column", answer.selections, len(self.columns)))
        return problems


class BowtieLimits(WireModel):
    """How many options of each pool the key (and a response) holds."""

    findings: int = Field(default=2, ge=1)
    conditions: int = Field(default=1, ge=1)
    actions: int = Field(default=2, ge=1)


class BowtiePayload(WireModel):
    """Assessment findings (left), most likely condition (centre), nursing actions (right)."""

    findings: List[str] = Field(default_factory=lambda: _blank(4))
    conditions: List[str] = Field(default_factory=lambda: _blank(3))
    actions: List[str] = Field(default_factory=lambda: _blank(4))
    limits: BowtieLimits = Field(default_factory=BowtieLimits)

    def pool(self, name: str) -> List[str]:
        return list(getattr(self, name))

    def limit(self, name: str) -> int:
        return getattr(self.limits, name)

    def answer_problems(self, answer: BowtieAnswer) -> List[str]:
        problems = []
        for name in BOWTIE_POOLS:
            keyed = answer.pool(name)
            if len(keyed) > self.limit(name):
                problems.append(f"{name}: {len(keyed)} selections exceed the limit of {self.limit(name)}")
            problems.extend(_duplicate_problems(name, keyed))
            problems.extend(_index_problems(name, keyed, len(self.pool(name))))
        return problems


class ChoiceSlot(WireModel):
    """A blank, drop zone or response row with its own option set."""

    label: str = ""
    options: List[str] = Field(default_factory=lambda: ["Option 1", "Option 2", "Option 3"])


class _SlottedPayload(WireModel):
    slots: List[ChoiceSlot] = Field(default_factory=list)

    def answer_problems(self, answer: SlotAnswer) -> List[str]:
        problems = []
        if len(answer.choices) != len(self.slots):
            problems.append(f"answer has {len(answer.choices)} choices for {len(self.slots)} slots")
            return problems
        for position, (slot, choice) in enumerate(zip(self.slots, answer.choices)):
            problems.extend(_index_problems(f"slot {position}", [choice], len(slot.options)))
        return problems


class ClozePayload(_SlottedPayload):
    """Text with ``[DROPDOWN]`` markers, one slot per marker in order."""

    text: str = ""


class DragDropPayload(_SlottedPayload):
    """Drop zones, each accepting one of its candidate tokens."""

    instructions: str = ""


class ExtendedResponsePayload(_SlottedPayload):
    """Response rows under a shared clinical context passage."""

    context: str = ""


class HighlightPayload(WireModel):
    text: str = ""

    def answer_problems(self, answer: IndexSetAnswer) -> List[str]:
        return _index_problems("answer", answer.indices, len(clickable_tokens(self.text)))


class RankingPayload(WireModel):
    items: List[str] = Field(default_factory=lambda: ["Item 1", "Item 2", "Item 3"])

    def answer_problems(self, answer: RankingAnswer) -> List[str]:
        if sorted(answer.order) != list(range(len(self.items))):
            return [f"order {answer.order} is not a permutation of the {len(self.items)} items"]
        return []


PanelValue = Union[str, Dict[str, Any], List[Any]]


class TrendPanels(WireModel):
    """Clinical chart tabs shown beside a trend item."""

    vitals: PanelValue = Field(default_factory=dict)
    notes: PanelValue = Field(default_factory=dict)
    labs: PanelValue = Field(default_factory=dict)
    intake_output: PanelValue = Field(default_factory=dict)
    mar: PanelValue = Field(default_factory=dict)
    imaging: PanelValue = Field(default_factory=dict)


class TrendPayload(WireModel):
    panels: TrendPanels = Field(default_factory=TrendPanels)
    options: List[str] = Field(default_factory=lambda: _blank(4))

    def answer_problems(self, answer: SingleIndexAnswer) -> List[str]:
        return _index_problems("answer", [answer.index], len(self.options))


class DosagePayload(WireModel):
    unit: str = ""
    decimal_places: int = Field(default=1, ge=0, le=4)

    def answer_problems(self, answer: DosageAnswer) -> List[str]:
        return []


class CaseStep(WireModel):
    """Single best answer sub-item of one clinical judgment step."""

    question: str = ""
    options: List[str] = Field(default_factory=lambda: _blank(4))


class CaseStudyPayload(WireModel):
    title: str = ""
    description: str = ""
    case_data: Dict[str, Any] = Field(default_factory=dict)
    steps: Dict[int, CaseStep] = Field(
        default_factory=lambda: {key: CaseStep() for key in CASE_STUDY_STEP_KEYS}
    )

    _numbered = field_validator("steps", mode="before")(_numbered_steps)

    @field_validator("steps")
    @classmethod
    def _six_steps(cls, value: Dict[int, CaseStep]) -> Dict[int, CaseStep]:
        if set(value) != set(CASE_STUDY_STEP_KEYS):
            raise ValueError("case study steps must be keyed 1-6")
        return dict(sorted(value.items()))

    @property
    def steps_completed(self) -> int:
        return sum(1 for step in self.steps.values() if step.question.strip())

    def answer_problems(self, answer: CaseStudyAnswer) -> List[str]:
        problems = []
        for key, step in self.steps.items():
            problems.extend(_index_problems(f"step {key}", [answer.steps[key]], len(step.options)))
        return problems


FormatPayload = Union[
    OptionListPayload,
    SelectNPayload,
    MatrixPayload,
    BowtiePayload,
    ClozePayload,
    DragDropPayload,
    ExtendedResponsePayload,
    HighlightPayload,
    RankingPayload,
    TrendPayload,
    DosagePayload,
    CaseStudyPayload,
]
FormatAnswer = Union[
    SingleIndexAnswer,
    IndexSetAnswer,
    MatrixAnswer,
    SlotAnswer,
    BowtieAnswer,
    RankingAnswer,
    DosageAnswer,
    CaseStudyAnswer,
]
