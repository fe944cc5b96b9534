"""Format registry: the closed set of question formats and their canonical shapes.

``describe`` is total over :class:`FormatTag`. Adding a format means adding a
tag, one descriptor here, an editor, a validator rule and a scoring policy;
the completeness checks in those modules fail at import time if one is missing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Type, Union

from pydantic import BaseModel

from qbank.config import get_settings
from qbank.exceptions import UnknownFormatError
from qbank.models.enums import Classification, FormatTag, ScoringPolicy
from qbank.schemas.formats import (
    BowtieAnswer,
    BowtieLimits,
    BowtiePayload,
    CaseStudyAnswer,
    CaseStudyPayload,
    ClozePayload,
    DosageAnswer,
    DosagePayload,
    DragDropPayload,
    ExtendedResponsePayload,
    HighlightPayload,
    IndexSetAnswer,
    MatrixAnswer,
    MatrixPayload,
    OptionListPayload,
    RankingAnswer,
    RankingPayload,
    SelectNPayload,
    SingleIndexAnswer,
    SlotAnswer,
    TrendPayload,
)


@dataclass(frozen=True)
class FormatDescriptor:
    tag: FormatTag
    label: str
    payload_shape: str
    answer_shape: str
    scoring_policy: ScoringPolicy
    default_classification: Classification
    payload_model: Type[BaseModel]
    answer_model: Type[BaseModel]
    payload_factory: Callable[[], BaseModel]
    answer_factory: Callable[[], BaseModel]

    def new_payload(self) -> BaseModel:
        return self.payload_factory()

    def new_answer_key(self) -> BaseModel:
        return self.answer_factory()

    def check_shape(self, payload: BaseModel, answer_key: BaseModel) -> List[str]:
        """List structural mismatches of a payload/answer pair; empty when canonical."""

        problems = []
        if not isinstance(payload, self.payload_model):
            problems.append(
                f"payload is {type(payload).__name__}, {self.tag.value} expects {self.payload_model.__name__}"
            )
        if not isinstance(answer_key, self.answer_model):
            problems.append(
                f"answer key is {type(answer_key).__name__}, {self.tag.value} expects {self.answer_model.__name__}"
            )
        if problems:
            return problems
        return payload.answer_problems(answer_key)

    def summary(self) -> Dict[str, str]:
        return {
            "tag": self.tag.value,
            "label": self.label,
            "payloadShape": self.payload_shape,
            "answerShape": self.answer_shape,
            "scoringPolicy": self.scoring_policy.value,
            "defaultClassification": self.default_classification.value,
        }


def _options() -> OptionListPayload:
    return OptionListPayload(options=["" for _ in range(get_settings().default_option_count)])


def _select_n() -> SelectNPayload:
    settings = get_settings()
    count = max(settings.default_option_count, settings.select_n_default + 1)
    return SelectNPayload(options=["" for _ in range(count)], select_count=settings.select_n_default)


def _bowtie() -> BowtiePayload:
    settings = get_settings()
    return BowtiePayload(
        limits=BowtieLimits(
            findings=settings.bowtie_max_findings,
            conditions=settings.bowtie_max_conditions,
            actions=settings.bowtie_max_actions,
        )
    )


def _trend() -> TrendPayload:
    return TrendPayload(options=["" for _ in range(get_settings().default_option_count)])


_DESCRIPTORS: Dict[FormatTag, FormatDescriptor] = {
    descriptor.tag: descriptor
    for descriptor in (
        FormatDescriptor(
            FormatTag.MULTIPLE_CHOICE, "Single Best Answer",
            "array of option strings", "single index",
            ScoringPolicy.EXACT_MATCH, Classification.CLASSIC,
            OptionListPayload, SingleIndexAnswer, _options, SingleIndexAnswer,
        ),
        FormatDescriptor(
            FormatTag.SATA, "SATA (Classic)",
            "array of option strings", "index set",
            ScoringPolicy.SUBSET_MATCH, Classification.CLASSIC,
            OptionListPayload, IndexSetAnswer, _options, IndexSetAnswer,
        ),
        FormatDescriptor(
            FormatTag.SELECT_N, "Select N",
            "array of option strings + N", "index set of fixed size N",
            ScoringPolicy.SUBSET_MATCH, Classification.NGN,
            SelectNPayload, IndexSetAnswer, _select_n, IndexSetAnswer,
        ),
        FormatDescriptor(
            FormatTag.MATRIX_MULTIPLE_RESPONSE, "Matrix / Grid",
            "rows x fixed column labels", "one column index per row",
            ScoringPolicy.PER_PART_AGGREGATE, Classification.NGN,
            MatrixPayload, MatrixAnswer, MatrixPayload, lambda: MatrixAnswer(selections=[None, None]),
        ),
        FormatDescriptor(
            FormatTag.EXTENDED_MULTIPLE_RESPONSE, "Extended Multiple Response",
            "context passage + response slots with option sets", "one choice per slot",
            ScoringPolicy.PER_PART_AGGREGATE, Classification.NGN,
            ExtendedResponsePayload, SlotAnswer, ExtendedResponsePayload, SlotAnswer,
        ),
        FormatDescriptor(
            FormatTag.EXTENDED_DRAG_DROP, "Extended Drag & Drop",
            "drop zones with candidate tokens", "one token per zone",
            ScoringPolicy.PER_PART_AGGREGATE, Classification.NGN,
            DragDropPayload, SlotAnswer, DragDropPayload, SlotAnswer,
        ),
        FormatDescriptor(
            FormatTag.CLOZE_DROPDOWN, "Cloze (Drop-Down)",
            "text with ordered drop-down slots", "one choice per slot",
            ScoringPolicy.PER_PART_AGGREGATE, Classification.NGN,
            ClozePayload, SlotAnswer, ClozePayload, SlotAnswer,
        ),
        FormatDescriptor(
            FormatTag.BOWTIE, "Bow-Tie",
            "three named option pools (findings/conditions/actions)", "per-pool index subsets",
            ScoringPolicy.PER_PART_AGGREGATE, Classification.NGN,
            BowtiePayload, BowtieAnswer, _bowtie, BowtieAnswer,
        ),
        FormatDescriptor(
            FormatTag.TREND_ITEM, "Trend (Clinical Data)",
            "six-tab clinical panel + option list", "single index",
            ScoringPolicy.EXACT_MATCH, Classification.NGN,
            TrendPayload, SingleIndexAnswer, _trend, SingleIndexAnswer,
        ),
        FormatDescriptor(
            FormatTag.RANKING, "Ordered Response",
            "ordered item list", "permutation of item indices",
            ScoringPolicy.ORDERED_MATCH, Classification.CLASSIC,
            RankingPayload, RankingAnswer, RankingPayload, lambda: RankingAnswer(order=[0, 1, 2]),
        ),
        FormatDescriptor(
            FormatTag.CASE_STUDY, "Case Study",
            "six-step clinical judgment map of single best answer sub-items", "per-step answer index",
            ScoringPolicy.PER_STEP_AGGREGATE, Classification.NGN,
            CaseStudyPayload, CaseStudyAnswer, CaseStudyPayload, CaseStudyAnswer,
        ),
        FormatDescriptor(
            FormatTag.DOSAGE_CALCULATION, "Dosage Calculation",
            "unit label + display precision", "numeric value + tolerance",
            ScoringPolicy.TOLERANCE_MATCH, Classification.CLASSIC,
            DosagePayload, DosageAnswer, DosagePayload, DosageAnswer,
        ),
        FormatDescriptor(
            FormatTag.HIGHLIGHT_TEXT, "Highlight Text",
            "marked-up text of plain, [correct] and {distractor} phrases", "index set over clickable phrases",
            ScoringPolicy.SUBSET_MATCH, Classification.NGN,
            HighlightPayload, IndexSetAnswer, HighlightPayload, IndexSetAnswer,
        ),
    )
}

# Tags stored by earlier versions of the platform.
LEGACY_ALIASES: Dict[str, FormatTag] = {
    "standard": FormatTag.MULTIPLE_CHOICE,
    "sata_classic": FormatTag.SATA,
    "matrix": FormatTag.MATRIX_MULTIPLE_RESPONSE,
    "drag_drop": FormatTag.EXTENDED_DRAG_DROP,
    "cloze": FormatTag.CLOZE_DROPDOWN,
    "trend": FormatTag.TREND_ITEM,
    "ordering": FormatTag.RANKING,
    "casestudy": FormatTag.CASE_STUDY,
    "ngn_case_study": FormatTag.CASE_STUDY,
    "calculation": FormatTag.DOSAGE_CALCULATION,
    "highlight": FormatTag.HIGHLIGHT_TEXT,
}

_missing = set(FormatTag) - set(_DESCRIPTORS)
if _missing:
    raise RuntimeError(f"formats without a descriptor: {sorted(tag.value for tag in _missing)}")


def resolve_tag(tag: Union[FormatTag, str]) -> FormatTag:
    """Normalize a tag or legacy alias to a :class:`FormatTag`."""

    if isinstance(tag, FormatTag):
        return tag
    if isinstance(tag, str):
        cleaned = tag.strip().lower()
        if cleaned in LEGACY_ALIASES:
            return LEGACY_ALIASES[cleaned]
        try:
            return FormatTag(cleaned)
        except ValueError:
            pass
    raise UnknownFormatError(tag)


def describe(tag: Union[FormatTag, str]) -> FormatDescriptor:
    return _DESCRIPTORS[resolve_tag(tag)]


def all_descriptors() -> List[FormatDescriptor]:
    return [_DESCRIPTORS[tag] for tag in FormatTag]
