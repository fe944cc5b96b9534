"""Outputs of the publish validator and the grading engine."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _ResultModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MissingFieldError(_ResultModel):
    """One required field that blocks the item from being marked ready."""

    field: str
    message: str


class ScoreResult(_ResultModel):
    """Outcome of grading one response against one item."""

    is_correct: bool = False
    is_partially_correct: bool = False
    credit_fraction: float = Field(default=0.0, ge=0.0, le=1.0)
    matched: List[str] = Field(default_factory=list)
    unmatched: List[str] = Field(default_factory=list)
    ungradable: bool = False
    reason: Optional[str] = None
    points_earned: Optional[float] = None

    @classmethod
    def exact(cls, correct: bool, part: str = "answer") -> "ScoreResult":
        return cls(
            is_correct=correct,
            credit_fraction=1.0 if correct else 0.0,
            matched=[part] if correct else [],
            unmatched=[] if correct else [part],
        )

    @classmethod
    def from_parts(cls, matched: List[str], unmatched: List[str]) -> "ScoreResult":
        """Partial credit: matched parts over all parts."""

        total = len(matched) + len(unmatched)
        fraction = len(matched) / total if total else 0.0
        return cls(
            is_correct=total > 0 and not unmatched,
            is_partially_correct=bool(matched) and bool(unmatched),
            credit_fraction=fraction,
            matched=list(matched),
            unmatched=list(unmatched),
        )

    @classmethod
    def malformed(cls, reason: str, unmatched: Optional[List[str]] = None) -> "ScoreResult":
        return cls(ungradable=True, reason=reason, unmatched=list(unmatched or []))
