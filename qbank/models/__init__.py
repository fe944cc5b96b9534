"""SQLAlchemy models and shared enumerations."""

from qbank.models.enums import (
    BowtiePool,
    Classification,
    Difficulty,
    FormatTag,
    ItemStatus,
    ScoringPolicy,
)
from qbank.models.item import QbankItem

__all__ = [
    "BowtiePool",
    "Classification",
    "Difficulty",
    "FormatTag",
    "ItemStatus",
    "QbankItem",
    "ScoringPolicy",
]
