"""Enumerations shared by the item model, registry and storage."""

import enum


class Classification(str, enum.Enum):
    """Item family shown to authors when creating an item."""

    CLASSIC = "classic"  # single-best-answer era items
    NGN = "ngn"          # Next-Generation clinical judgment items


class FormatTag(str, enum.Enum):
    """Closed set of question formats."""

    MULTIPLE_CHOICE = "multiple_choice"
    SATA = "sata"
    SELECT_N = "select_n"
    MATRIX_MULTIPLE_RESPONSE = "matrix_multiple_response"
    EXTENDED_MULTIPLE_RESPONSE = "extended_multiple_response"
    EXTENDED_DRAG_DROP = "extended_drag_drop"
    CLOZE_DROPDOWN = "cloze_dropdown"
    BOWTIE = "bowtie"
    TREND_ITEM = "trend_item"
    RANKING = "ranking"
    CASE_STUDY = "case_study"
    DOSAGE_CALCULATION = "dosage_calculation"
    HIGHLIGHT_TEXT = "highlight_text"


class ScoringPolicy(str, enum.Enum):
    """How a response is compared to the answer key."""

    EXACT_MATCH = "exact-match"
    SUBSET_MATCH = "subset-match"
    ORDERED_MATCH = "ordered-match"
    TOLERANCE_MATCH = "tolerance-match"
    PER_PART_AGGREGATE = "per-part-aggregate"
    PER_STEP_AGGREGATE = "per-step-aggregate"


class ItemStatus(str, enum.Enum):
    """Authoring lifecycle."""

    DRAFT = "draft"  # editable
    READY = "ready"  # frozen for delivery


class Difficulty(str, enum.Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class BowtiePool(str, enum.Enum):
    """The three option pools of a bow-tie item, left to right."""

    FINDINGS = "findings"
    CONDITIONS = "conditions"
    ACTIONS = "actions"
