"""Per-format authoring editors."""

from typing import Dict, Type

from qbank.editors.base import FormatEditor
from qbank.editors.bowtie import BowtieEditor
from qbank.editors.case_study import CaseStudyEditor
from qbank.editors.choice import MultipleChoiceEditor, SataEditor, SelectNEditor, TrendEditor
from qbank.editors.dosage import DosageEditor
from qbank.editors.grid import MatrixEditor
from qbank.editors.highlight import HighlightEditor
from qbank.editors.ranking import RankingEditor
from qbank.editors.slots import ClozeEditor, DragDropEditor, ExtendedResponseEditor
from qbank.models.enums import FormatTag
from qbank.schemas.items import AssessmentItem

EDITORS: Dict[FormatTag, Type[FormatEditor]] = {
    editor.tag: editor
    for editor in (
        MultipleChoiceEditor,
        SataEditor,
        SelectNEditor,
        TrendEditor,
        MatrixEditor,
        BowtieEditor,
        ClozeEditor,
        DragDropEditor,
        ExtendedResponseEditor,
        HighlightEditor,
        RankingEditor,
        DosageEditor,
        CaseStudyEditor,
    )
}

_missing = set(FormatTag) - set(EDITORS)
if _missing:
    raise RuntimeError(f"formats without an editor: {sorted(tag.value for tag in _missing)}")


def editor_for(item: AssessmentItem) -> FormatEditor:
    return EDITORS[item.format_tag](item)


__all__ = ["EDITORS", "FormatEditor", "editor_for"]
