from __future__ import annotations

from typing import List

from qbank.editors.base import FormatEditor
from qbank.highlight import HighlightToken, correct_indices, parse_highlight_text
from qbank.models.enums import FormatTag


class HighlightEditor(FormatEditor):
    """Highlight text: the answer key always follows the ``[correct]`` markup."""

    tag = FormatTag.HIGHLIGHT_TEXT

    @property
    def tokens(self) -> List[HighlightToken]:
        return parse_highlight_text(self.payload.text)

    def set_text(self, text: str):
        return self._commit({"text": text}, {"indices": correct_indices(text)})
