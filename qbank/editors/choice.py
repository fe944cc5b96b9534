"""Editors for option-list formats: single best answer, SATA, select N and trend."""

from __future__ import annotations

import json
from typing import Any, List

from qbank.editors.base import (
    FormatEditor,
    check_position,
    rebase_index,
    rebase_indices,
    replaced,
    toggled,
    without,
)
from qbank.models.enums import FormatTag
from qbank.schemas.formats import TREND_PANELS

MIN_OPTIONS = 2


class OptionListEditor(FormatEditor):
    """Option text handling shared by all option-list formats."""

    @property
    def options(self) -> List[str]:
        return list(self.payload.options)

    def set_option(self, index: int, text: str):
        check_position(index, len(self.options))
        return self._commit({"options": replaced(self.options, index, text)})

    def add_option(self, text: str = ""):
        return self._commit({"options": self.options + [text]})

    def remove_option(self, index: int):
        options = self.options
        check_position(index, len(options))
        if len(options) <= MIN_OPTIONS:
            raise ValueError(f"an item keeps at least {MIN_OPTIONS} options")
        return self._commit({"options": without(options, index)}, self._rebased_answer(index))

    def _rebased_answer(self, removed: int) -> dict:
        return {"indices": rebase_indices(self.answer_key.indices, removed)}


class MultipleChoiceEditor(OptionListEditor):
    tag = FormatTag.MULTIPLE_CHOICE

    @property
    def correct_index(self) -> int:
        return self.answer_key.index

    def set_correct(self, index: int):
        check_position(index, len(self.options))
        return self._commit(answer={"index": index})

    def _rebased_answer(self, removed: int) -> dict:
        return {"index": rebase_index(self.answer_key.index, removed)}


class SataEditor(OptionListEditor):
    tag = FormatTag.SATA

    def toggle_correct(self, index: int):
        check_position(index, len(self.options))
        return self._commit(answer={"indices": toggled(self.answer_key.indices, index)})


class SelectNEditor(OptionListEditor):
    """Select exactly N: the key never holds more than N indices."""

    tag = FormatTag.SELECT_N

    @property
    def select_count(self) -> int:
        return self.payload.select_count

    def toggle_correct(self, index: int) -> bool:
        """Toggle ``index`` in the key; returns False when adding would exceed N."""

        check_position(index, len(self.options))
        indices = self.answer_key.indices
        if index not in indices and len(indices) >= self.select_count:
            return False
        self._commit(answer={"indices": toggled(indices, index)})
        return True

    def set_select_count(self, count: int):
        """Change N; when N shrinks the key keeps its first ``count`` indices."""

        if count < 1 or count > len(self.options):
            raise ValueError(f"N must be between 1 and {len(self.options)}, got {count}")
        return self._commit(
            {"select_count": count},
            {"indices": sorted(self.answer_key.indices)[:count]},
        )

    def remove_option(self, index: int):
        if len(self.options) - 1 < self.select_count:
            raise ValueError(
                f"select N needs at least {self.select_count} options; lower N before removing"
            )
        return super().remove_option(index)


class TrendEditor(MultipleChoiceEditor):
    """Single best answer under a tabbed clinical chart."""

    tag = FormatTag.TREND_ITEM

    def set_panel(self, name: str, value: Any):
        if name not in TREND_PANELS:
            raise ValueError(f"unknown panel {name!r}; expected one of {', '.join(TREND_PANELS)}")
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
            except ValueError:
                parsed = None  # free text is stored as typed
            if isinstance(parsed, (dict, list)):
                value = parsed
        panels = self.payload.panels.model_dump()
        panels[name] = value
        return self._commit({"panels": panels})
