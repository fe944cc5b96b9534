from __future__ import annotations

from typing import List, Optional

from qbank.editors.base import FormatEditor, check_position, replaced, without
from qbank.models.enums import FormatTag

MIN_ITEMS = 2


class RankingEditor(FormatEditor):
    """Ordered response: items plus the correct order of their indices."""

    tag = FormatTag.RANKING

    @property
    def items(self) -> List[str]:
        return list(self.payload.items)

    @property
    def order(self) -> List[int]:
        return list(self.answer_key.order)

    def ordered_items(self) -> List[str]:
        items = self.items
        return [items[idx] for idx in self.order]

    def set_item(self, index: int, text: str):
        check_position(index, len(self.items), "item")
        return self._commit({"items": replaced(self.items, index, text)})

    def add_item(self, text: Optional[str] = None):
        items = self.items
        label = text if text is not None else f"Item {len(items) + 1}"
        return self._commit({"items": items + [label]}, {"order": self.order + [len(items)]})

    def remove_item(self, index: int):
        items = self.items
        check_position(index, len(items), "item")
        if len(items) <= MIN_ITEMS:
            raise ValueError(f"a ranking keeps at least {MIN_ITEMS} items")
        order = [idx - 1 if idx > index else idx for idx in self.order if idx != index]
        return self._commit({"items": without(items, index)}, {"order": order})

    def move_up(self, position: int):
        """Move the entry at ``position`` of the correct order one place earlier."""

        order = self.order
        check_position(position, len(order), "position")
        if position == 0:
            return self.item
        order[position - 1], order[position] = order[position], order[position - 1]
        return self._commit(answer={"order": order})

    def move_down(self, position: int):
        order = self.order
        check_position(position, len(order), "position")
        if position == len(order) - 1:
            return self.item
        order[position + 1], order[position] = order[position], order[position + 1]
        return self._commit(answer={"order": order})
