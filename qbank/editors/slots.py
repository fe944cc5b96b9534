"""Editors for formats built from response slots: cloze, drag-and-drop and extended multiple response."""

from __future__ import annotations

from typing import List, Optional

from qbank.editors.base import (
    FormatEditor,
    check_position,
    rebase_optional,
    replaced,
    without,
)
from qbank.models.enums import FormatTag
from qbank.schemas.formats import ChoiceSlot

DROPDOWN_MARKER = "[DROPDOWN]"
MIN_SLOT_OPTIONS = 2


class SlotEditor(FormatEditor):
    """Slots each carry their own option set and one correct choice."""

    @property
    def slots(self) -> List[ChoiceSlot]:
        return list(self.payload.slots)

    @property
    def choices(self) -> List[Optional[int]]:
        return list(self.answer_key.choices)

    def _slot_dicts(self) -> List[dict]:
        return [slot.model_dump() for slot in self.payload.slots]

    def add_slot(self, label: str = ""):
        slots = self._slot_dicts() + [ChoiceSlot(label=label).model_dump()]
        return self._commit({"slots": slots}, {"choices": self.choices + [None]})

    def remove_slot(self, index: int):
        check_position(index, len(self.slots), "slot")
        return self._commit(
            {"slots": without(self._slot_dicts(), index)},
            {"choices": without(self.choices, index)},
        )

    def set_slot_label(self, index: int, label: str):
        check_position(index, len(self.slots), "slot")
        slots = self._slot_dicts()
        slots[index]["label"] = label
        return self._commit({"slots": slots})

    def set_slot_option(self, slot: int, option: int, text: str):
        check_position(slot, len(self.slots), "slot")
        slots = self._slot_dicts()
        check_position(option, len(slots[slot]["options"]))
        slots[slot]["options"] = replaced(slots[slot]["options"], option, text)
        return self._commit({"slots": slots})

    def add_slot_option(self, slot: int, text: Optional[str] = None):
        check_position(slot, len(self.slots), "slot")
        slots = self._slot_dicts()
        options = slots[slot]["options"]
        slots[slot]["options"] = options + [text if text is not None else f"Option {len(options) + 1}"]
        return self._commit({"slots": slots})

    def remove_slot_option(self, slot: int, option: int):
        """Remove an option; a slot whose correct choice was removed becomes unset."""

        check_position(slot, len(self.slots), "slot")
        slots = self._slot_dicts()
        options = slots[slot]["options"]
        check_position(option, len(options))
        if len(options) <= MIN_SLOT_OPTIONS:
            raise ValueError(f"a slot keeps at least {MIN_SLOT_OPTIONS} options")
        slots[slot]["options"] = without(options, option)
        choices = replaced(self.choices, slot, rebase_optional(self.choices[slot], option))
        return self._commit({"slots": slots}, {"choices": choices})

    def set_slot_correct(self, slot: int, option: Optional[int]):
        check_position(slot, len(self.slots), "slot")
        if option is not None:
            check_position(option, len(self.slots[slot].options))
        return self._commit(answer={"choices": replaced(self.choices, slot, option)})


class ClozeEditor(SlotEditor):
    """Passage with ``[DROPDOWN]`` markers; marker ``n`` is slot ``n``."""

    tag = FormatTag.CLOZE_DROPDOWN

    def set_text(self, text: str):
        """Store the passage and grow or trim the slots to its marker count."""

        markers = text.count(DROPDOWN_MARKER)
        slots = self._slot_dicts()[:markers]
        choices = self.choices[:markers]
        while len(slots) < markers:
            slots.append(ChoiceSlot().model_dump())
            choices.append(None)
        return self._commit({"text": text, "slots": slots}, {"choices": choices})

    def add_slot(self, label: str = ""):
        text = self.payload.text
        separator = " " if text and not text.endswith(" ") else ""
        slots = self._slot_dicts() + [ChoiceSlot(label=label).model_dump()]
        return self._commit(
            {"text": text + separator + DROPDOWN_MARKER, "slots": slots},
            {"choices": self.choices + [None]},
        )

    def remove_slot(self, index: int):
        """Remove the slot and its marker from the passage."""

        check_position(index, len(self.slots), "slot")
        parts = self.payload.text.split(DROPDOWN_MARKER)
        if len(parts) > index + 1:
            parts[index] = parts[index] + parts.pop(index + 1)
        return self._commit(
            {"text": DROPDOWN_MARKER.join(parts), "slots": without(self._slot_dicts(), index)},
            {"choices": without(self.choices, index)},
        )


class DragDropEditor(SlotEditor):
    tag = FormatTag.EXTENDED_DRAG_DROP

    def set_instructions(self, text: str):
        return self._commit({"instructions": text})


class ExtendedResponseEditor(SlotEditor):
    tag = FormatTag.EXTENDED_MULTIPLE_RESPONSE

    def set_context(self, text: str):
        return self._commit({"context": text})
