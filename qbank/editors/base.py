"""Shared editor plumbing."""

from __future__ import annotations

from typing import Any, ClassVar, List, Mapping, Optional

from qbank import drafts
from qbank.models.enums import FormatTag
from qbank.schemas.items import AssessmentItem


class FormatEditor:
    """Wraps the current item of one authoring session.

    Every interaction commits through :func:`qbank.drafts.apply`, so after any
    call ``editor.item`` is a complete, canonically shaped item. A rejected
    interaction raises and leaves ``editor.item`` unchanged.
    """

    tag: ClassVar[FormatTag]

    def __init__(self, item: AssessmentItem):
        if item.format_tag is not self.tag:
            raise ValueError(
                f"{type(self).__name__} edits {self.tag.value} items, got {item.format_tag.value}"
            )
        self._item = item

    @property
    def item(self) -> AssessmentItem:
        return self._item

    @property
    def payload(self):
        return self._item.payload

    @property
    def answer_key(self):
        return self._item.answer_key

    def _commit(
        self,
        payload: Optional[Mapping[str, Any]] = None,
        answer: Optional[Mapping[str, Any]] = None,
    ) -> AssessmentItem:
        self._item = drafts.apply(self._item, payload, answer)
        return self._item


def check_position(index: int, size: int, what: str = "option") -> None:
    if not 0 <= index < size:
        raise IndexError(f"{what} {index} does not exist (have {size})")


def replaced(values: List[Any], index: int, value: Any) -> List[Any]:
    updated = list(values)
    updated[index] = value
    return updated


def without(values: List[Any], index: int) -> List[Any]:
    return values[:index] + values[index + 1:]


def rebase_index(index: int, removed: int) -> int:
    """Answer index after the option at ``removed`` is deleted; a removed answer falls back to 0."""

    if index == removed:
        return 0
    if index > removed:
        return index - 1
    return index


def rebase_optional(index: Optional[int], removed: int) -> Optional[int]:
    """Like :func:`rebase_index` but a removed selection becomes unset."""

    if index is None or index == removed:
        return None
    return index - 1 if index > removed else index


def rebase_indices(indices: List[int], removed: int) -> List[int]:
    return sorted(idx - 1 if idx > removed else idx for idx in indices if idx != removed)


def toggled(indices: List[int], index: int) -> List[int]:
    if index in indices:
        return [idx for idx in indices if idx != index]
    return sorted(indices + [index])
