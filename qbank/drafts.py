"""Item draft operations.

Items are immutable values. Every operation here returns a new
:class:`AssessmentItem` with ``version`` incremented; the previous value stays
untouched, so an editor can always fall back to it when an edit is rejected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Type, Union

from pydantic import BaseModel, ValidationError

from qbank.config import get_settings
from qbank.exceptions import (
    FormatChangeNotConfirmed,
    ItemFrozenError,
    ItemShapeError,
    NotReadyError,
)
from qbank.models.enums import Classification, FormatTag, ItemStatus
from qbank.registry import describe
from qbank.schemas.formats import BowtiePayload
from qbank.schemas.items import AssessmentItem

logger = logging.getLogger(__name__)

Partial = Union[Mapping[str, Any], BaseModel, None]

_CONTENT_FIELDS = {"payload", "answer_key", "format_tag"}
_LIFECYCLE_FIELDS = {"status", "version", "id"}


@dataclass(frozen=True)
class FormatChangeNotice:
    """What switching an item to another format throws away."""

    from_tag: FormatTag
    to_tag: FormatTag
    discards_content: bool
    discarded_payload: Dict[str, Any]
    discarded_answer_key: Dict[str, Any]


def initialize(
    classification: Union[Classification, str],
    format_tag: Union[FormatTag, str],
    **metadata: Any,
) -> AssessmentItem:
    """New draft holding the empty canonical payload and answer key of ``format_tag``."""

    descriptor = describe(format_tag)
    metadata.setdefault("points", get_settings().default_points)
    try:
        return AssessmentItem(
            classification=Classification(classification),
            format_tag=descriptor.tag,
            payload=descriptor.new_payload(),
            answer_key=descriptor.new_answer_key(),
            **metadata,
        )
    except ValidationError as exc:
        raise ItemShapeError("invalid item metadata", validation_messages(exc)) from exc


def has_authored_content(item: AssessmentItem) -> bool:
    descriptor = item.descriptor
    return item.payload != descriptor.new_payload() or item.answer_key != descriptor.new_answer_key()


def preview_format_change(item: AssessmentItem, new_tag: Union[FormatTag, str]) -> FormatChangeNotice:
    target = describe(new_tag)
    return FormatChangeNotice(
        from_tag=item.format_tag,
        to_tag=target.tag,
        discards_content=target.tag is not item.format_tag and has_authored_content(item),
        discarded_payload=item.payload.model_dump(mode="json", by_alias=True),
        discarded_answer_key=item.answer_key.model_dump(mode="json", by_alias=True),
    )


def change_format(
    item: AssessmentItem,
    new_tag: Union[FormatTag, str],
    confirm: bool = False,
) -> AssessmentItem:
    """Switch formats, resetting payload and answer key to the new format's default.

    Authored content is never carried across formats. Discarding it requires
    ``confirm=True``; otherwise :class:`FormatChangeNotConfirmed` is raised with
    the notice describing what would be lost.
    """

    _ensure_editable(item)
    notice = preview_format_change(item, new_tag)
    if notice.to_tag is item.format_tag:
        return item
    if notice.discards_content and not confirm:
        raise FormatChangeNotConfirmed(notice)
    if notice.discards_content:
        logger.warning(
            "Item %s: format %s -> %s discarded payload %s and answer key %s",
            item.id,
            notice.from_tag.value,
            notice.to_tag.value,
            notice.discarded_payload,
            notice.discarded_answer_key,
        )
    target = describe(notice.to_tag)
    return _substitute(
        item,
        format_tag=target.tag,
        payload=target.new_payload(),
        answer_key=target.new_answer_key(),
    )


def apply(
    item: AssessmentItem,
    partial_payload: Partial = None,
    partial_answer: Partial = None,
) -> AssessmentItem:
    """Merge payload/answer edits and return the new item.

    Partials are mappings of top-level fields (snake_case or camelCase) merged
    over the current shapes, or complete model instances. The merged pair must
    be canonical for the item's format; otherwise :class:`ItemShapeError` is
    raised and ``item`` remains the current value.
    """

    _ensure_editable(item)
    descriptor = item.descriptor
    payload = _merge(descriptor.payload_model, item.payload, partial_payload, "payload")
    answer_key = _merge(descriptor.answer_model, item.answer_key, partial_answer, "answer key")
    problems = descriptor.check_shape(payload, answer_key)
    if problems:
        raise ItemShapeError(f"{descriptor.tag.value} edit rejected: {problems[0]}", problems)
    if _limits_changed(item.payload, payload) and not get_settings().bowtie_limits_configurable:
        raise ItemShapeError("bow-tie limits are fixed on this platform", ["payload.limits"])
    return _substitute(item, payload=payload, answer_key=answer_key)


def update_metadata(item: AssessmentItem, **fields: Any) -> AssessmentItem:
    """Change stem, rationale, tags and other non-format fields."""

    _ensure_editable(item)
    blocked = set(fields) & (_CONTENT_FIELDS | _LIFECYCLE_FIELDS)
    if blocked:
        raise ItemShapeError(f"fields {sorted(blocked)} cannot be changed through metadata updates")
    return _substitute(item, **fields)


def mark_ready(item: AssessmentItem) -> AssessmentItem:
    """Freeze a complete item for delivery."""

    from qbank.validator import validate

    if item.is_frozen:
        return item
    errors = validate(item)
    if errors:
        logger.info(
            "Item %s not ready: %s", item.id, ", ".join(error.field for error in errors)
        )
        raise NotReadyError(errors)
    return _substitute(item, status=ItemStatus.READY)


def reopen(item: AssessmentItem) -> AssessmentItem:
    """Start a new edit session on a ready item."""

    if not item.is_frozen:
        return item
    return _substitute(item, status=ItemStatus.DRAFT)


def _ensure_editable(item: AssessmentItem) -> None:
    if item.is_frozen:
        raise ItemFrozenError(item.id)


def _merge(model: Type[BaseModel], current: BaseModel, partial: Partial, label: str) -> BaseModel:
    if partial is None:
        return current
    if isinstance(partial, BaseModel):
        if not isinstance(partial, model):
            raise ItemShapeError(
                f"{label} must be {model.__name__}, got {type(partial).__name__}"
            )
        return partial.model_copy(deep=True)
    if not isinstance(partial, Mapping):
        raise ItemShapeError(f"{label} edit must be a mapping or {model.__name__}")

    names = {}
    for name, field in model.model_fields.items():
        names[name] = name
        if field.alias:
            names[field.alias] = name
    unknown = [key for key in partial if key not in names]
    if unknown:
        raise ItemShapeError(f"{label} has no field(s) {unknown} in {model.__name__}")

    data = current.model_dump()
    for key, value in partial.items():
        data[names[key]] = value
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ItemShapeError(f"{label} edit rejected", validation_messages(exc)) from exc


def _limits_changed(current: BaseModel, payload: BaseModel) -> bool:
    return isinstance(payload, BowtiePayload) and payload.limits != getattr(current, "limits", None)


def _substitute(item: AssessmentItem, **changes: Any) -> AssessmentItem:
    values = {name: getattr(item, name) for name in AssessmentItem.model_fields}
    values.update(changes)
    values["version"] = item.version + 1
    try:
        return AssessmentItem.model_validate(values)
    except ValidationError as exc:
        raise ItemShapeError("item update rejected", validation_messages(exc)) from exc


def validation_messages(exc: ValidationError) -> List[str]:
    return [
        f"{'.'.join(str(part) for part in error['loc']) or 'item'}: {error['msg']}"
        for error in exc.errors()
    ]
