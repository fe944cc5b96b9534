"""Assessment item record exchanged with the item store and authoring client.

The envelope is generic (``payload`` and ``answerKey`` are plain JSON on the
wire) but a validated :class:`AssessmentItem` always holds the payload and
answer-key models its ``format_tag`` mandates.
"""

from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, SerializeAsAny, model_validator
from pydantic.alias_generators import to_camel

from qbank.models.enums import Classification, Difficulty, FormatTag, ItemStatus
from qbank.registry import describe


class AssessmentItem(BaseModel):
    """Immutable item value; edits produce a new value through ``qbank.drafts``."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    id: Optional[Union[int, str]] = None
    classification: Classification
    format_tag: FormatTag
    stem: str = ""
    payload: SerializeAsAny[BaseModel]
    answer_key: SerializeAsAny[BaseModel]
    rationale: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    category_id: Optional[int] = None

    points: int = Field(default=1, ge=0)
    difficulty: Difficulty = Difficulty.MEDIUM
    subject: Optional[str] = None
    lesson: Optional[str] = None
    client_need_area: Optional[str] = None
    subcategory: Optional[str] = None

    status: ItemStatus = ItemStatus.DRAFT
    version: int = Field(default=1, ge=1)

    @model_validator(mode="before")
    @classmethod
    def _resolve_shapes(cls, data: Any) -> Any:
        """Parse raw payload/answer JSON with the models of the item's format."""

        if not isinstance(data, dict):
            return data
        values = dict(data)
        tag_key = "format_tag" if "format_tag" in values else "formatTag"
        if values.get(tag_key) is None:
            return values
        descriptor = describe(values[tag_key])
        values[tag_key] = descriptor.tag
        for name, alias, model in (
            ("payload", "payload", descriptor.payload_model),
            ("answer_key", "answerKey", descriptor.answer_model),
        ):
            key = name if name in values else alias
            raw = values.get(key)
            if isinstance(raw, dict):
                values[key] = model.model_validate(raw)
        return values

    @model_validator(mode="after")
    def _check_shapes(self) -> "AssessmentItem":
        problems = describe(self.format_tag).check_shape(self.payload, self.answer_key)
        if problems:
            raise ValueError("; ".join(problems))
        return self

    @property
    def descriptor(self):
        return describe(self.format_tag)

    @property
    def is_frozen(self) -> bool:
        return self.status is ItemStatus.READY

    def to_envelope(self) -> dict:
        """JSON-ready envelope with camelCase keys."""

        return self.model_dump(mode="json", by_alias=True)


class DraftRequest(BaseModel):
    """Request to start a new item of a given classification and format."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    classification: Classification
    format_tag: str


class FormatChangeRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    format_tag: str
    confirm: bool = False
    expected_version: Optional[int] = None
