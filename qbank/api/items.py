"""Item authoring and grading API."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from qbank import drafts, grading, validator
from qbank.db import get_db
from qbank.exceptions import (
    FormatChangeNotConfirmed,
    ItemFrozenError,
    ItemNotFoundError,
    ItemShapeError,
    NotReadyError,
    QbankError,
    StaleItemError,
    UnknownFormatError,
)
from qbank.models import Classification, Difficulty, ItemStatus
from qbank.registry import all_descriptors, resolve_tag
from qbank.schemas.items import AssessmentItem, DraftRequest, FormatChangeRequest
from qbank.services.items import ItemService

router = APIRouter()
service = ItemService()


# === Schemas ===

class _Request(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ItemUpdate(_Request):
    """Partial edit of a stored item, applied on top of ``expected_version``."""

    expected_version: int
    stem: Optional[str] = None
    rationale: Optional[str] = None
    tags: Optional[List[str]] = None
    category_id: Optional[int] = None
    points: Optional[int] = Field(default=None, ge=0)
    difficulty: Optional[Difficulty] = None
    subject: Optional[str] = None
    lesson: Optional[str] = None
    client_need_area: Optional[str] = None
    subcategory: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None
    answer_key: Optional[Dict[str, Any]] = None


class VersionRequest(_Request):
    expected_version: int


class ScoreRequest(_Request):
    response: Any = None


# === Error mapping ===

def _http_error(exc: QbankError) -> HTTPException:
    if isinstance(exc, ItemNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, UnknownFormatError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, (StaleItemError, ItemFrozenError, FormatChangeNotConfirmed)):
        code = status.HTTP_409_CONFLICT
    elif isinstance(exc, (ItemShapeError, NotReadyError)):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    else:
        code = status.HTTP_400_BAD_REQUEST
    detail = exc.to_dict()
    if isinstance(exc, FormatChangeNotConfirmed):
        detail["discardedPayload"] = exc.notice.discarded_payload
        detail["discardedAnswerKey"] = exc.notice.discarded_answer_key
    return HTTPException(status_code=code, detail=detail)


def _store(db: Session, item: AssessmentItem, expected_version: int) -> Dict[str, Any]:
    try:
        return service.save(db, item, expected_version).to_envelope()
    except QbankError as exc:
        raise _http_error(exc) from exc


def _load(db: Session, item_id: int) -> AssessmentItem:
    try:
        return service.get(db, item_id)
    except QbankError as exc:
        raise _http_error(exc) from exc


# === Routes ===

@router.get("/formats")
async def list_formats():
    """Registry of supported question formats."""
    return {"formats": [descriptor.summary() for descriptor in all_descriptors()]}


@router.post("/items/draft", status_code=status.HTTP_201_CREATED)
async def create_draft(data: DraftRequest, db: Session = Depends(get_db)):
    """Start and store an empty draft of the requested format."""
    try:
        item = drafts.initialize(data.classification, data.format_tag)
        return service.create(db, item).to_envelope()
    except QbankError as exc:
        raise _http_error(exc) from exc


@router.post("/items", status_code=status.HTTP_201_CREATED)
async def create_item(envelope: Dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    """Store a complete item envelope (e.g. an import)."""
    envelope = {key: value for key, value in envelope.items() if key not in ("id", "status", "version")}
    try:
        resolve_tag(envelope.get("formatTag", envelope.get("format_tag")))
    except UnknownFormatError as exc:
        raise _http_error(exc) from exc
    try:
        item = AssessmentItem.model_validate(envelope)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=drafts.validation_messages(exc),
        ) from exc
    return service.create(db, item).to_envelope()


@router.get("/items")
async def list_items(
    format_tag: Optional[str] = None,
    classification: Optional[Classification] = None,
    status_filter: Optional[ItemStatus] = Query(default=None, alias="status"),
    category_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    try:
        tag = resolve_tag(format_tag) if format_tag else None
    except UnknownFormatError as exc:
        raise _http_error(exc) from exc
    items = service.list(
        db, format_tag=tag, classification=classification, status=status_filter, category_id=category_id
    )
    return {"items": [item.to_envelope() for item in items], "total": len(items)}


@router.get("/items/{item_id}")
async def get_item(item_id: int, db: Session = Depends(get_db)):
    return _load(db, item_id).to_envelope()


@router.put("/items/{item_id}")
async def update_item(item_id: int, data: ItemUpdate, db: Session = Depends(get_db)):
    """Apply metadata and payload/answer edits through the draft model."""
    item = _load(db, item_id)
    fields = data.model_dump(exclude_unset=True, exclude={"expected_version", "payload", "answer_key"})
    try:
        if fields:
            item = drafts.update_metadata(item, **fields)
        if data.payload is not None or data.answer_key is not None:
            item = drafts.apply(item, data.payload, data.answer_key)
    except QbankError as exc:
        raise _http_error(exc) from exc
    return _store(db, item, data.expected_version)


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(item_id: int, db: Session = Depends(get_db)):
    try:
        service.delete(db, item_id)
    except QbankError as exc:
        raise _http_error(exc) from exc


@router.post("/items/{item_id}/format")
async def change_item_format(item_id: int, data: FormatChangeRequest, db: Session = Depends(get_db)):
    """Switch format; authored content is discarded only with ``confirm``."""
    item = _load(db, item_id)
    expected = data.expected_version if data.expected_version is not None else item.version
    try:
        item = drafts.change_format(item, data.format_tag, confirm=data.confirm)
    except QbankError as exc:
        raise _http_error(exc) from exc
    return _store(db, item, expected)


@router.get("/items/{item_id}/validation")
async def validate_item(item_id: int, db: Session = Depends(get_db)):
    errors = validator.validate(_load(db, item_id))
    return {
        "ready": not errors,
        "errors": [error.model_dump(by_alias=True) for error in errors],
    }


@router.post("/items/{item_id}/publish")
async def publish_item(item_id: int, data: VersionRequest, db: Session = Depends(get_db)):
    try:
        item = drafts.mark_ready(_load(db, item_id))
    except QbankError as exc:
        raise _http_error(exc) from exc
    return _store(db, item, data.expected_version)


@router.post("/items/{item_id}/reopen")
async def reopen_item(item_id: int, data: VersionRequest, db: Session = Depends(get_db)):
    item = drafts.reopen(_load(db, item_id))
    return _store(db, item, data.expected_version)


@router.post("/items/{item_id}/score")
async def score_response(item_id: int, data: ScoreRequest, db: Session = Depends(get_db)):
    """Grade a learner response against the stored item."""
    result = grading.score_item(_load(db, item_id), data.response)
    return result.model_dump(by_alias=True)
