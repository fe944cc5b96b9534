"""Item store service.

Converts between the ``qbank_items`` table and :class:`AssessmentItem` values
and guards saves with an optimistic version check.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from qbank.exceptions import ItemNotFoundError, ItemShapeError, StaleItemError
from qbank.models import Classification, FormatTag, ItemStatus, QbankItem
from qbank.schemas.items import AssessmentItem

logger = logging.getLogger(__name__)


class ItemService:
    """CRUD over stored items."""

    def _to_item(self, row: QbankItem) -> AssessmentItem:
        try:
            return AssessmentItem.model_validate(
                {
                    "id": row.id,
                    "classification": row.classification,
                    "format_tag": row.format_tag,
                    "stem": row.stem or "",
                    "payload": row.payload_json or {},
                    "answer_key": row.answer_key_json or {},
                    "rationale": row.rationale,
                    "tags": row.tags_json or [],
                    "category_id": row.category_id,
                    "points": row.points,
                    "difficulty": row.difficulty,
                    "subject": row.subject,
                    "lesson": row.lesson,
                    "client_need_area": row.client_need_area,
                    "subcategory": row.subcategory,
                    "status": row.status,
                    "version": row.version,
                }
            )
        except ValidationError as exc:
            raise ItemShapeError(f"stored item {row.id} does not match its format", [str(exc)]) from exc

    def _write(self, row: QbankItem, item: AssessmentItem) -> None:
        row.classification = item.classification
        row.format_tag = item.format_tag
        row.stem = item.stem
        row.payload_json = item.payload.model_dump(mode="json", by_alias=True)
        row.answer_key_json = item.answer_key.model_dump(mode="json", by_alias=True)
        row.rationale = item.rationale
        row.tags_json = list(item.tags)
        row.category_id = item.category_id
        row.points = item.points
        row.difficulty = item.difficulty
        row.subject = item.subject
        row.lesson = item.lesson
        row.client_need_area = item.client_need_area
        row.subcategory = item.subcategory
        row.status = item.status

    def _row(self, db: Session, item_id: int) -> QbankItem:
        row = db.get(QbankItem, item_id)
        if not row:
            raise ItemNotFoundError(item_id)
        return row

    def create(self, db: Session, item: AssessmentItem) -> AssessmentItem:
        row = QbankItem(version=1)
        self._write(row, item)
        db.add(row)
        db.commit()
        db.refresh(row)
        logger.info("Created item %s (%s)", row.id, row.format_tag.value)
        return self._to_item(row)

    def get(self, db: Session, item_id: int) -> AssessmentItem:
        return self._to_item(self._row(db, item_id))

    def list(
        self,
        db: Session,
        format_tag: Optional[FormatTag] = None,
        classification: Optional[Classification] = None,
        status: Optional[ItemStatus] = None,
        category_id: Optional[int] = None,
    ) -> List[AssessmentItem]:
        query = db.query(QbankItem)
        if format_tag is not None:
            query = query.filter(QbankItem.format_tag == format_tag)
        if classification is not None:
            query = query.filter(QbankItem.classification == classification)
        if status is not None:
            query = query.filter(QbankItem.status == status)
        if category_id is not None:
            query = query.filter(QbankItem.category_id == category_id)
        rows: Iterable[QbankItem] = query.order_by(QbankItem.id.asc()).all()
        return [self._to_item(row) for row in rows]

    def save(self, db: Session, item: AssessmentItem, expected_version: int) -> AssessmentItem:
        """Store ``item`` over the row it was loaded from.

        ``expected_version`` is the stored version the edits started from; a
        row saved by someone else in the meantime raises :class:`StaleItemError`.
        """

        if item.id is None:
            raise ItemNotFoundError(None)
        row = self._row(db, int(item.id))
        if row.version != expected_version:
            raise StaleItemError(item.id, expected_version, row.version)
        self._write(row, item)
        row.version = expected_version + 1
        db.commit()
        db.refresh(row)
        logger.info("Saved item %s at version %s", row.id, row.version)
        return self._to_item(row)

    def delete(self, db: Session, item_id: int) -> None:
        row = self._row(db, item_id)
        db.delete(row)
        db.commit()
        logger.info("Deleted item %s", item_id)
