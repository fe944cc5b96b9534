"""Item store table."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from qbank.db import Base
from qbank.models.enums import Classification, Difficulty, FormatTag, ItemStatus


class QbankItem(Base):
    """Generic item envelope; payload and answer key are stored as format-specific JSON."""

    __tablename__ = "qbank_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    classification: Mapped[Classification] = mapped_column(Enum(Classification), nullable=False)
    format_tag: Mapped[FormatTag] = mapped_column(Enum(FormatTag), nullable=False, index=True)
    stem: Mapped[str] = mapped_column(Text, default="", nullable=False)
    payload_json: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    answer_key_json: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    rationale: Mapped[Optional[str]] = mapped_column(Text)
    tags_json: Mapped[List[str]] = mapped_column(JSON, default=list)
    category_id: Mapped[Optional[int]] = mapped_column(Integer, index=True)

    points: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    difficulty: Mapped[Difficulty] = mapped_column(
        Enum(Difficulty), default=Difficulty.MEDIUM, nullable=False
    )
    subject: Mapped[Optional[str]] = mapped_column(String(255))
    lesson: Mapped[Optional[str]] = mapped_column(String(255))
    client_need_area: Mapped[Optional[str]] = mapped_column(String(255))
    subcategory: Mapped[Optional[str]] = mapped_column(String(255))

    status: Mapped[ItemStatus] = mapped_column(
        Enum(ItemStatus), default=ItemStatus.DRAFT, nullable=False
    )
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
