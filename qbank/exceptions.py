"""Exception hierarchy for item authoring and storage.

Grading never raises; malformed responses are reported through
``ScoreResult.ungradable`` instead.
"""

from typing import Any, List, Optional


class QbankError(Exception):
    """Base class for all q-bank errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": type(self).__name__, "message": self.message}


class UnknownFormatError(QbankError, ValueError):
    """Raised for a format tag outside the closed set."""

    def __init__(self, tag: Any):
        super().__init__(f"Unknown question format: {tag!r}")
        self.tag = tag


class ItemShapeError(QbankError, ValueError):
    """Raised when a payload/answer pair does not match its format's canonical shape."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["errors"] = list(self.errors)
        return result


class ItemFrozenError(QbankError):
    """Raised when editing an item that is ready for delivery."""

    def __init__(self, item_id: Any = None):
        super().__init__(f"Item {item_id if item_id is not None else '(unsaved)'} is ready for delivery; reopen it to edit")
        self.item_id = item_id


class FormatChangeNotConfirmed(QbankError):
    """Raised when a format switch would discard authored content without confirmation."""

    def __init__(self, notice: Any):
        super().__init__(
            f"Switching from {notice.from_tag.value} to {notice.to_tag.value} discards the current "
            "payload and answer key; pass confirm=True to proceed"
        )
        self.notice = notice


class NotReadyError(QbankError):
    """Raised when an incomplete item is marked ready for delivery."""

    def __init__(self, errors: List[Any]):
        super().__init__(f"Item has {len(errors)} missing or invalid field(s)")
        self.errors = errors

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["errors"] = [error.model_dump() for error in self.errors]
        return result


class ItemNotFoundError(QbankError):
    """Raised when a stored item does not exist."""

    def __init__(self, item_id: Any):
        super().__init__(f"Item {item_id} not found")
        self.item_id = item_id


class StaleItemError(QbankError):
    """Raised when saving over a newer stored version of an item."""

    def __init__(self, item_id: Any, expected: int, actual: int):
        super().__init__(
            f"Item {item_id} was saved from version {expected} but the stored version is {actual}"
        )
        self.item_id = item_id
        self.expected = expected
        self.actual = actual
