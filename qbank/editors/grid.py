"""Matrix / grid editor."""

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

MIN_COLUMNS = 2


class MatrixEditor(FormatEditor):
    """Rows of statements judged against a fixed set of response columns."""

    tag = FormatTag.MATRIX_MULTIPLE_RESPONSE

    @property
    def rows(self) -> List[str]:
        return list(self.payload.rows)

    @property
    def columns(self) -> List[str]:
        return list(self.payload.columns)

    @property
    def selections(self) -> List[Optional[int]]:
        return list(self.answer_key.selections)

    def set_row(self, index: int, text: str):
        check_position(index, len(self.rows), "row")
        return self._commit({"rows": replaced(self.rows, index, text)})

    def add_row(self, text: Optional[str] = None):
        rows = self.rows
        label = text if text is not None else f"Option {len(rows) + 1}"
        return self._commit({"rows": rows + [label]}, {"selections": self.selections + [None]})

    def remove_row(self, index: int):
        rows = self.rows
        check_position(index, len(rows), "row")
        if len(rows) == 1:
            raise ValueError("a matrix keeps at least one row")
        return self._commit({"rows": without(rows, index)}, {"selections": without(self.selections, index)})

    def set_column(self, index: int, text: str):
        check_position(index, len(self.columns), "column")
        return self._commit({"columns": replaced(self.columns, index, text)})

    def add_column(self, text: Optional[str] = None):
        columns = self.columns
        label = text if text is not None else f"Response {len(columns) + 1}"
        return self._commit({"columns": columns + [label]})

    def remove_column(self, index: int):
        """Drop a column; rows that selected it become unanswered."""

        columns = self.columns
        check_position(index, len(columns), "column")
        if len(columns) <= MIN_COLUMNS:
            raise ValueError(f"a matrix keeps at least {MIN_COLUMNS} columns")
        return self._commit(
            {"columns": without(columns, index)},
            {"selections": [rebase_optional(cell, index) for cell in self.selections]},
        )

    def set_cell(self, row: int, column: Optional[int]):
        check_position(row, len(self.rows), "row")
        if column is not None:
            check_position(column, len(self.columns), "column")
        return self._commit(answer={"selections": replaced(self.selections, row, column)})
