from __future__ import annotations

from typing import Any

from qbank.editors.base import FormatEditor
from qbank.exceptions import ItemShapeError
from qbank.models.enums import FormatTag
from qbank.scoring import as_decimal


def _number(value: Any, what: str) -> float:
    number = as_decimal(value)
    if number is None:
        raise ItemShapeError(f"{what} must be a number, got {value!r}")
    return float(number)


class DosageEditor(FormatEditor):
    tag = FormatTag.DOSAGE_CALCULATION

    def set_unit(self, unit: str):
        return self._commit({"unit": unit})

    def set_correct_value(self, value: Any):
        """Set the expected result; ``None`` or blank text clears it."""

        if value is None or (isinstance(value, str) and not value.strip()):
            return self._commit(answer={"correct_value": None})
        return self._commit(answer={"correct_value": _number(value, "correct value")})

    def set_tolerance(self, value: Any):
        return self._commit(answer={"tolerance": _number(value, "tolerance")})

    def set_decimal_places(self, places: int):
        return self._commit({"decimal_places": places})
