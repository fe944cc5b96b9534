"""Bow-tie editor: findings, most likely condition and nursing actions."""

from __future__ import annotations

from typing import List

from qbank.config import get_settings
from qbank.editors.base import (
    FormatEditor,
    check_position,
    rebase_indices,
    replaced,
    toggled,
    without,
)
from qbank.exceptions import QbankError
from qbank.models.enums import BowtiePool, FormatTag


def _pool_name(pool) -> str:
    return BowtiePool(pool).value


class BowtieEditor(FormatEditor):
    tag = FormatTag.BOWTIE

    def options(self, pool) -> List[str]:
        return self.payload.pool(_pool_name(pool))

    def correct(self, pool) -> List[int]:
        return self.answer_key.pool(_pool_name(pool))

    def limit(self, pool) -> int:
        return self.payload.limit(_pool_name(pool))

    def set_option(self, pool, index: int, text: str):
        name = _pool_name(pool)
        options = self.options(name)
        check_position(index, len(options))
        return self._commit({name: replaced(options, index, text)})

    def add_option(self, pool, text: str = ""):
        name = _pool_name(pool)
        return self._commit({name: self.options(name) + [text]})

    def remove_option(self, pool, index: int):
        name = _pool_name(pool)
        options = self.options(name)
        check_position(index, len(options))
        if len(options) <= self.limit(name):
            raise ValueError(f"{name} needs at least {self.limit(name)} options")
        return self._commit(
            {name: without(options, index)},
            {name: rebase_indices(self.correct(name), index)},
        )

    def toggle_correct(self, pool, index: int) -> bool:
        """Toggle an option in the key; returns False when the pool is already at its limit."""

        name = _pool_name(pool)
        check_position(index, len(self.options(name)))
        chosen = self.correct(name)
        if index not in chosen and len(chosen) >= self.limit(name):
            return False
        self._commit(answer={name: toggled(chosen, index)})
        return True

    def set_limit(self, pool, count: int):
        """Override the pool's selection limit for this item; the key keeps its first ``count`` picks."""

        if not get_settings().bowtie_limits_configurable:
            raise QbankError("bow-tie limits are fixed on this platform")
        name = _pool_name(pool)
        if count < 1 or count > len(self.options(name)):
            raise ValueError(f"{name} limit must be between 1 and {len(self.options(name))}")
        limits = self.payload.limits.model_dump()
        limits[name] = count
        return self._commit({"limits": limits}, {name: self.correct(name)[:count]})
