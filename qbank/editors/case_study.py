"""Case-study editor: case narrative plus one sub-question per clinical judgment step."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional, Union

from qbank.case_study import CaseStudySession, JudgmentStep, step_info, steps_completed
from qbank.editors.base import FormatEditor, check_position, rebase_index, replaced, without
from qbank.exceptions import ItemShapeError
from qbank.models.enums import FormatTag

MIN_STEP_OPTIONS = 2


class CaseStudyEditor(FormatEditor):
    """Step edits target the session's active step unless ``step`` is given."""

    tag = FormatTag.CASE_STUDY

    def __init__(self, item, session: Optional[CaseStudySession] = None):
        super().__init__(item)
        self.session = session or CaseStudySession()

    @property
    def active_step(self) -> int:
        return self.session.active_step

    @property
    def active_info(self) -> JudgmentStep:
        return self.session.active_info

    @property
    def steps_completed(self) -> int:
        return steps_completed(self.payload)

    def go_to(self, step: int) -> int:
        return self.session.go_to(step)

    def next_step(self) -> int:
        return self.session.advance()

    def previous_step(self) -> int:
        return self.session.back()

    def set_title(self, title: str):
        return self._commit({"title": title})

    def set_description(self, text: str):
        return self._commit({"description": text})

    def set_case_data(self, data: Union[str, Dict[str, Any]]):
        """Set the shared case record; JSON text is parsed into a mapping."""

        if isinstance(data, str):
            try:
                data = json.loads(data) if data.strip() else {}
            except ValueError as exc:
                raise ItemShapeError(f"case data is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ItemShapeError("case data must be a JSON object")
        return self._commit({"case_data": data})

    def _steps(self) -> Dict[int, dict]:
        return {number: step.model_dump() for number, step in self.payload.steps.items()}

    def _target(self, step: Optional[int]) -> int:
        number = self.active_step if step is None else step
        step_info(number)
        return number

    def set_question(self, text: str, step: Optional[int] = None):
        number = self._target(step)
        steps = self._steps()
        steps[number]["question"] = text
        return self._commit({"steps": steps})

    def set_option(self, index: int, text: str, step: Optional[int] = None):
        number = self._target(step)
        steps = self._steps()
        check_position(index, len(steps[number]["options"]))
        steps[number]["options"] = replaced(steps[number]["options"], index, text)
        return self._commit({"steps": steps})

    def add_option(self, text: str = "", step: Optional[int] = None):
        number = self._target(step)
        steps = self._steps()
        steps[number]["options"] = steps[number]["options"] + [text]
        return self._commit({"steps": steps})

    def remove_option(self, index: int, step: Optional[int] = None):
        number = self._target(step)
        steps = self._steps()
        options = steps[number]["options"]
        check_position(index, len(options))
        if len(options) <= MIN_STEP_OPTIONS:
            raise ValueError(f"step {number} keeps at least {MIN_STEP_OPTIONS} options")
        steps[number]["options"] = without(options, index)
        answers = dict(self.answer_key.steps)
        answers[number] = rebase_index(answers[number], index)
        return self._commit({"steps": steps}, {"steps": answers})

    def set_correct(self, index: int, step: Optional[int] = None):
        number = self._target(step)
        check_position(index, len(self.payload.steps[number].options))
        answers = dict(self.answer_key.steps)
        answers[number] = index
        return self._commit(answer={"steps": answers})
