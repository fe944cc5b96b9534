"""Case-study orchestration over the six Clinical Judgment Measurement Model steps.

A case study is one parent item whose payload holds six single-best-answer
sub-items, one per CJMM step. Authors may jump between steps freely; during
delivery learners move through them in order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Tuple

from qbank.schemas.formats import CASE_STUDY_STEP_KEYS, CaseStudyAnswer, CaseStudyPayload
from qbank.schemas.results import ScoreResult
from qbank.scoring import as_index, single_best


@dataclass(frozen=True)
class JudgmentStep:
    number: int
    name: str
    description: str


CJMM_STEPS: Tuple[JudgmentStep, ...] = (
    JudgmentStep(1, "Recognize Cues", "Pick relevant vs irrelevant data"),
    JudgmentStep(2, "Analyze Cues", "Interpret meaning of labs, ABGs and assessment findings"),
    JudgmentStep(3, "Prioritize Hypotheses", "Identify the most likely condition(s)"),
    JudgmentStep(4, "Generate Solutions", "Decide potential nursing actions"),
    JudgmentStep(5, "Take Action", "Choose the best interventions"),
    JudgmentStep(6, "Evaluate Outcomes", "Expected vs unexpected outcomes"),
)
FIRST_STEP = CASE_STUDY_STEP_KEYS[0]
LAST_STEP = CASE_STUDY_STEP_KEYS[-1]


def step_info(number: int) -> JudgmentStep:
    if number not in CASE_STUDY_STEP_KEYS:
        raise ValueError(f"case study steps run {FIRST_STEP}-{LAST_STEP}, got {number}")
    return CJMM_STEPS[number - 1]


def steps_completed(payload: CaseStudyPayload) -> int:
    """Number of steps whose question text has been written."""

    return payload.steps_completed


def incomplete_steps(payload: CaseStudyPayload) -> List[int]:
    return [key for key, step in payload.steps.items() if not step.question.strip()]


class CaseStudySession:
    """Active-step cursor for one authoring or delivery session.

    With ``sequential=True`` (delivery) the cursor may revisit earlier steps
    but never skip past the furthest step reached.
    """

    def __init__(self, sequential: bool = False, start: int = FIRST_STEP) -> None:
        step_info(start)
        self.sequential = sequential
        self._active = start
        self._furthest = start

    @property
    def active_step(self) -> int:
        return self._active

    @property
    def active_info(self) -> JudgmentStep:
        return step_info(self._active)

    @property
    def furthest_step(self) -> int:
        return self._furthest

    def go_to(self, number: int) -> int:
        step_info(number)
        if self.sequential and number > self._furthest:
            raise ValueError(
                f"step {number} is not reachable yet; delivery proceeds one step at a time"
            )
        self._active = number
        return self._active

    def advance(self) -> int:
        if self._active < LAST_STEP:
            self._active += 1
            self._furthest = max(self._furthest, self._active)
        return self._active

    def back(self) -> int:
        if self._active > FIRST_STEP:
            self._active -= 1
        return self._active


def score_steps(payload: CaseStudyPayload, answer_key: CaseStudyAnswer, response: Any) -> ScoreResult:
    """Grade each step with the single-best-answer policy and sum the correct steps.

    The response maps step numbers to chosen option indices and must answer
    all six steps. A missing, unknown or repeated step number or an
    unreadable choice makes the whole response ungradable.
    """

    if not isinstance(response, Mapping):
        return ScoreResult.malformed(f"expected a mapping of step -> option index, got {type(response).__name__}")

    answers = {}
    for key, value in response.items():
        step = as_index(key)
        if step not in CASE_STUDY_STEP_KEYS:
            return ScoreResult.malformed(f"unknown case study step {key!r}")
        if step in answers:
            return ScoreResult.malformed(f"case study step {step} is answered more than once", [f"step {step}"])
        answers[step] = value

    missing = [f"step {step}" for step in payload.steps if answers.get(step) is None]
    if missing:
        return ScoreResult.malformed(f"no answer for {', '.join(missing)}", missing)

    matched: List[str] = []
    unmatched: List[str] = []
    for step, sub_item in payload.steps.items():
        part = f"step {step}"
        result = single_best(len(sub_item.options), answer_key.steps[step], answers[step], part)
        if result.ungradable:
            return ScoreResult.malformed(result.reason or part, [part])
        (matched if result.is_correct else unmatched).append(part)
    return ScoreResult.from_parts(matched, unmatched)
