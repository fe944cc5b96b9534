from concurrent.futures import ThreadPoolExecutor

import pytest

from qbank import drafts
from qbank.grading import score, score_item, score_many
from qbank.registry import describe
from qbank.schemas.formats import (
    ChoiceSlot,
    ClozePayload,
    DosageAnswer,
    DosagePayload,
    HighlightPayload,
    IndexSetAnswer,
    MatrixAnswer,
    MatrixPayload,
    SlotAnswer,
)


@pytest.fixture
def dosage():
    return describe("dosage_calculation"), DosagePayload(unit="mL"), DosageAnswer(correct_value=5.5, tolerance=0.2)


@pytest.mark.parametrize("response, correct", [(5.6, True), (5.8, False), (5.7, True), (5.3, True), ("5.5", True), (5, False)])
def test_dosage_tolerance_is_inclusive(dosage, response, correct) -> None:
    result = score(*dosage, response)
    assert not result.ungradable
    assert result.is_correct is correct
    assert result.credit_fraction == (1.0 if correct else 0.0)


@pytest.mark.parametrize("response", ["five", None, float("nan"), float("inf"), True, [5.5]])
def test_dosage_rejects_non_numeric(dosage, response) -> None:
    result = score(*dosage, response)
    assert result.ungradable
    assert result.reason


def test_dosage_without_key_value_is_ungradable() -> None:
    result = score("dosage_calculation", {"unit": "mg"}, {"tolerance": 0}, 3)
    assert result.ungradable


def test_highlight_exact_set() -> None:
    payload = HighlightPayload(text="[a] {b}")
    key = IndexSetAnswer(indices=[0])
    assert score("highlight_text", payload, key, [0]).is_correct
    assert score("highlight_text", payload, key, [0]).credit_fraction == 1.0
    result = score("highlight_text", payload, key, [0, 1])
    assert not result.is_correct and not result.ungradable
    assert score("highlight_text", payload, key, [2]).ungradable


def test_matrix_missing_row_is_ungradable() -> None:
    payload = MatrixPayload(rows=["r1", "r2", "r3", "r4"], columns=["a", "b", "c"])
    key = MatrixAnswer(selections=[0, 1, 2, 0])
    result = score("matrix_multiple_response", payload, key, [0, 1, 2])
    assert result.ungradable
    assert "row 3" in result.reason
    assert result.credit_fraction == 0.0

    partial = score("matrix_multiple_response", payload, key, [0, 1, 0, 1])
    assert partial.is_partially_correct
    assert partial.credit_fraction == 0.5
    assert partial.matched == ["row 0", "row 1"]
    assert partial.unmatched == ["row 2", "row 3"]

    by_row = score("matrix_multiple_response", payload, key, {"0": 0, "1": 1, "2": 2, "3": 0})
    assert by_row.is_correct

    assert score("matrix_multiple_response", payload, key, [0, 1, 2, 5]).ungradable


def test_slot_formats_aggregate_per_slot() -> None:
    payload = ClozePayload(text="[DROPDOWN] [DROPDOWN]", slots=[ChoiceSlot(), ChoiceSlot()])
    key = SlotAnswer(choices=[1, 2])
    result = score("cloze_dropdown", payload, key, [1, 0])
    assert result.is_partially_correct
    assert result.credit_fraction == 0.5
    assert score("cloze_dropdown", payload, key, [1, None]).ungradable
    assert score("cloze_dropdown", payload, key, "1,2").ungradable


def test_select_n_requires_exactly_n() -> None:
    descriptor = describe("select_n")
    payload = {"options": ["a", "b", "c", "d", "e"], "selectCount": 3}
    key = {"indices": [0, 2, 4]}
    assert score(descriptor, payload, key, [4, 2, 0]).is_correct
    assert not score(descriptor, payload, key, [0, 1, 2]).is_correct
    assert score(descriptor, payload, key, [0, 2]).ungradable
    assert score(descriptor, payload, key, [0, 0, 2]).ungradable


def test_sata_and_multiple_choice() -> None:
    sata = ({"options": ["a", "b", "c", "d"]}, {"indices": [1, 3]})
    assert score("sata", *sata, [3, 1]).is_correct
    assert not score("sata", *sata, [1]).is_correct
    assert not score("sata", *sata, []).is_correct

    mc = ({"options": ["a", "b", "c", "d"]}, {"index": 2})
    assert score("multiple_choice", *mc, 2).is_correct
    assert score("multiple_choice", *mc, "2").is_correct
    assert not score("multiple_choice", *mc, 1).is_correct
    assert score("multiple_choice", *mc, 4).ungradable
    assert score("multiple_choice", *mc, False).ungradable


def test_ranking_needs_full_permutation() -> None:
    payload, key = {"items": ["a", "b", "c"]}, {"order": [2, 0, 1]}
    assert score("ranking", payload, key, [2, 0, 1]).is_correct
    wrong = score("ranking", payload, key, [2, 1, 0])
    assert not wrong.is_correct and not wrong.ungradable
    assert wrong.credit_fraction == 0.0
    assert wrong.matched == ["position 1"]
    assert score("ranking", payload, key, [2, 0]).ungradable
    assert score("ranking", payload, key, [2, 0, 0]).ungradable


def test_bowtie_partial_credit() -> None:
    payload = {
        "findings": ["f0", "f1", "f2", "f3"],
        "conditions": ["c0", "c1", "c2"],
        "actions": ["a0", "a1", "a2", "a3"],
    }
    key = {"findings": [0, 1], "conditions": [2], "actions": [1, 3]}
    perfect = score("bowtie", payload, key, {"findings": [1, 0], "conditions": [2], "actions": [3, 1]})
    assert perfect.is_correct and perfect.credit_fraction == 1.0

    partial = score("bowtie", payload, key, {"findings": [0, 2], "conditions": [2], "actions": [1]})
    assert partial.is_partially_correct
    assert partial.credit_fraction == pytest.approx(3 / 5)
    assert "findings[1]" in partial.unmatched

    over_limit = score("bowtie", payload, key, {"findings": [0, 1, 2], "conditions": [2], "actions": [1, 3]})
    assert over_limit.ungradable
    assert score("bowtie", payload, key, {"findings": [0, 1], "conditions": [2]}).ungradable


def test_trend_uses_single_best_answer() -> None:
    payload = {"panels": {"vitals": {"HR": [90, 120]}}, "options": ["a", "b", "c", "d"]}
    assert score("trend_item", payload, {"index": 3}, 3).is_correct


def test_case_study_per_step_credit() -> None:
    descriptor = describe("case_study")
    payload = descriptor.new_payload()
    key = {"steps": {1: 0, 2: 1, 3: 2, 4: 3, 5: 0, 6: 1}}
    all_right = {1: 0, 2: 1, 3: 2, 4: 3, 5: 0, 6: 1}
    assert score(descriptor, payload, key, all_right).is_correct

    four_right = {"1": 0, "2": 1, "3": 2, "4": 3, "5": 1, "6": 0}
    result = score(descriptor, payload, key, four_right)
    assert result.credit_fraction == pytest.approx(4 / 6)
    assert result.unmatched == ["step 5", "step 6"]

    unanswered = score(descriptor, payload, key, {1: 0, 2: 1, 3: 2, 4: 3, 5: 0})
    assert unanswered.ungradable
    assert unanswered.reason == "no answer for step 6"
    assert unanswered.credit_fraction == 0.0
    assert score(descriptor, payload, key, {**all_right, 6: None}).ungradable

    repeated = score(descriptor, payload, key, {**all_right, "1": 2})
    assert repeated.ungradable
    assert "step 1" in repeated.reason

    assert score(descriptor, payload, key, {7: 0}).ungradable
    assert score(descriptor, payload, key, {1: "x"}).ungradable
    assert score(descriptor, payload, key, [0, 1]).ungradable


def test_unknown_format_and_bad_keys_are_ungradable() -> None:
    assert score("essay", {}, {}, "text").ungradable
    assert score("multiple_choice", {"options": ["a", "b"]}, {"index": 9}, 0).ungradable
    assert score("multiple_choice", {"choices": []}, {"index": 0}, 0).ungradable


def test_score_item_fills_points() -> None:
    item = drafts.initialize("ngn", "matrix_multiple_response", points=3)
    item = drafts.apply(item, partial_answer={"selections": [0, 1]})
    result = score_item(item, [0, 0])
    assert result.credit_fraction == 0.5
    assert result.points_earned == 1.5
    assert score_item(item, [0]).points_earned is None


def test_score_many_with_executor() -> None:
    args = ("multiple_choice", {"options": ["a", "b", "c"]}, {"index": 1})
    responses = [1, 0, "x", 1]
    expected = [True, False, False, True]
    assert [result.is_correct for result in score_many(*args, responses)] == expected
    with ThreadPoolExecutor(max_workers=2) as executor:
        results = score_many(*args, responses, executor=executor)
    assert [result.is_correct for result in results] == expected
    assert results[2].ungradable


@pytest.mark.parametrize("response", ["--1", "-+1", "²", "٣", "1" * 5000, " 2 2 "])
def test_unreadable_index_text_is_ungradable(response) -> None:
    mc = ({"options": ["a", "b", "c", "d"]}, {"index": 2})
    result = score("multiple_choice", *mc, response)
    assert result.ungradable
    assert result.credit_fraction == 0.0


def test_matrix_rows_answered_twice_are_ungradable() -> None:
    payload = {"rows": ["r1", "r2"], "columns": ["a", "b"]}
    key = {"selections": [0, 1]}
    assert score("matrix_multiple_response", payload, key, {"0": 0, "1": 1}).is_correct
    assert score("matrix_multiple_response", payload, key, {"0": 0, 0: 1, 1: 1}).ungradable
    assert score("matrix_multiple_response", payload, key, {"1" * 5000: 0}).ungradable


@pytest.mark.parametrize("response", ["1e1000000", "-1e1000000", "1E+999999999"])
def test_dosage_out_of_range_numbers_are_ungradable(dosage, response) -> None:
    result = score(*dosage, response)
    assert result.ungradable
    assert result.reason


@pytest.mark.parametrize("key", [{"correctValue": float("nan")}, {"correctValue": 5.5, "tolerance": float("inf")}])
def test_dosage_non_finite_key_is_ungradable(key) -> None:
    assert score("dosage_calculation", {"unit": "mg"}, key, 5.5).ungradable
