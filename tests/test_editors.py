import pytest

from qbank import drafts
from qbank.config import get_settings
from qbank.editors import EDITORS, editor_for
from qbank.editors.bowtie import BowtieEditor
from qbank.editors.choice import MultipleChoiceEditor, SelectNEditor
from qbank.exceptions import ItemShapeError, QbankError
from qbank.models.enums import FormatTag


def _editor(tag: str):
    return editor_for(drafts.initialize("ngn", tag))


def test_every_format_has_an_editor() -> None:
    assert set(EDITORS) == set(FormatTag)
    for tag in FormatTag:
        assert _editor(tag.value).tag is tag


def test_editor_refuses_other_formats() -> None:
    with pytest.raises(ValueError):
        MultipleChoiceEditor(drafts.initialize("ngn", "sata"))


def test_multiple_choice_removal_rebases_answer() -> None:
    editor = _editor("multiple_choice")
    for idx, text in enumerate(["a", "b", "c", "d"]):
        editor.set_option(idx, text)
    editor.set_correct(3)
    editor.remove_option(1)
    assert editor.options == ["a", "c", "d"]
    assert editor.correct_index == 2

    editor.remove_option(2)
    assert editor.correct_index == 0
    with pytest.raises(ValueError):
        editor.remove_option(0)


def test_sata_toggle_and_rebase() -> None:
    editor = _editor("sata")
    editor.toggle_correct(1)
    editor.toggle_correct(3)
    editor.toggle_correct(1)
    editor.toggle_correct(2)
    assert editor.answer_key.indices == [2, 3]
    editor.remove_option(2)
    assert editor.answer_key.indices == [2]


def test_select_n_never_exceeds_n() -> None:
    editor = _editor("select_n")
    assert isinstance(editor, SelectNEditor)
    assert editor.select_count == 3
    assert all(editor.toggle_correct(idx) for idx in (0, 1, 2))
    assert editor.toggle_correct(3) is False
    assert editor.answer_key.indices == [0, 1, 2]

    editor.set_select_count(2)
    assert editor.answer_key.indices == [0, 1]
    assert editor.toggle_correct(3) is False
    assert editor.toggle_correct(1) is True
    assert editor.toggle_correct(3) is True
    assert editor.answer_key.indices == [0, 3]
    with pytest.raises(ValueError):
        editor.set_select_count(5)


def test_trend_panels_parse_json_text() -> None:
    editor = _editor("trend_item")
    editor.set_panel("vitals", '{"HR": [88, 104, 126]}')
    editor.set_panel("notes", "Patient restless at 0200")
    assert editor.payload.panels.vitals == {"HR": [88, 104, 126]}
    assert editor.payload.panels.notes == "Patient restless at 0200"
    with pytest.raises(ValueError):
        editor.set_panel("radiology", "x")


def test_matrix_rows_columns_and_cells() -> None:
    editor = _editor("matrix_multiple_response")
    editor.add_row()
    assert editor.rows == ["Option 1", "Option 2", "Option 3"]
    editor.add_column()
    assert editor.columns == ["Yes", "No", "Response 3"]
    editor.set_cell(0, 2)
    editor.set_cell(1, 1)
    editor.set_cell(2, 0)
    editor.remove_column(1)
    assert editor.selections == [1, None, 0]
    editor.remove_row(0)
    assert editor.selections == [None, 0]
    with pytest.raises(ValueError):
        editor.remove_column(0)


def test_bowtie_toggles_are_capped_per_pool() -> None:
    editor = _editor("bowtie")
    assert isinstance(editor, BowtieEditor)
    assert editor.toggle_correct("conditions", 0) is True
    assert editor.toggle_correct("conditions", 2) is False
    assert editor.toggle_correct("findings", 1) and editor.toggle_correct("findings", 3)
    assert editor.toggle_correct("findings", 0) is False
    editor.remove_option("findings", 1)
    assert editor.correct("findings") == [2]


def test_bowtie_limit_override(monkeypatch) -> None:
    editor = _editor("bowtie")
    editor.toggle_correct("actions", 0)
    editor.toggle_correct("actions", 1)
    editor.set_limit("actions", 1)
    assert editor.limit("actions") == 1
    assert editor.correct("actions") == [0]

    monkeypatch.setattr(get_settings(), "bowtie_limits_configurable", False)
    with pytest.raises(QbankError):
        editor.set_limit("findings", 3)


def test_cloze_text_drives_slots() -> None:
    editor = _editor("cloze_dropdown")
    editor.set_text("Give [DROPDOWN] via [DROPDOWN].")
    assert len(editor.slots) == 2
    assert editor.choices == [None, None]
    editor.set_slot_correct(1, 2)
    editor.add_slot_option(1)
    assert editor.slots[1].options[-1] == "Option 4"
    editor.remove_slot_option(1, 0)
    assert editor.choices == [None, 1]

    editor.remove_slot(0)
    assert editor.payload.text == "Give  via [DROPDOWN]."
    assert editor.choices == [1]
    editor.add_slot()
    assert editor.payload.text.count("[DROPDOWN]") == 2


def test_extended_response_and_drag_drop_slots() -> None:
    emr = _editor("extended_multiple_response")
    emr.set_context("Client with COPD exacerbation")
    emr.add_slot("Priority")
    emr.set_slot_option(0, 0, "Oxygen")
    assert emr.slots[0].options[0] == "Oxygen"

    drag = _editor("extended_drag_drop")
    drag.set_instructions("Drag each finding")
    drag.add_slot("Zone A")
    drag.set_slot_label(0, "Zone 1")
    assert drag.slots[0].label == "Zone 1"


def test_highlight_answer_follows_markup() -> None:
    editor = _editor("highlight_text")
    editor.set_text("{afebrile} and [confused] with [BP 82/50]")
    assert editor.answer_key.indices == [1, 2]
    assert [token.text for token in editor.tokens if token.clickable] == ["afebrile", "confused", "BP 82/50"]


def test_ranking_moves_within_correct_order() -> None:
    editor = _editor("ranking")
    editor.move_down(0)
    assert editor.order == [1, 0, 2]
    editor.move_up(2)
    assert editor.order == [1, 2, 0]
    editor.add_item()
    assert editor.items[-1] == "Item 4"
    editor.remove_item(0)
    assert editor.order == [0, 1, 2]
    assert editor.ordered_items() == ["Item 2", "Item 3", "Item 4"]


def test_dosage_values() -> None:
    editor = _editor("dosage_calculation")
    editor.set_unit("mL/hr")
    editor.set_correct_value("5.5")
    editor.set_tolerance(0.2)
    assert editor.answer_key.correct_value == 5.5
    editor.set_correct_value("")
    assert editor.answer_key.correct_value is None
    with pytest.raises(ItemShapeError):
        editor.set_tolerance("abc")
    with pytest.raises(ItemShapeError):
        editor.set_tolerance(-1)
    with pytest.raises(ItemShapeError):
        editor.set_decimal_places(6)


def test_case_study_editor_targets_active_step() -> None:
    editor = _editor("case_study")
    editor.set_title("Sepsis")
    editor.set_case_data('{"age": 67}')
    editor.go_to(4)
    editor.set_question("Which action comes first?")
    editor.set_correct(2)
    assert editor.payload.steps[4].question == "Which action comes first?"
    assert editor.answer_key.steps[4] == 2
    assert editor.steps_completed == 1
    assert editor.active_info.name == "Generate Solutions"
    editor.remove_option(0)
    assert editor.answer_key.steps[4] == 1
    with pytest.raises(ItemShapeError):
        editor.set_case_data("not json")


def test_rejected_interaction_keeps_previous_item() -> None:
    editor = _editor("dosage_calculation")
    before = editor.item
    with pytest.raises(ItemShapeError):
        editor.set_tolerance(-3)
    assert editor.item is before
