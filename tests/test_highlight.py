from qbank.highlight import TokenKind, clickable_tokens, correct_indices, parse_highlight_text


def test_parse_marks_correct_and_distractor_phrases() -> None:
    tokens = parse_highlight_text("Pt has [fever] and {cough}.")
    assert [(token.kind, token.text, token.index) for token in tokens] == [
        (TokenKind.PLAIN, "Pt has ", None),
        (TokenKind.CORRECT, "fever", 0),
        (TokenKind.PLAIN, " and ", None),
        (TokenKind.DISTRACTOR, "cough", 1),
        (TokenKind.PLAIN, ".", None),
    ]


def test_clickable_indices_follow_document_order() -> None:
    text = "{BP 120/80} then [HR 130] and [RR 28] with {SpO2 97%}"
    assert [token.text for token in clickable_tokens(text)] == ["BP 120/80", "HR 130", "RR 28", "SpO2 97%"]
    assert correct_indices(text) == [1, 2]


def test_empty_markers_produce_no_token() -> None:
    tokens = parse_highlight_text("a [] b {} [c]")
    assert [token.text for token in tokens if token.clickable] == ["c"]
    assert correct_indices("a [] b {} [c]") == [0]


def test_plain_text_only() -> None:
    assert clickable_tokens("no markup here") == []
    assert parse_highlight_text("") == []
