"""Parser for highlight-text markup.

``[phrase]`` marks a phrase the learner should highlight, ``{phrase}`` marks a
clickable distractor, everything else is plain text. Only clickable phrases are
indexed, in document order; that index space is what answer keys and
responses refer to.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import List, Optional

_MARKUP_RX = re.compile(r"\[(.*?)\]|\{(.*?)\}")


class TokenKind(str, enum.Enum):
    PLAIN = "plain"
    CORRECT = "correct"
    DISTRACTOR = "distractor"


@dataclass(frozen=True)
class HighlightToken:
    kind: TokenKind
    text: str
    index: Optional[int] = None  # position among clickable tokens; None for plain text

    @property
    def clickable(self) -> bool:
        return self.kind is not TokenKind.PLAIN


def parse_highlight_text(text: str) -> List[HighlightToken]:
    """Split marked-up text into plain, correct and distractor tokens.

    Empty markers (``[]`` or ``{}``) are dropped without producing a token.
    """

    tokens: List[HighlightToken] = []
    clickable = 0
    last = 0
    for match in _MARKUP_RX.finditer(text or ""):
        if match.start() > last:
            tokens.append(HighlightToken(TokenKind.PLAIN, text[last:match.start()]))
        correct, distractor = match.group(1), match.group(2)
        if correct:
            tokens.append(HighlightToken(TokenKind.CORRECT, correct, clickable))
            clickable += 1
        elif distractor:
            tokens.append(HighlightToken(TokenKind.DISTRACTOR, distractor, clickable))
            clickable += 1
        last = match.end()
    if text and last < len(text):
        tokens.append(HighlightToken(TokenKind.PLAIN, text[last:]))
    return tokens


def clickable_tokens(text: str) -> List[HighlightToken]:
    return [token for token in parse_highlight_text(text) if token.clickable]


def correct_indices(text: str) -> List[int]:
    """Clickable indices of the ``[correct]`` phrases, ascending."""

    return [token.index for token in clickable_tokens(text) if token.kind is TokenKind.CORRECT]
