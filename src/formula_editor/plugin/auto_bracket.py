"""Before-input handling: bracket pairing and operator filtering inside formulas."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Pattern

from ..core.spans import compile_pattern, find_enclosing_span, scan_spans
from ..editor.document_model import ChangeType, EditorState, SelectionState, replace_text
from .events import EventBus, FormulaBracketInserted

__all__ = [
    "AutoBracketInserter",
    "BeforeInputResult",
    "DEFAULT_OPERATOR_PATTERN",
    "HandleValue",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_OPERATOR_PATTERN: Pattern[str] = re.compile(r"[-0-9 .%^&*()_+\"'/]")


class HandleValue(str, Enum):
    """Answer returned to the host's key-event layer."""

    HANDLED = "handled"
    NOT_HANDLED = "not-handled"


@dataclass(slots=True, frozen=True)
class BeforeInputResult:
    """Outcome of intercepting one insertion.

    ``editor_state`` is only set when the inserter produced a new state the
    host must commit.
    """

    value: HandleValue
    editor_state: EditorState | None = None

    @property
    def handled(self) -> bool:
        return self.value is HandleValue.HANDLED


_NOT_HANDLED = BeforeInputResult(HandleValue.NOT_HANDLED)
_SWALLOWED = BeforeInputResult(HandleValue.HANDLED)


class AutoBracketInserter:
    """Pairs opening delimiters and filters operator symbols typed inside a formula."""

    def __init__(
        self,
        *,
        opening: str = "[",
        closing: str = "]",
        formula_pattern: str | Pattern[str] | None = None,
        operator_pattern: str | Pattern[str] | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._opening = opening
        self._closing = closing
        self._formula_pattern = compile_pattern(formula_pattern)
        if operator_pattern is None:
            self._operator_pattern = DEFAULT_OPERATOR_PATTERN
        else:
            self._operator_pattern = re.compile(operator_pattern) if isinstance(operator_pattern, str) else operator_pattern
        self._bus = event_bus

    def handle_before_input(self, chars: str | None, editor_state: EditorState) -> BeforeInputResult:
        if not chars:
            return _NOT_HANDLED
        block = editor_state.anchor_block()
        if block is None:
            LOGGER.debug("Anchor block %s not found; leaving input to the host", editor_state.selection.anchor_key)
            return _NOT_HANDLED
        if chars == self._opening:
            return self._insert_pair(editor_state)

        selection = editor_state.selection
        span = find_enclosing_span(scan_spans(block.text, self._formula_pattern), selection.anchor_offset)
        if span is None:
            return _NOT_HANDLED
        if self._operator_pattern.search(chars):
            LOGGER.debug("Dropping %r typed inside formula %s..%s", chars, span.start, span.end)
            return _SWALLOWED
        return _NOT_HANDLED

    def is_operator(self, chars: str) -> bool:
        return bool(chars) and self._operator_pattern.search(chars) is not None

    def _insert_pair(self, editor_state: EditorState) -> BeforeInputResult:
        content = replace_text(editor_state.content, editor_state.selection, self._opening + self._closing)
        pushed = editor_state.push(content, ChangeType.INSERT_CHARACTERS)
        after = content.selection_after or editor_state.selection
        caret = SelectionState.collapsed(after.anchor_key, after.anchor_offset - len(self._closing))
        result = pushed.force_selection(caret)
        LOGGER.debug("Inserted bracket pair in block %s at %s", caret.anchor_key, caret.anchor_offset - len(self._opening))
        if self._bus is not None:
            self._bus.publish(
                FormulaBracketInserted(block_key=caret.anchor_key, offset=caret.anchor_offset - len(self._opening))
            )
        return BeforeInputResult(HandleValue.HANDLED, result)
