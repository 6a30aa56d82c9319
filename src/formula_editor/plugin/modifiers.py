"""Editor-state transforms committing an autocomplete choice as a formula entity."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Pattern

from ..core.spans import search_text_at
from ..editor.document_model import ChangeType, EditorState, EntityMutability, SelectionState, replace_text
from .strategy import mention_entity_type

__all__ = ["add_formula"]

LOGGER = logging.getLogger(__name__)


def add_formula(
    editor_state: EditorState,
    name: str,
    *,
    trigger: str = "@",
    prefix: str = "",
    mutability: EntityMutability = "IMMUTABLE",
    data: Mapping[str, Any] | None = None,
    pattern: str | Pattern[str] | None = None,
    opening: str = "[",
    closing: str = "]",
) -> EditorState:
    """Replace the formula span under the caret with ``[prefix + name]`` as one entity.

    The inserted characters all carry a fresh mention entity so the selection
    extender treats the token atomically afterwards. The state is returned
    unchanged when the caret is not inside a formula span.
    """

    selection = editor_state.selection
    block = editor_state.anchor_block()
    if block is None:
        return editor_state
    search = search_text_at(block.text, selection.anchor_offset, pattern)
    if search is None:
        LOGGER.debug("add_formula: caret at %s is not inside a formula", selection.anchor_offset)
        return editor_state

    payload = {"name": name, **dict(data or {})}
    content, entity_key = editor_state.content.create_entity(mention_entity_type(trigger), mutability, payload)
    target = SelectionState(
        anchor_key=block.key,
        anchor_offset=search.begin,
        focus_key=block.key,
        focus_offset=search.end,
    )
    token = f"{opening}{prefix}{name}{closing}"
    content = replace_text(content, target, token, entity_key=entity_key)
    pushed = editor_state.push(content, ChangeType.APPLY_ENTITY)
    caret = SelectionState.collapsed(block.key, search.begin + len(token))
    LOGGER.debug("Committed formula %r as entity %s in block %s", name, entity_key, block.key)
    return pushed.force_selection(caret)
