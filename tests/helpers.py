"""Shared builders for blocks and editor states used across the test modules."""

from __future__ import annotations

from typing import Mapping

from formula_editor.editor.document_model import (
    CharacterMetadata,
    ContentBlock,
    ContentState,
    EditorState,
    SelectionState,
)


def make_block(text: str, runs: Mapping[tuple[int, int], str] | None = None, *, key: str = "b1") -> ContentBlock:
    """Build a block whose ``runs`` map ``(start, end)`` ranges to entity keys."""

    characters = [CharacterMetadata() for _ in text]
    for (start, end), entity in (runs or {}).items():
        for offset in range(start, end):
            characters[offset] = CharacterMetadata(entity=entity)
    return ContentBlock(key=key, text=text, characters=tuple(characters))


def make_state(
    *blocks: ContentBlock,
    anchor: tuple[str, int] | None = None,
    focus: tuple[str, int] | None = None,
    is_backward: bool = False,
) -> EditorState:
    """Build an editor state over ``blocks`` with the given selection."""

    content = ContentState(blocks=blocks)
    anchor = anchor or (blocks[0].key, 0)
    focus = focus or anchor
    selection = SelectionState(
        anchor_key=anchor[0],
        anchor_offset=anchor[1],
        focus_key=focus[0],
        focus_offset=focus[1],
        is_backward=is_backward,
    )
    return EditorState.create(content, selection)


def caret(key: str, offset: int) -> SelectionState:
    return SelectionState.collapsed(key, offset)
