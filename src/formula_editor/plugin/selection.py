"""Snap selections to entity runs so formula tokens behave like single glyphs."""

from __future__ import annotations

import logging

from ..editor.document_model import BlockLike, SelectionState

__all__ = ["entity_run_end", "entity_run_start", "extend_selection"]

LOGGER = logging.getLogger(__name__)


def entity_run_start(block: BlockLike, offset: int, entity: str) -> int:
    """Walk backward from ``offset`` to the first offset of the ``entity`` run."""

    cursor = offset
    while cursor > 0 and block.entity_at(cursor - 1) == entity:
        cursor -= 1
    return cursor


def entity_run_end(block: BlockLike, offset: int, entity: str) -> int:
    """Walk forward from ``offset`` to the first offset past the ``entity`` run."""

    cursor = offset
    while cursor < block.length and block.entity_at(cursor) == entity:
        cursor += 1
    return cursor


def extend_selection(
    selection: SelectionState,
    start_block: BlockLike,
    end_block: BlockLike | None = None,
) -> SelectionState:
    """Return ``selection`` widened to the entity runs it touches.

    ``start_block`` holds the selection start; ``end_block`` defaults to it
    for single-block selections. The original object is returned untouched
    when nothing needs snapping.
    """

    if selection.is_collapsed:
        return _extend_caret(selection, start_block)
    return _extend_range(selection, start_block, end_block or start_block)


def _extend_caret(selection: SelectionState, block: BlockLike) -> SelectionState:
    offset = selection.anchor_offset
    if not (block.has_character(offset - 1) and block.has_character(offset)):
        return selection
    entity = block.entity_at(offset - 1)
    if entity is None or entity != block.entity_at(offset):
        return selection

    lo = entity_run_start(block, offset - 1, entity)
    hi = entity_run_end(block, offset, entity)
    LOGGER.debug("Caret at %s inside entity %s; selecting %s..%s", offset, entity, lo, hi)
    return selection.merge(
        anchor_key=block.key,
        anchor_offset=lo,
        focus_key=block.key,
        focus_offset=hi,
        is_backward=False,
    )


def _extend_range(selection: SelectionState, start_block: BlockLike, end_block: BlockLike) -> SelectionState:
    start = selection.start_offset
    end = selection.end_offset

    start_entity = start_block.entity_at(start)
    if start_entity is not None:
        start = entity_run_start(start_block, start, start_entity)

    # the last selected character decides the run the end boundary belongs to
    end_entity = end_block.entity_at(end - 1) if end > 0 else None
    if end_entity is not None:
        end = entity_run_end(end_block, end, end_entity)

    if start == selection.start_offset and end == selection.end_offset:
        return selection

    LOGGER.debug(
        "Extended selection %s..%s to %s..%s",
        selection.start_offset,
        selection.end_offset,
        start,
        end,
    )
    if selection.is_backward:
        return selection.merge(anchor_offset=end, focus_offset=start)
    return selection.merge(anchor_offset=start, focus_offset=end)
