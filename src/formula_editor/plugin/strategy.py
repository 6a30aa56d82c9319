"""Decorator strategies reporting formula spans and committed mention entities."""

from __future__ import annotations

import logging
from typing import Callable, Pattern

from ..core.spans import compile_pattern, scan_spans
from ..editor.decorations import Strategy
from ..editor.document_model import BlockLike, CharacterMetadata, ContentBlock, ContentState

__all__ = [
    "ReportSpan",
    "dispatch_spans",
    "formula_suggestions_strategy",
    "mention_entity_type",
    "mention_strategy",
]

LOGGER = logging.getLogger(__name__)

ReportSpan = Callable[[int, int], None]


def dispatch_spans(block: BlockLike, report_span: ReportSpan, pattern: str | Pattern[str] | None = None) -> int:
    """Call ``report_span(start, end)`` for every formula span in ``block``.

    Returns the number of spans reported.
    """

    spans = scan_spans(block.text, pattern)
    for span in spans:
        report_span(span.start, span.end)
    if spans:
        LOGGER.debug("Block %s: reported %d formula span(s)", block.key, len(spans))
    return len(spans)


def formula_suggestions_strategy(pattern: str | Pattern[str] | None = None) -> Strategy:
    """Build the strategy that places a suggestions overlay on each formula span."""

    compiled = compile_pattern(pattern)

    def _strategy(block: ContentBlock, callback: ReportSpan, content: ContentState | None = None) -> None:
        dispatch_spans(block, callback, compiled)

    return _strategy


def mention_entity_type(trigger: str = "@") -> str:
    """Entity type used for committed mentions of ``trigger``."""

    return "mention" if trigger == "@" else f"{trigger}mention"


def mention_strategy(trigger: str = "@") -> Strategy:
    """Build the strategy decorating characters tagged with mention entities."""

    entity_type = mention_entity_type(trigger)

    def _strategy(block: ContentBlock, callback: ReportSpan, content: ContentState | None = None) -> None:
        if content is None:
            return

        def _is_mention(character: CharacterMetadata) -> bool:
            key = character.entity
            return key is not None and key in content.entities and content.entity(key).type == entity_type

        block.find_entity_ranges(_is_mention, callback)

    return _strategy
