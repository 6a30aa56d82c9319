"""Helpers for locating bracket-delimited formula spans inside block text."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Iterator, Pattern

__all__ = [
    "DEFAULT_FORMULA_PATTERN",
    "SearchText",
    "Span",
    "compile_pattern",
    "find_enclosing_span",
    "scan_spans",
    "search_text_at",
]

DEFAULT_FORMULA_PATTERN: Pattern[str] = re.compile(r"\[(.*?)\]")


@dataclass(slots=True, frozen=True)
class Span(Sequence[int]):
    """Half-open ``[start, end)`` offset range covering one formula token."""

    start: int
    end: int

    def __post_init__(self) -> None:
        start = self._coerce_index(self.start, "start")
        end = self._coerce_index(self.end, "end")
        if end <= start:
            raise ValueError(f"Span end must be greater than start (got {start}, {end})")
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @staticmethod
    def _coerce_index(value: Any, label: str) -> int:
        try:
            number = int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Span {label} must be an integer") from exc
        if number < 0:
            raise ValueError(f"Span {label} cannot be negative")
        return number

    def __len__(self) -> int:
        return 2

    def __getitem__(self, index: int | slice) -> int | tuple[int, ...]:
        if isinstance(index, slice):
            return self.to_tuple()[index]
        if index == 0:
            return self.start
        if index == 1:
            return self.end
        raise IndexError("Span index out of range")

    def __iter__(self) -> Iterator[int]:
        yield self.start
        yield self.end

    @property
    def length(self) -> int:
        """Return the number of characters covered by the span."""

        return self.end - self.start

    def contains(self, offset: int, *, inclusive: bool = False) -> bool:
        """Return ``True`` when ``offset`` sits inside the span.

        The strict form only accepts offsets between the two delimiters, so a
        caret placed right before the opening bracket or right after the
        closing bracket is outside.
        """

        if inclusive:
            return self.start <= offset <= self.end
        return self.start < offset < self.end

    def to_tuple(self) -> tuple[int, int]:
        return (self.start, self.end)

    def to_dict(self) -> dict[str, int]:
        return {"start": self.start, "end": self.end}


@dataclass(slots=True, frozen=True)
class SearchText:
    """The formula span under the caret and the text between its delimiters."""

    begin: int
    end: int
    value: str


def compile_pattern(pattern: str | Pattern[str] | None) -> Pattern[str]:
    """Return a compiled pattern, falling back to the default bracket pattern."""

    if pattern is None:
        return DEFAULT_FORMULA_PATTERN
    if isinstance(pattern, str):
        return re.compile(pattern)
    return pattern


def scan_spans(text: str | None, pattern: str | Pattern[str] | None = None) -> tuple[Span, ...]:
    """Return every non-overlapping match of ``pattern`` in ``text``, left to right."""

    if not text:
        return ()
    compiled = compile_pattern(pattern)
    spans: list[Span] = []
    for match in compiled.finditer(text):
        start, end = match.span()
        if end <= start:
            continue
        spans.append(Span(start, end))
    return tuple(spans)


def find_enclosing_span(
    spans: Sequence[Span],
    offset: int,
    *,
    inclusive: bool = False,
) -> Span | None:
    """Return the first span containing ``offset`` or ``None``."""

    for span in spans:
        if span.contains(offset, inclusive=inclusive):
            return span
    return None


def search_text_at(
    text: str | None,
    caret_offset: int,
    pattern: str | Pattern[str] | None = None,
) -> SearchText | None:
    """Resolve the formula the user is typing into at ``caret_offset``.

    The character just before the caret decides which span is active, with
    both span edges counted as inside.
    """

    source = text or ""
    span = find_enclosing_span(scan_spans(source, pattern), caret_offset - 1, inclusive=True)
    if span is None:
        return None
    return SearchText(begin=span.start, end=span.end, value=source[span.start + 1 : span.end - 1])
