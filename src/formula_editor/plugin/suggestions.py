"""Suggestion filtering and popover placement for the formula overlay."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from PySide6.QtCore import QPointF, QRectF

__all__ = ["PopoverStyle", "default_suggestions_filter", "position_suggestions", "suggestion_name"]

_GROW_TRANSITION = "all 0.25s cubic-bezier(.3,1.2,.2,1)"
_SHRINK_TRANSITION = "all 0.35s cubic-bezier(.3,1,.2,1)"


def suggestion_name(suggestion: Any) -> str:
    """Return the display name of a mapping- or attribute-style suggestion."""

    if isinstance(suggestion, Mapping):
        value = suggestion.get("name", "")
    else:
        value = getattr(suggestion, "name", "")
    return str(value or "")


def default_suggestions_filter(search_value: str | None, suggestions: Iterable[Any], limit: int = 5) -> list[Any]:
    """Return up to ``limit`` suggestions whose name contains ``search_value``, case-insensitively."""

    needle = (search_value or "").lower()
    matches: list[Any] = []
    for suggestion in suggestions:
        if len(matches) >= limit:
            break
        if not needle or needle in suggestion_name(suggestion).lower():
            matches.append(suggestion)
    return matches


@dataclass(slots=True, frozen=True)
class PopoverStyle:
    """Placement and animation of the suggestions popover."""

    left: float
    top: float
    transform: str | None = None
    transform_origin: str = "1em 0%"
    transition: str | None = None

    def as_css(self) -> dict[str, str]:
        css = {
            "left": f"{self.left:g}px",
            "top": f"{self.top:g}px",
            "transformOrigin": self.transform_origin,
        }
        if self.transform is not None:
            css["transform"] = self.transform
        if self.transition is not None:
            css["transition"] = self.transition
        return css


def position_suggestions(
    decorator_rect: QRectF,
    *,
    is_active: bool,
    suggestion_count: int | Sequence[Any],
    parent_rect: QRectF | None = None,
    scroll: QPointF | None = None,
) -> PopoverStyle:
    """Place the popover at the decorated span.

    With ``parent_rect`` the position is expressed relative to that
    positioned ancestor; ``scroll`` is the ancestor's (or page's) scroll
    offset. An active popover with suggestions scales in, an active one with
    none scales out, an inactive one carries no transform.
    """

    offset = scroll if scroll is not None else QPointF(0.0, 0.0)
    left = decorator_rect.left()
    top = decorator_rect.top()
    if parent_rect is not None:
        left -= parent_rect.left()
        top -= parent_rect.top()

    count = suggestion_count if isinstance(suggestion_count, int) else len(suggestion_count)
    transform: str | None = None
    transition: str | None = None
    if is_active:
        if count > 0:
            transform, transition = "scale(1)", _GROW_TRANSITION
        else:
            transform, transition = "scale(0)", _SHRINK_TRANSITION

    return PopoverStyle(
        left=left + offset.x(),
        top=top + offset.y(),
        transform=transform,
        transition=transition,
    )
