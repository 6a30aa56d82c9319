"""Class-name theme handed to the mention and suggestion components."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping

__all__ = ["MentionTheme"]


@dataclass(slots=True, frozen=True)
class MentionTheme:
    """CSS class names for the mention text and the suggestions popover.

    A theme replaces the defaults wholesale; the plugin never merges class
    names, so changing one entry never silently inherits another.
    """

    mention: str = "mention"
    mention_suggestions: str = "mentionSuggestions"
    mention_suggestions_entry: str = "mentionSuggestionsEntry"
    mention_suggestions_entry_focused: str = "mentionSuggestionsEntryFocused"
    mention_suggestions_entry_text: str = "mentionSuggestionsEntryText"
    mention_suggestions_entry_avatar: str = "mentionSuggestionsEntryAvatar"

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any] | None) -> MentionTheme:
        """Build a theme from a mapping, accepting snake_case or camelCase keys."""

        if not payload:
            return cls()
        known = {item.name for item in fields(cls)}
        values: Dict[str, str] = {}
        for key, value in payload.items():
            name = _snake_case(str(key))
            if name in known and value is not None:
                values[name] = str(value)
        return cls(**values)

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


def _snake_case(name: str) -> str:
    chars: list[str] = []
    for char in name:
        if char.isupper():
            chars.append("_")
            chars.append(char.lower())
        else:
            chars.append(char)
    return "".join(chars).lstrip("_")
