"""Immutable block/entity document model used as the reference editor host.

The plugin only relies on the small protocols declared at the top of this
module. The concrete dataclasses below satisfy them and are what the tests
drive, mirroring the content/selection/editor-state split of block-based
rich-text editors: every mutation returns a new object.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Iterator, Literal, Mapping, Protocol, Sequence

__all__ = [
    "BlockLike",
    "ChangeType",
    "CharacterMetadata",
    "ContentBlock",
    "ContentState",
    "EditorState",
    "Entity",
    "EntityMutability",
    "ENTITY_MUTABILITY_CHOICES",
    "SelectionLike",
    "SelectionState",
    "gen_key",
    "replace_text",
]

EntityMutability = Literal["IMMUTABLE", "MUTABLE", "SEGMENTED"]
ENTITY_MUTABILITY_CHOICES: tuple[str, ...] = ("IMMUTABLE", "MUTABLE", "SEGMENTED")


def gen_key() -> str:
    """Return a short random block key."""

    return uuid.uuid4().hex[:5]


class BlockLike(Protocol):
    """Read-only view of one block consumed by the span and selection helpers."""

    @property
    def key(self) -> str:  # pragma: no cover - protocol
        ...

    @property
    def text(self) -> str:  # pragma: no cover - protocol
        ...

    @property
    def length(self) -> int:  # pragma: no cover - protocol
        ...

    def entity_at(self, offset: int) -> str | None:  # pragma: no cover - protocol
        ...

    def has_character(self, offset: int) -> bool:  # pragma: no cover - protocol
        ...


class SelectionLike(Protocol):
    """Anchor/focus selection contract consumed by the plugin."""

    anchor_key: str
    anchor_offset: int
    focus_key: str
    focus_offset: int

    @property
    def is_collapsed(self) -> bool:  # pragma: no cover - protocol
        ...


class ChangeType(str, Enum):
    """Labels attached to pushed content changes."""

    INSERT_CHARACTERS = "insert-characters"
    APPLY_ENTITY = "apply-entity"
    REMOVE_RANGE = "remove-range"
    SPLIT_BLOCK = "split-block"


@dataclass(slots=True, frozen=True)
class CharacterMetadata:
    """Per-character metadata: an optional entity key and inline styles."""

    entity: str | None = None
    style: frozenset[str] = frozenset()


EMPTY_CHARACTER = CharacterMetadata()


@dataclass(slots=True, frozen=True)
class Entity:
    """Entity record referenced from character metadata."""

    type: str
    mutability: EntityMutability = "IMMUTABLE"
    data: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class ContentBlock:
    """A single paragraph of text plus its character list."""

    key: str
    text: str = ""
    characters: tuple[CharacterMetadata, ...] | None = None

    def __post_init__(self) -> None:
        characters = self.characters
        if characters is None:
            characters = (EMPTY_CHARACTER,) * len(self.text)
        else:
            characters = tuple(characters)
        if len(characters) != len(self.text):
            raise ValueError(
                f"Block {self.key!r} has {len(self.text)} characters but {len(characters)} metadata entries"
            )
        object.__setattr__(self, "characters", characters)

    @property
    def length(self) -> int:
        return len(self.text)

    def has_character(self, offset: int) -> bool:
        return 0 <= offset < len(self.text)

    def character_at(self, offset: int) -> CharacterMetadata | None:
        """Return the metadata at ``offset`` or ``None`` outside the block."""

        if not self.has_character(offset):
            return None
        return self.characters[offset]  # type: ignore[index]

    def entity_at(self, offset: int) -> str | None:
        character = self.character_at(offset)
        return character.entity if character is not None else None

    def find_entity_ranges(
        self,
        predicate: Callable[[CharacterMetadata], bool],
        callback: Callable[[int, int], None],
    ) -> None:
        """Invoke ``callback`` for every maximal run of same-entity characters matching ``predicate``."""

        characters: Sequence[CharacterMetadata] = self.characters or ()
        start: int | None = None
        current: str | None = None
        for index, character in enumerate(characters):
            matches = character.entity is not None and predicate(character)
            if start is not None and (not matches or character.entity != current):
                callback(start, index)
                start = None
            if matches and start is None:
                start = index
                current = character.entity
        if start is not None:
            callback(start, len(characters))

    def splice(
        self,
        start: int,
        end: int,
        text: str,
        character: CharacterMetadata = EMPTY_CHARACTER,
    ) -> ContentBlock:
        """Return a copy with ``[start, end)`` replaced by ``text``."""

        characters = self.characters or ()
        inserted = (character,) * len(text)
        return replace(
            self,
            text=self.text[:start] + text + self.text[end:],
            characters=characters[:start] + inserted + characters[end:],
        )


@dataclass(slots=True, frozen=True)
class SelectionState:
    """Anchor/focus selection over block keys and offsets."""

    anchor_key: str
    anchor_offset: int = 0
    focus_key: str = ""
    focus_offset: int = 0
    is_backward: bool = False
    has_focus: bool = True

    def __post_init__(self) -> None:
        if not self.focus_key:
            object.__setattr__(self, "focus_key", self.anchor_key)

    @classmethod
    def collapsed(cls, key: str, offset: int) -> SelectionState:
        return cls(anchor_key=key, anchor_offset=offset, focus_key=key, focus_offset=offset)

    @property
    def is_collapsed(self) -> bool:
        return self.anchor_key == self.focus_key and self.anchor_offset == self.focus_offset

    @property
    def start_key(self) -> str:
        return self.focus_key if self.is_backward else self.anchor_key

    @property
    def start_offset(self) -> int:
        return self.focus_offset if self.is_backward else self.anchor_offset

    @property
    def end_key(self) -> str:
        return self.anchor_key if self.is_backward else self.focus_key

    @property
    def end_offset(self) -> int:
        return self.anchor_offset if self.is_backward else self.focus_offset

    def merge(self, **changes: Any) -> SelectionState:
        return replace(self, **changes)


@dataclass(slots=True, frozen=True)
class ContentState:
    """Ordered blocks plus the entity map they reference."""

    blocks: tuple[ContentBlock, ...] = ()
    entities: Mapping[str, Entity] = field(default_factory=lambda: MappingProxyType({}))
    selection_before: SelectionState | None = None
    selection_after: SelectionState | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "blocks", tuple(self.blocks))
        if not isinstance(self.entities, MappingProxyType):
            object.__setattr__(self, "entities", MappingProxyType(dict(self.entities)))

    @classmethod
    def from_text(cls, text: str, *, delimiter: str = "\n") -> ContentState:
        """Build content with one unstyled block per line of ``text``."""

        lines = text.split(delimiter) if text else [""]
        return cls(blocks=tuple(ContentBlock(key=gen_key(), text=line) for line in lines))

    def __iter__(self) -> Iterator[ContentBlock]:
        return iter(self.blocks)

    @property
    def block_keys(self) -> tuple[str, ...]:
        return tuple(block.key for block in self.blocks)

    def first_block(self) -> ContentBlock:
        if not self.blocks:
            raise LookupError("Content has no blocks")
        return self.blocks[0]

    def block_for_key(self, key: str) -> ContentBlock | None:
        for block in self.blocks:
            if block.key == key:
                return block
        return None

    def block_index(self, key: str) -> int:
        for index, block in enumerate(self.blocks):
            if block.key == key:
                return index
        raise KeyError(f"Unknown block key: {key}")

    def plain_text(self, delimiter: str = "\n") -> str:
        return delimiter.join(block.text for block in self.blocks)

    def entity(self, key: str) -> Entity:
        try:
            return self.entities[key]
        except KeyError:
            raise KeyError(f"Unknown entity key: {key}") from None

    def create_entity(
        self,
        entity_type: str,
        mutability: EntityMutability = "IMMUTABLE",
        data: Mapping[str, Any] | None = None,
    ) -> tuple[ContentState, str]:
        """Return a new content state holding the entity and the entity's key."""

        key = str(len(self.entities) + 1)
        while key in self.entities:
            key = str(int(key) + 1)
        entities = dict(self.entities)
        entities[key] = Entity(type=entity_type, mutability=mutability, data=dict(data or {}))
        return replace(self, entities=MappingProxyType(entities)), key

    def with_blocks(self, blocks: Sequence[ContentBlock]) -> ContentState:
        return replace(self, blocks=tuple(blocks))


def replace_text(
    content: ContentState,
    selection: SelectionState,
    text: str,
    *,
    entity_key: str | None = None,
    style: frozenset[str] = frozenset(),
) -> ContentState:
    """Replace the selected range with ``text`` and return the new content.

    Multi-block selections collapse into the start block. The returned
    content records the caret after the inserted text as ``selection_after``.
    """

    start_key, start_offset = selection.start_key, selection.start_offset
    end_key, end_offset = selection.end_key, selection.end_offset
    start_index = content.block_index(start_key)
    end_index = content.block_index(end_key)
    if (end_index, end_offset) < (start_index, start_offset):
        start_index, end_index = end_index, start_index
        start_key, end_key = end_key, start_key
        start_offset, end_offset = end_offset, start_offset
    start_block = content.blocks[start_index]
    end_block = content.blocks[end_index]

    character = CharacterMetadata(entity=entity_key, style=style)
    if start_index == end_index:
        merged = start_block.splice(start_offset, end_offset, text, character)
    else:
        head = start_block.splice(start_offset, start_block.length, text, character)
        tail_chars = (end_block.characters or ())[end_offset:]
        merged = replace(
            head,
            text=head.text + end_block.text[end_offset:],
            characters=(head.characters or ()) + tail_chars,
        )

    blocks = content.blocks[:start_index] + (merged,) + content.blocks[end_index + 1 :]
    caret = SelectionState.collapsed(start_key, start_offset + len(text))
    return replace(content, blocks=blocks, selection_before=selection, selection_after=caret)


@dataclass(slots=True, frozen=True)
class EditorState:
    """Top-level immutable editor snapshot: content, selection and undo history."""

    content: ContentState
    selection: SelectionState
    undo_stack: tuple[ContentState, ...] = ()
    last_change_type: ChangeType | None = None
    selection_forced: bool = False

    @classmethod
    def create(cls, content: ContentState, selection: SelectionState | None = None) -> EditorState:
        if selection is None:
            selection = SelectionState.collapsed(content.first_block().key, 0)
        return cls(content=content, selection=selection)

    @classmethod
    def from_text(cls, text: str) -> EditorState:
        return cls.create(ContentState.from_text(text))

    @property
    def current_content(self) -> ContentState:
        return self.content

    def anchor_block(self) -> ContentBlock | None:
        return self.content.block_for_key(self.selection.anchor_key)

    def push(self, content: ContentState, change_type: ChangeType) -> EditorState:
        """Record ``content`` as a new undoable change."""

        selection = content.selection_after or self.selection
        return replace(
            self,
            content=content,
            selection=selection,
            undo_stack=self.undo_stack + (self.content,),
            last_change_type=change_type,
            selection_forced=False,
        )

    def with_selection(self, selection: SelectionState) -> EditorState:
        return replace(self, selection=selection, selection_forced=False)

    def force_selection(self, selection: SelectionState) -> EditorState:
        """Apply ``selection`` without recording a content change."""

        return replace(self, selection=selection, selection_forced=True)
