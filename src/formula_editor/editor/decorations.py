"""Decorator plumbing: run strategies over blocks and key every decoration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Protocol, Sequence

from .document_model import ContentBlock, ContentState

__all__ = ["CompositeDecorator", "Decoration", "DecoratorSpec", "Strategy", "make_offset_key"]

LOGGER = logging.getLogger(__name__)


class Strategy(Protocol):
    """Callable reporting decorated ranges of a block through ``callback``."""

    def __call__(
        self,
        block: ContentBlock,
        callback: Callable[[int, int], None],
        content: ContentState | None = None,
    ) -> None:  # pragma: no cover - protocol
        ...


@dataclass(slots=True, frozen=True)
class DecoratorSpec:
    """A strategy paired with the name and props of the component it renders."""

    name: str
    strategy: Strategy
    props: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class Decoration:
    """One decorated range inside a block, keyed by a stable offset key."""

    offset_key: str
    block_key: str
    decorator: str
    decorator_index: int
    start: int
    end: int


def make_offset_key(block_key: str, decorator_index: int, ordinal: int) -> str:
    return f"{block_key}-{decorator_index}-{ordinal}"


class CompositeDecorator:
    """Applies an ordered list of decorators, first claim on a character wins."""

    def __init__(self, decorators: Sequence[DecoratorSpec]) -> None:
        self._decorators = tuple(decorators)

    @property
    def decorators(self) -> tuple[DecoratorSpec, ...]:
        return self._decorators

    def decorate_block(self, block: ContentBlock, content: ContentState | None = None) -> tuple[Decoration, ...]:
        claimed = [False] * block.length
        found: list[Decoration] = []
        for index, spec in enumerate(self._decorators):
            ordinal = 0

            def _report(start: int, end: int, *, _spec: DecoratorSpec = spec, _index: int = index) -> None:
                nonlocal ordinal
                if start < 0 or end > block.length or end <= start:
                    LOGGER.debug("Ignoring out-of-range decoration %s..%s in block %s", start, end, block.key)
                    return
                if any(claimed[start:end]):
                    return
                for offset in range(start, end):
                    claimed[offset] = True
                found.append(
                    Decoration(
                        offset_key=make_offset_key(block.key, _index, ordinal),
                        block_key=block.key,
                        decorator=_spec.name,
                        decorator_index=_index,
                        start=start,
                        end=end,
                    )
                )
                ordinal += 1

            spec.strategy(block, _report, content)
        found.sort(key=lambda decoration: decoration.start)
        return tuple(found)

    def decorate(self, content: ContentState) -> tuple[Decoration, ...]:
        """Return the decorations of every block, in document order."""

        decorations: list[Decoration] = []
        for block in content.blocks:
            decorations.extend(self.decorate_block(block, content))
        return tuple(decorations)
