"""Registry of live autocomplete searches owned by one plugin instance.

Every mutation builds a fresh mapping and swaps it in, so a position
resolver triggered from a layout callback always reads a complete snapshot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Callable, Mapping

from PySide6.QtCore import QRectF

from .events import Event, EventBus, SearchEscapeReset, SearchEscaped, SearchRegistered, SearchUnregistered

__all__ = ["PositionResolver", "SearchRecord", "SearchRegistry", "UnknownSearchError"]

LOGGER = logging.getLogger(__name__)

PositionResolver = Callable[[], QRectF]


class UnknownSearchError(LookupError):
    """Raised when resolving the position of a search that is not registered."""

    def __init__(self, search_id: str, *, reason: str = "unregistered") -> None:
        super().__init__(f"No position resolver for search {search_id!r} ({reason})")
        self.search_id = search_id
        self.reason = reason


@dataclass(slots=True, frozen=True)
class SearchRecord:
    """Registry entry for one mounted overlay decoration."""

    id: str
    position_resolver: PositionResolver | None = None
    alive: bool = True


class SearchRegistry:
    """Copy-on-write store of search records plus the escaped-search marker."""

    def __init__(self, *, event_bus: EventBus | None = None) -> None:
        self._records: Mapping[str, SearchRecord] = MappingProxyType({})
        self._escaped: str | None = None
        self._bus = event_bus

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def register(self, search_id: str) -> None:
        if search_id in self._records:
            return
        self._swap({**self._records, search_id: SearchRecord(id=search_id)})
        LOGGER.debug("Registered search %s", search_id)
        self._publish(SearchRegistered(search_id=search_id))

    def update_position_resolver(self, search_id: str, resolver: PositionResolver) -> None:
        """Store ``resolver`` for ``search_id``, creating the entry if needed."""

        record = self._records.get(search_id)
        if record is None:
            LOGGER.debug("Resolver supplied before register for %s; creating entry", search_id)
            record = SearchRecord(id=search_id)
        self._swap({**self._records, search_id: replace(record, position_resolver=resolver)})

    def unregister(self, search_id: str) -> SearchRecord | None:
        """Remove ``search_id`` and return its tombstone, or ``None`` when absent.

        The tombstone has ``alive=False`` and no resolver. Snapshots taken
        earlier keep the live record.
        """

        record = self._records.get(search_id)
        if record is None:
            return None
        records = dict(self._records)
        del records[search_id]
        self._swap(records)
        LOGGER.debug("Unregistered search %s", search_id)
        self._publish(SearchUnregistered(search_id=search_id))
        return replace(record, alive=False, position_resolver=None)

    def clear(self) -> None:
        """Drop every record and the escaped marker."""

        self._swap({})
        self._escaped = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def resolve_position(self, search_id: str) -> QRectF:
        record = self._records.get(search_id)
        if record is None:
            raise UnknownSearchError(search_id)
        if record.position_resolver is None:
            raise UnknownSearchError(search_id, reason="no resolver")
        return record.position_resolver()

    def list_all(self) -> frozenset[str]:
        return frozenset(self._records)

    def snapshot(self) -> Mapping[str, SearchRecord]:
        """Return the current immutable mapping of records."""

        return self._records

    def is_registered(self, search_id: str) -> bool:
        return search_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, search_id: object) -> bool:
        return search_id in self._records

    # ------------------------------------------------------------------
    # Escaped search
    # ------------------------------------------------------------------
    def escape(self, search_id: str) -> None:
        previous = self._escaped
        self._escaped = search_id
        LOGGER.debug("Escaped search %s (previous=%s)", search_id, previous)
        self._publish(SearchEscaped(search_id=search_id, previous=previous))

    def is_escaped(self, search_id: str) -> bool:
        return self._escaped is not None and self._escaped == search_id

    @property
    def escaped_search(self) -> str | None:
        return self._escaped

    def reset_escape(self) -> None:
        if self._escaped is None:
            return
        previous = self._escaped
        self._escaped = None
        self._publish(SearchEscapeReset(previous=previous))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _swap(self, records: dict[str, SearchRecord]) -> None:
        self._records = MappingProxyType(records)

    def _publish(self, event: Event) -> None:
        if self._bus is not None:
            self._bus.publish(event)
