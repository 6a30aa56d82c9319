"""Keeps the search registry in step with the decorations currently rendered."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from ..editor.decorations import Decoration
from .registry import PositionResolver, SearchRegistry

__all__ = ["PortalSyncResult", "ResolverFactory", "SuggestionPortalTracker"]

LOGGER = logging.getLogger(__name__)

ResolverFactory = Callable[[Decoration], PositionResolver]


@dataclass(slots=True, frozen=True)
class PortalSyncResult:
    mounted: tuple[str, ...] = ()
    refreshed: tuple[str, ...] = ()
    unmounted: tuple[str, ...] = ()


class SuggestionPortalTracker:
    """Mount/unmount bookkeeping for suggestion portals.

    Each decoration of the tracked decorator mounts one portal: the portal
    registers its offset key, hands the registry a resolver for its on-screen
    rectangle, and unregisters when the decoration disappears.
    """

    def __init__(
        self,
        registry: SearchRegistry,
        resolver_factory: ResolverFactory,
        *,
        decorator: str = "formula_suggestions",
    ) -> None:
        self._registry = registry
        self._resolver_factory = resolver_factory
        self._decorator = decorator
        self._mounted: dict[str, Decoration] = {}

    @property
    def mounted(self) -> tuple[str, ...]:
        return tuple(self._mounted)

    def decoration(self, offset_key: str) -> Decoration | None:
        return self._mounted.get(offset_key)

    def sync(self, decorations: Iterable[Decoration]) -> PortalSyncResult:
        """Reconcile mounted portals with ``decorations``."""

        current = {item.offset_key: item for item in decorations if item.decorator == self._decorator}
        mounted: list[str] = []
        refreshed: list[str] = []
        for offset_key, decoration in current.items():
            if offset_key in self._mounted:
                refreshed.append(offset_key)
            else:
                self._registry.register(offset_key)
                mounted.append(offset_key)
            self._registry.update_position_resolver(offset_key, self._resolver_factory(decoration))
        unmounted = [offset_key for offset_key in self._mounted if offset_key not in current]
        for offset_key in unmounted:
            self._registry.unregister(offset_key)
        self._mounted = current
        if mounted or unmounted:
            LOGGER.debug("Portals mounted=%s unmounted=%s", mounted, unmounted)
        return PortalSyncResult(mounted=tuple(mounted), refreshed=tuple(refreshed), unmounted=tuple(unmounted))

    def unmount_all(self) -> None:
        for offset_key in list(self._mounted):
            self._registry.unregister(offset_key)
        self._mounted.clear()
