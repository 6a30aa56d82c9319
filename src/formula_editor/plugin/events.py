"""Event bus used by the plugin to announce registry and selection changes.

Overlay components and host applications subscribe to these events instead
of polling the registry after every keystroke.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, TypeVar
from weakref import WeakMethod

LOGGER = logging.getLogger(__name__)

EventT = TypeVar("EventT", bound="Event")

Handler = Callable[[EventT], None]
Unsubscribe = Callable[[], None]


@dataclass(slots=True)
class Event:
    """Base class for plugin events."""


# ----------------------------------------------------------------------------
# Search registry events
# ----------------------------------------------------------------------------


@dataclass(slots=True)
class SearchRegistered(Event):
    """Emitted when an overlay decoration registers its search id.

    Attributes:
        search_id: Offset key of the mounted decoration.
    """

    search_id: str


@dataclass(slots=True)
class SearchUnregistered(Event):
    """Emitted when an overlay decoration unmounts."""

    search_id: str


@dataclass(slots=True)
class SearchEscaped(Event):
    """Emitted when the user dismisses a search.

    Attributes:
        search_id: The dismissed search.
        previous: The search that was escaped before, if any.
    """

    search_id: str
    previous: str | None = None


@dataclass(slots=True)
class SearchEscapeReset(Event):
    """Emitted when the escaped marker is cleared."""

    previous: str | None = None


# ----------------------------------------------------------------------------
# Editing events
# ----------------------------------------------------------------------------


@dataclass(slots=True)
class SelectionExtended(Event):
    """Emitted when a selection snaps to the edges of an entity run.

    Attributes:
        block_key: Block holding the start of the selection.
        before: ``(start, end)`` offsets prior to extension.
        after: ``(start, end)`` offsets after extension.
    """

    block_key: str
    before: tuple[int, int]
    after: tuple[int, int]


@dataclass(slots=True)
class FormulaBracketInserted(Event):
    """Emitted after an opening delimiter was expanded into a bracket pair."""

    block_key: str
    offset: int


@dataclass(slots=True)
class FormulaAdded(Event):
    """Emitted when a suggestion is committed as a formula entity."""

    block_key: str
    entity_key: str
    name: str


class EventBus:
    """Synchronous publish-subscribe bus keyed by event class.

    Handlers subscribed to a base class also receive its subclasses, so
    subscribing to :class:`Event` observes everything. Bound methods are held
    weakly; a dropped overlay component stops receiving events on its own.
    Publish from the editor's event loop only.
    """

    __slots__ = ("_subscriptions",)

    def __init__(self) -> None:
        self._subscriptions: Dict[type, List[_Subscription]] = {}

    def subscribe(self, event_type: type[EventT], handler: Handler[EventT]) -> Unsubscribe:
        """Register ``handler`` and return a callable that removes it again."""

        subscription = _Subscription.wrap(handler)
        self._subscriptions.setdefault(event_type, []).append(subscription)
        LOGGER.debug("%s subscribed to %s", _describe(handler), event_type.__name__)

        def _unsubscribe() -> None:
            entries = self._subscriptions.get(event_type, [])
            if subscription in entries:
                entries.remove(subscription)

        return _unsubscribe

    def unsubscribe(self, event_type: type[EventT], handler: Handler[EventT]) -> None:
        """Remove the first registration of ``handler``; unknown handlers are ignored."""

        entries = self._subscriptions.get(event_type, [])
        for subscription in entries:
            if subscription.refers_to(handler):
                entries.remove(subscription)
                LOGGER.debug("%s unsubscribed from %s", _describe(handler), event_type.__name__)
                return

    def publish(self, event: Event) -> None:
        """Deliver ``event`` to handlers of its class and of each base class.

        Exact-type handlers run first, then handlers of the bases in MRO
        order. A failing handler is logged and delivery continues.
        """

        for event_type in type(event).__mro__:
            entries = self._subscriptions.get(event_type)
            if not entries:
                continue
            for subscription in list(entries):
                handler = subscription.target()
                if handler is None:
                    entries.remove(subscription)
                    continue
                try:
                    handler(event)
                except Exception:
                    LOGGER.exception("%s failed while handling %s", _describe(handler), type(event).__name__)
            if event_type is Event:
                break

    def clear(self) -> None:
        self._subscriptions.clear()

    def handler_count(self, event_type: type[Event] | None = None) -> int:
        if event_type is None:
            return sum(len(entries) for entries in self._subscriptions.values())
        return len(self._subscriptions.get(event_type, []))


class _Subscription:
    """One registered handler; bound methods are referenced weakly."""

    __slots__ = ("_strong", "_weak")

    def __init__(self, strong: Handler | None, weak: WeakMethod | None) -> None:
        self._strong = strong
        self._weak = weak

    @classmethod
    def wrap(cls, handler: Handler) -> _Subscription:
        if getattr(handler, "__self__", None) is not None and hasattr(handler, "__func__"):
            return cls(None, WeakMethod(handler))
        return cls(handler, None)

    def target(self) -> Handler | None:
        if self._weak is not None:
            return self._weak()
        return self._strong

    def refers_to(self, handler: Handler) -> bool:
        target = self.target()
        return target is not None and target == handler


def _describe(handler: Handler) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)


__all__ = [
    "Event",
    "EventBus",
    "FormulaAdded",
    "FormulaBracketInserted",
    "Handler",
    "SearchEscapeReset",
    "SearchEscaped",
    "SearchRegistered",
    "SearchUnregistered",
    "SelectionExtended",
    "Unsubscribe",
]
