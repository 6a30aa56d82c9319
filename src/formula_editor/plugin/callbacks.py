"""Optional keyboard/change hooks installed by the suggestions overlay."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Callable

__all__ = ["CallbackHook", "HookCallback", "PluginCallbacks"]

LOGGER = logging.getLogger(__name__)

HookCallback = Callable[..., Any]


class CallbackHook(str, Enum):
    """The recognised hook names; anything else is rejected."""

    ON_DOWN_ARROW = "on_down_arrow"
    ON_UP_ARROW = "on_up_arrow"
    ON_TAB = "on_tab"
    ON_ESCAPE = "on_escape"
    HANDLE_RETURN = "handle_return"
    ON_CHANGE = "on_change"
    KEY_BINDING_FN = "key_binding_fn"
    HANDLE_KEY_COMMAND = "handle_key_command"


@dataclass(slots=True)
class PluginCallbacks:
    """Mutable hook table; ``None`` means the host keeps its default behaviour.

    The suggestions overlay installs hooks while it is open and removes them
    when it closes, so the plugin only intercepts keys during a search.
    """

    on_down_arrow: HookCallback | None = None
    on_up_arrow: HookCallback | None = None
    on_tab: HookCallback | None = None
    on_escape: HookCallback | None = None
    handle_return: HookCallback | None = None
    on_change: HookCallback | None = None
    key_binding_fn: HookCallback | None = None
    handle_key_command: HookCallback | None = None

    def install(self, hook: CallbackHook | str, callback: HookCallback | None) -> None:
        name = CallbackHook(hook).value
        setattr(self, name, callback)
        LOGGER.debug("%s hook %s", "Installed" if callback is not None else "Removed", name)

    def remove(self, hook: CallbackHook | str) -> None:
        self.install(hook, None)

    def get(self, hook: CallbackHook | str) -> HookCallback | None:
        return getattr(self, CallbackHook(hook).value)

    def is_set(self, hook: CallbackHook | str) -> bool:
        return self.get(hook) is not None

    def invoke(self, hook: CallbackHook | str, *args: Any) -> Any:
        """Call the hook with ``args``; returns ``None`` when it is absent."""

        callback = self.get(hook)
        if callback is None:
            return None
        return callback(*args)

    def clear(self) -> None:
        for item in fields(self):
            setattr(self, item.name, None)

    def active_hooks(self) -> tuple[CallbackHook, ...]:
        return tuple(hook for hook in CallbackHook if self.is_set(hook))
