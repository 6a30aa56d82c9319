"""Formula plugin: wires bracket pairing, selection snapping and the suggestion overlay."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from ..core.spans import SearchText, search_text_at
from ..editor.decorations import CompositeDecorator, DecoratorSpec
from ..editor.document_model import EditorState
from .auto_bracket import AutoBracketInserter, HandleValue
from .callbacks import CallbackHook, PluginCallbacks
from .config import FormulaPluginConfig
from .events import EventBus, FormulaAdded, SelectionExtended
from .modifiers import add_formula
from .registry import SearchRegistry
from .selection import extend_selection
from .strategy import formula_suggestions_strategy, mention_strategy
from .suggestions import default_suggestions_filter, position_suggestions

__all__ = ["AriaProps", "FormulaPlugin"]

LOGGER = logging.getLogger(__name__)

GetEditorState = Callable[[], EditorState]
SetEditorState = Callable[[EditorState], None]


@dataclass(slots=True)
class AriaProps:
    """Accessibility attributes updated by the suggestions overlay while it is open."""

    has_popup: bool = False
    expanded: bool = False
    ownee_id: str | None = None
    active_descendant_id: str | None = None


class FormulaPlugin:
    """Editor plugin turning ``[...]`` spans into atomic, autocompleted formula tokens.

    One instance owns its search registry, hook table and accessibility
    state; nothing is shared between plugin instances.
    """

    def __init__(
        self,
        config: FormulaPluginConfig | Mapping[str, Any] | None = None,
        *,
        event_bus: EventBus | None = None,
        position_function: Callable[..., Any] = position_suggestions,
    ) -> None:
        if config is None:
            config = FormulaPluginConfig()
        elif isinstance(config, Mapping):
            config = FormulaPluginConfig.from_mapping(config)
        self._config = config
        self._bus = event_bus or EventBus()
        self._formula_pattern = config.compiled_formula_pattern
        self._position_function = position_function
        self.registry = SearchRegistry(event_bus=self._bus)
        self.callbacks = PluginCallbacks()
        self.aria = AriaProps()
        self._inserter = AutoBracketInserter(
            opening=config.opening_delimiter,
            closing=config.closing_delimiter,
            formula_pattern=self._formula_pattern,
            operator_pattern=config.compiled_operator_pattern,
            event_bus=self._bus,
        )
        self._decorators = (
            DecoratorSpec(
                name="mention",
                strategy=mention_strategy(config.mention_trigger),
                props={"theme": config.theme},
            ),
            DecoratorSpec(
                name="formula_suggestions",
                strategy=formula_suggestions_strategy(self._formula_pattern),
                props={"registry": self.registry},
            ),
        )
        self._get_editor_state: GetEditorState | None = None
        self._set_editor_state: SetEditorState | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def config(self) -> FormulaPluginConfig:
        return self._config

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def initialized(self) -> bool:
        return self._get_editor_state is not None

    def initialize(self, get_editor_state: GetEditorState, set_editor_state: SetEditorState) -> None:
        self._get_editor_state = get_editor_state
        self._set_editor_state = set_editor_state

    def dispose(self) -> None:
        """Tear down all per-editor state."""

        self.registry.clear()
        self.callbacks.clear()
        self.aria = AriaProps()
        self._get_editor_state = None
        self._set_editor_state = None
        LOGGER.debug("Formula plugin disposed")

    def get_editor_state(self) -> EditorState:
        if self._get_editor_state is None:
            raise RuntimeError("FormulaPlugin.initialize() has not been called")
        return self._get_editor_state()

    def set_editor_state(self, editor_state: EditorState) -> None:
        if self._set_editor_state is None:
            raise RuntimeError("FormulaPlugin.initialize() has not been called")
        self._set_editor_state(editor_state)

    # ------------------------------------------------------------------
    # Decorators & props
    # ------------------------------------------------------------------
    @property
    def decorators(self) -> tuple[DecoratorSpec, ...]:
        return self._decorators

    def composite_decorator(self) -> CompositeDecorator:
        return CompositeDecorator(self._decorators)

    def get_accessibility_props(self) -> dict[str, Any]:
        return {
            "role": "combobox",
            "aria_auto_complete": "list",
            "aria_has_popup": "true" if self.aria.has_popup else "false",
            "aria_expanded": "true" if self.aria.expanded else "false",
            "aria_active_descendant_id": self.aria.active_descendant_id,
            "aria_ownee_id": self.aria.ownee_id,
        }

    def suggestion_props(self) -> dict[str, Any]:
        """Props handed to the suggestions overlay component."""

        return {
            "aria_props": self.aria,
            "callbacks": self.callbacks,
            "theme": self._config.theme,
            "registry": self.registry,
            "entity_mutability": self._config.entity_mutability,
            "position_suggestions": self._position_function,
            "mention_trigger": self._config.mention_trigger,
            "mention_prefix": self._config.mention_prefix,
        }

    # ------------------------------------------------------------------
    # Editor hooks
    # ------------------------------------------------------------------
    def handle_before_input(
        self,
        chars: str | None,
        get_editor_state: GetEditorState | None = None,
        set_editor_state: SetEditorState | None = None,
    ) -> HandleValue:
        """Intercept typed characters before the host applies them."""

        getter = get_editor_state or self.get_editor_state
        setter = set_editor_state or self.set_editor_state
        result = self._inserter.handle_before_input(chars, getter())
        if result.editor_state is not None:
            setter(result.editor_state)
        return result.value

    def on_change(self, editor_state: EditorState) -> EditorState:
        """Snap the selection to entity runs, then defer to the ``on_change`` hook."""

        selection = editor_state.selection
        content = editor_state.content
        start_block = content.block_for_key(selection.start_key)
        if start_block is not None:
            end_block = content.block_for_key(selection.end_key) or start_block
            extended = extend_selection(selection, start_block, end_block)
            if extended is not selection:
                editor_state = editor_state.force_selection(extended)
                self._bus.publish(
                    SelectionExtended(
                        block_key=start_block.key,
                        before=(selection.start_offset, selection.end_offset),
                        after=(extended.start_offset, extended.end_offset),
                    )
                )

        if self.current_search(editor_state) is None:
            self.registry.reset_escape()

        if self.callbacks.is_set(CallbackHook.ON_CHANGE):
            return self.callbacks.invoke(CallbackHook.ON_CHANGE, editor_state)
        return editor_state

    def on_down_arrow(self, event: Any) -> Any:
        return self.callbacks.invoke(CallbackHook.ON_DOWN_ARROW, event)

    def on_up_arrow(self, event: Any) -> Any:
        return self.callbacks.invoke(CallbackHook.ON_UP_ARROW, event)

    def on_tab(self, event: Any) -> Any:
        return self.callbacks.invoke(CallbackHook.ON_TAB, event)

    def on_escape(self, event: Any) -> Any:
        return self.callbacks.invoke(CallbackHook.ON_ESCAPE, event)

    def handle_return(self, event: Any) -> Any:
        return self.callbacks.invoke(CallbackHook.HANDLE_RETURN, event)

    def key_binding_fn(self, event: Any) -> Any:
        return self.callbacks.invoke(CallbackHook.KEY_BINDING_FN, event)

    def handle_key_command(self, command: Any) -> Any:
        return self.callbacks.invoke(CallbackHook.HANDLE_KEY_COMMAND, command)

    # ------------------------------------------------------------------
    # Search helpers
    # ------------------------------------------------------------------
    def current_search(self, editor_state: EditorState) -> SearchText | None:
        """Return the formula being typed at the caret, if any."""

        block = editor_state.anchor_block()
        if block is None:
            return None
        return search_text_at(block.text, editor_state.selection.anchor_offset, self._formula_pattern)

    def filter_suggestions(self, search_value: str | None, suggestions: Iterable[Any]) -> list[Any]:
        return default_suggestions_filter(search_value, suggestions, self._config.suggestion_limit)

    def add_formula(self, editor_state: EditorState, name: str, data: Mapping[str, Any] | None = None) -> EditorState:
        """Commit ``name`` into the formula under the caret as an atomic entity."""

        search = self.current_search(editor_state)
        updated = add_formula(
            editor_state,
            name,
            trigger=self._config.mention_trigger,
            prefix=self._config.mention_prefix,
            mutability=self._config.entity_mutability,
            data=data,
            pattern=self._formula_pattern,
            opening=self._config.opening_delimiter,
            closing=self._config.closing_delimiter,
        )
        if updated is not editor_state and search is not None:
            block_key = editor_state.selection.anchor_key
            block = updated.content.block_for_key(block_key)
            entity_key = block.entity_at(search.begin) if block is not None else None
            if entity_key is not None:
                self._bus.publish(FormulaAdded(block_key=block_key, entity_key=entity_key, name=name))
        return updated
