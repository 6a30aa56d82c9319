"""End-to-end tests for the formula plugin facade."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from formula_editor.editor.document_model import EditorState, SelectionState
from formula_editor.plugin.auto_bracket import HandleValue
from formula_editor.plugin.callbacks import CallbackHook
from formula_editor.plugin.config import FormulaPluginConfig
from formula_editor.plugin.events import EventBus, FormulaAdded, SelectionExtended
from formula_editor.plugin.plugin import FormulaPlugin
from formula_editor.plugin.registry import SearchRegistry
from formula_editor.plugin.theme import MentionTheme
from tests.helpers import make_block, make_state


class _Host:
    """Minimal host holding the current editor state."""

    def __init__(self, state: EditorState) -> None:
        self.state = state
        self.commits = 0

    def get(self) -> EditorState:
        return self.state

    def set(self, state: EditorState) -> None:
        self.state = state
        self.commits += 1


def test_plugin_accepts_mapping_config():
    plugin = FormulaPlugin({"mention_trigger": "#", "mention_prefix": "="})

    assert plugin.config.mention_trigger == "#"
    assert plugin.config.mention_prefix == "="


def test_each_plugin_owns_its_registry():
    first = FormulaPlugin()
    second = FormulaPlugin()

    first.registry.register("a")

    assert isinstance(first.registry, SearchRegistry)
    assert second.registry.list_all() == frozenset()


def test_handle_before_input_commits_bracket_pair(plugin: FormulaPlugin):
    host = _Host(make_state(make_block("= "), anchor=("b1", 2)))

    result = plugin.handle_before_input("[", host.get, host.set)

    assert result is HandleValue.HANDLED
    assert host.commits == 1
    assert host.state.content.block_for_key("b1").text == "= []"
    assert host.state.selection == SelectionState.collapsed("b1", 3)


def test_handle_before_input_uses_initialized_accessors(plugin: FormulaPlugin):
    host = _Host(make_state(make_block("[ab]"), anchor=("b1", 2)))
    plugin.initialize(host.get, host.set)

    assert plugin.handle_before_input("*") is HandleValue.HANDLED
    assert plugin.handle_before_input("c") is HandleValue.NOT_HANDLED
    assert host.commits == 0


def test_uninitialized_plugin_refuses_state_access(plugin: FormulaPlugin):
    with pytest.raises(RuntimeError, match="initialize"):
        plugin.get_editor_state()


def test_on_change_snaps_caret_into_entity_run(plugin: FormulaPlugin, event_bus: EventBus):
    seen: list[SelectionExtended] = []
    event_bus.subscribe(SelectionExtended, seen.append)
    state = make_state(make_block("abc[rev]x", {(3, 8): "1"}), anchor=("b1", 5))

    result = plugin.on_change(state)

    assert (result.selection.anchor_offset, result.selection.focus_offset) == (3, 8)
    assert result.selection_forced
    assert seen == [SelectionExtended(block_key="b1", before=(5, 5), after=(3, 8))]


def test_on_change_passes_untagged_state_through(plugin: FormulaPlugin):
    state = make_state(make_block("plain"), anchor=("b1", 2))

    assert plugin.on_change(state) is state


def test_on_change_defers_to_hook(plugin: FormulaPlugin):
    replacement = make_state(make_block("other"))
    hook = MagicMock(return_value=replacement)
    plugin.callbacks.install(CallbackHook.ON_CHANGE, hook)
    state = make_state(make_block("abc[rev]x", {(3, 8): "1"}), anchor=("b1", 5))

    result = plugin.on_change(state)

    assert result is replacement
    forwarded = hook.call_args.args[0]
    assert (forwarded.selection.start_offset, forwarded.selection.end_offset) == (3, 8)


def test_on_change_resets_escape_outside_formula(plugin: FormulaPlugin):
    plugin.registry.escape("b1-1-0")

    plugin.on_change(make_state(make_block("x [ab]"), anchor=("b1", 4)))
    assert plugin.registry.is_escaped("b1-1-0")

    plugin.on_change(make_state(make_block("x [ab]"), anchor=("b1", 1)))
    assert not plugin.registry.is_escaped("b1-1-0")


def test_key_hooks_pass_through_when_absent(plugin: FormulaPlugin):
    event = object()

    assert plugin.on_down_arrow(event) is None
    assert plugin.on_up_arrow(event) is None
    assert plugin.on_tab(event) is None
    assert plugin.on_escape(event) is None
    assert plugin.handle_return(event) is None
    assert plugin.key_binding_fn(event) is None
    assert plugin.handle_key_command("split-block") is None


def test_key_hooks_forward_to_installed_callbacks(plugin: FormulaPlugin):
    event = object()
    plugin.callbacks.install(CallbackHook.ON_ESCAPE, lambda received: ("escaped", received))
    plugin.callbacks.install("handle_return", lambda received: "handled")

    assert plugin.on_escape(event) == ("escaped", event)
    assert plugin.handle_return(event) == "handled"


def test_current_search_reports_formula_under_caret(plugin: FormulaPlugin):
    state = make_state(make_block("go [rev"), anchor=("b1", 7))
    assert plugin.current_search(state) is None

    state = make_state(make_block("go [rev]"), anchor=("b1", 7))
    search = plugin.current_search(state)
    assert search is not None
    assert (search.begin, search.end, search.value) == (3, 8, "rev")


def test_add_formula_commits_entity_and_publishes(plugin: FormulaPlugin, event_bus: EventBus):
    seen: list[FormulaAdded] = []
    event_bus.subscribe(FormulaAdded, seen.append)
    state = make_state(make_block("= [re] + 1"), anchor=("b1", 5))

    updated = plugin.add_formula(state, "revenue")

    block = updated.content.block_for_key("b1")
    assert block.text == "= [revenue] + 1"
    entity_key = block.entity_at(2)
    assert entity_key is not None
    assert updated.content.entity(entity_key).type == "mention"
    assert seen == [FormulaAdded(block_key="b1", entity_key=entity_key, name="revenue")]


def test_committed_formula_then_selects_atomically(plugin: FormulaPlugin):
    state = make_state(make_block("= [re]"), anchor=("b1", 5))
    updated = plugin.add_formula(state, "revenue")

    moved = updated.with_selection(SelectionState.collapsed("b1", 6))
    snapped = plugin.on_change(moved)

    assert (snapped.selection.start_offset, snapped.selection.end_offset) == (2, 11)


def test_decorators_cover_mentions_and_formulas(plugin: FormulaPlugin):
    names = [spec.name for spec in plugin.decorators]

    assert names == ["mention", "formula_suggestions"]
    decorations = plugin.composite_decorator().decorate(make_state(make_block("[a] b")).content)
    assert [(item.decorator, item.start, item.end) for item in decorations] == [("formula_suggestions", 0, 3)]


def test_accessibility_props_reflect_aria_state(plugin: FormulaPlugin):
    assert plugin.get_accessibility_props() == {
        "role": "combobox",
        "aria_auto_complete": "list",
        "aria_has_popup": "false",
        "aria_expanded": "false",
        "aria_active_descendant_id": None,
        "aria_ownee_id": None,
    }

    plugin.aria.expanded = True
    plugin.aria.active_descendant_id = "option-2"

    props = plugin.get_accessibility_props()
    assert props["aria_expanded"] == "true"
    assert props["aria_active_descendant_id"] == "option-2"


def test_suggestion_props_expose_shared_state():
    theme = MentionTheme(mention="formula")
    plugin = FormulaPlugin(FormulaPluginConfig(theme=theme, entity_mutability="SEGMENTED"))

    props = plugin.suggestion_props()

    assert props["registry"] is plugin.registry
    assert props["callbacks"] is plugin.callbacks
    assert props["theme"] is theme
    assert props["entity_mutability"] == "SEGMENTED"
    assert props["mention_trigger"] == "@"


def test_filter_suggestions_uses_configured_limit():
    plugin = FormulaPlugin(FormulaPluginConfig(suggestion_limit=2))
    suggestions = [{"name": "revenue"}, {"name": "reverse"}, {"name": "review"}]

    assert plugin.filter_suggestions("rev", suggestions) == suggestions[:2]


def test_dispose_clears_per_editor_state(plugin: FormulaPlugin):
    host = _Host(make_state(make_block("")))
    plugin.initialize(host.get, host.set)
    plugin.registry.register("a")
    plugin.registry.escape("a")
    plugin.callbacks.install(CallbackHook.ON_TAB, lambda event: True)
    plugin.aria.expanded = True

    plugin.dispose()

    assert plugin.registry.list_all() == frozenset()
    assert plugin.registry.escaped_search is None
    assert plugin.callbacks.active_hooks() == ()
    assert plugin.aria.expanded is False
    assert not plugin.initialized
