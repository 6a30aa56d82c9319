"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from formula_editor.plugin.config import FormulaPluginConfig
from formula_editor.plugin.events import EventBus
from formula_editor.plugin.plugin import FormulaPlugin
from formula_editor.plugin.registry import SearchRegistry


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def registry(event_bus: EventBus) -> SearchRegistry:
    return SearchRegistry(event_bus=event_bus)


@pytest.fixture
def plugin(event_bus: EventBus) -> FormulaPlugin:
    return FormulaPlugin(FormulaPluginConfig(), event_bus=event_bus)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer overrides out of config-loading tests."""

    for name in (
        "FORMULA_EDITOR_TRIGGER",
        "FORMULA_EDITOR_PREFIX",
        "FORMULA_EDITOR_PATTERN",
        "FORMULA_EDITOR_OPERATOR_PATTERN",
        "FORMULA_EDITOR_ENTITY_MUTABILITY",
        "FORMULA_EDITOR_SUGGESTION_LIMIT",
        "FORMULA_EDITOR_LOG_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
