"""Formula plugin components."""

from .auto_bracket import AutoBracketInserter, BeforeInputResult, HandleValue
from .callbacks import CallbackHook, PluginCallbacks
from .config import ConfigError, ConfigStore, FormulaPluginConfig
from .events import EventBus
from .plugin import AriaProps, FormulaPlugin
from .registry import SearchRegistry, UnknownSearchError
from .selection import extend_selection
from .strategy import dispatch_spans, formula_suggestions_strategy, mention_strategy
from .theme import MentionTheme

__all__ = [
    "AriaProps",
    "AutoBracketInserter",
    "BeforeInputResult",
    "CallbackHook",
    "ConfigError",
    "ConfigStore",
    "EventBus",
    "FormulaPlugin",
    "FormulaPluginConfig",
    "HandleValue",
    "MentionTheme",
    "PluginCallbacks",
    "SearchRegistry",
    "UnknownSearchError",
    "dispatch_spans",
    "extend_selection",
    "formula_suggestions_strategy",
    "mention_strategy",
]
