"""Plugin configuration dataclass and YAML/JSON persistence helpers."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Pattern

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ..editor.document_model import ENTITY_MUTABILITY_CHOICES, EntityMutability
from .theme import MentionTheme

__all__ = ["ConfigError", "ConfigStore", "FormulaPluginConfig"]

LOGGER = logging.getLogger(__name__)
_DEFAULT_CONFIG_PATH = Path.home() / ".formula_editor" / "config.yaml"
_ENV_OVERRIDES: Mapping[str, str] = {
    "FORMULA_EDITOR_TRIGGER": "mention_trigger",
    "FORMULA_EDITOR_PREFIX": "mention_prefix",
    "FORMULA_EDITOR_PATTERN": "formula_pattern",
    "FORMULA_EDITOR_OPERATOR_PATTERN": "operator_pattern",
    "FORMULA_EDITOR_ENTITY_MUTABILITY": "entity_mutability",
}
_INT_ENV_OVERRIDES: Mapping[str, str] = {
    "FORMULA_EDITOR_SUGGESTION_LIMIT": "suggestion_limit",
}
_STRING_FIELDS = (
    "mention_trigger",
    "mention_prefix",
    "opening_delimiter",
    "closing_delimiter",
    "formula_pattern",
    "operator_pattern",
    "entity_mutability",
)
_OPTIONAL_FIELDS = frozenset({"formula_pattern"})


class ConfigError(ValueError):
    """Raised when a configuration value cannot be used."""

    def __init__(self, message: str, *, field_name: str | None = None) -> None:
        super().__init__(message)
        self.field_name = field_name


@dataclass(slots=True)
class FormulaPluginConfig:
    """Construction-time options for :class:`~formula_editor.plugin.plugin.FormulaPlugin`."""

    mention_trigger: str = "@"
    mention_prefix: str = ""
    opening_delimiter: str = "["
    closing_delimiter: str = "]"
    formula_pattern: str | None = None
    operator_pattern: str = r"[-0-9 .%^&*()_+\"'/]"
    entity_mutability: EntityMutability = "IMMUTABLE"
    suggestion_limit: int = 5
    theme: MentionTheme = field(default_factory=MentionTheme)

    def __post_init__(self) -> None:
        if isinstance(self.theme, Mapping):
            self.theme = MentionTheme.from_mapping(self.theme)
        self.validate()

    def validate(self) -> None:
        """Raise :class:`ConfigError` for values the plugin cannot work with."""

        for name in _STRING_FIELDS:
            value = getattr(self, name)
            if value is None and name in _OPTIONAL_FIELDS:
                continue
            if not isinstance(value, str):
                raise ConfigError(f"{name} must be a string, got {type(value).__name__}", field_name=name)
        self.suggestion_limit = _coerce_limit(self.suggestion_limit)
        if not self.mention_trigger:
            raise ConfigError("mention_trigger cannot be empty", field_name="mention_trigger")
        for name in ("opening_delimiter", "closing_delimiter"):
            value = getattr(self, name)
            if len(value) != 1:
                raise ConfigError(f"{name} must be a single character, got {value!r}", field_name=name)
        if self.opening_delimiter == self.closing_delimiter:
            raise ConfigError("opening and closing delimiters must differ", field_name="closing_delimiter")
        if self.entity_mutability not in ENTITY_MUTABILITY_CHOICES:
            raise ConfigError(
                f"entity_mutability must be one of {', '.join(ENTITY_MUTABILITY_CHOICES)}",
                field_name="entity_mutability",
            )
        if self.suggestion_limit < 1:
            raise ConfigError("suggestion_limit must be positive", field_name="suggestion_limit")
        for name in ("formula_pattern", "operator_pattern"):
            source = getattr(self, name)
            if source is None:
                continue
            try:
                re.compile(source)
            except re.error as exc:
                raise ConfigError(f"{name} is not a valid regular expression: {exc}", field_name=name) from exc

    @property
    def compiled_formula_pattern(self) -> Pattern[str]:
        """Pattern matching one formula; derived from the delimiters when unset."""

        if self.formula_pattern:
            return re.compile(self.formula_pattern)
        opening = re.escape(self.opening_delimiter)
        closing = re.escape(self.closing_delimiter)
        return re.compile(f"{opening}(.*?){closing}")

    @property
    def compiled_operator_pattern(self) -> Pattern[str]:
        return re.compile(self.operator_pattern)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any] | None) -> FormulaPluginConfig:
        data = _filter_fields(payload or {})
        theme_payload = data.pop("theme", None)
        config = cls(**data)
        if isinstance(theme_payload, Mapping):
            config.theme = MentionTheme.from_mapping(theme_payload)
        return config

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {item.name: getattr(self, item.name) for item in fields(self)}
        payload["theme"] = self.theme.to_dict()
        return payload

    def merged(self, **changes: Any) -> FormulaPluginConfig:
        return replace(self, **changes)


class ConfigStore:
    """Persistence adapter for :class:`FormulaPluginConfig` files (YAML or JSON)."""

    def __init__(self, path: Path | str | None = None) -> None:
        self._path = Path(path).expanduser() if path is not None else _DEFAULT_CONFIG_PATH

    @property
    def path(self) -> Path:
        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> FormulaPluginConfig:
        """Load configuration from disk, then apply environment and explicit overrides."""

        payload = self._read_payload()
        _apply_env_overrides(payload)
        if overrides:
            payload.update(overrides)
        config = FormulaPluginConfig.from_mapping(payload)
        LOGGER.debug("Loaded formula plugin config from %s (trigger=%s)", self._path, config.mention_trigger)
        return config

    def save(self, config: FormulaPluginConfig) -> Path:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        yaml = YAML(typ="safe")
        yaml.default_flow_style = False
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            yaml.dump(config.to_dict(), handle)
        tmp_path.replace(self._path)
        return self._path

    def _read_payload(self) -> MutableMapping[str, Any]:
        if not self._path.exists():
            return {}
        yaml = YAML(typ="safe")
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                data = yaml.load(handle)
        except YAMLError as exc:
            raise ConfigError(f"Unable to parse {self._path}: {exc}") from exc
        if data is None:
            return {}
        if not isinstance(data, Mapping):
            raise ConfigError(f"{self._path} must contain a mapping at the top level")
        return dict(data)


def _coerce_limit(value: Any) -> int:
    # YAML may quote numbers; booleans are ints to Python but never a limit
    if isinstance(value, bool):
        raise ConfigError("suggestion_limit must be an integer", field_name="suggestion_limit")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"suggestion_limit must be an integer, got {value!r}", field_name="suggestion_limit") from exc


def _filter_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    known = {item.name for item in fields(FormulaPluginConfig)}
    data: Dict[str, Any] = {}
    for key, value in payload.items():
        if key in known:
            data[key] = value
        else:
            LOGGER.debug("Ignoring unknown config key %s", key)
    return data


def _apply_env_overrides(payload: MutableMapping[str, Any]) -> None:
    for env_name, field_name in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is not None and value != "":
            payload[field_name] = value
    for env_name, field_name in _INT_ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is None or not value.strip():
            continue
        try:
            payload[field_name] = int(value)
        except ValueError:
            LOGGER.warning("Ignoring non-integer %s=%r", env_name, value)
