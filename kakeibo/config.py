"""User configuration: budgets, fixed categories, theme and font scale.

Config lives in the backend's ``config`` store as ``{key, value}`` records
(``budgets``, ``fixed``, ``theme``, ``fontSize``). It is loaded lazily and
every mutation persists the changed key immediately. Values are immutable:
each operation returns the updated :class:`Config`.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from .backends.base import CONFIG, StorageBackend
from .logging_setup import get_logger
from .models import MAX_CONFIG_NAME_LENGTH

DEFAULT_FIXED: tuple[str, ...] = ("住宅", "保険", "通信費", "教養・教育")
THEMES: tuple[str, ...] = ("dark", "light")
DEFAULT_THEME = "dark"
# name → scale; labels are 小 / 中 / 大 in the UI.
FONT_SIZES: dict[str, float] = {"small": 1.0, "medium": 1.15, "large": 1.3}
DEFAULT_FONT_SCALE = FONT_SIZES["medium"]

BUDGETS_KEY = "budgets"
FIXED_KEY = "fixed"
THEME_KEY = "theme"
FONT_SIZE_KEY = "fontSize"

_logger = get_logger("kakeibo.config")


@dataclass(frozen=True, slots=True)
class Config:
    budgets: dict[str, int] = field(default_factory=dict)
    # Ordered, unique.
    fixed: tuple[str, ...] = DEFAULT_FIXED
    theme: str = DEFAULT_THEME
    font_scale: float = DEFAULT_FONT_SCALE

    def is_fixed(self, category: str) -> bool:
        return category in self.fixed

    def budget_for(self, category: str) -> int:
        return self.budgets.get(category, 0)

    def to_export(self) -> dict[str, Any]:
        return {
            BUDGETS_KEY: dict(self.budgets),
            FIXED_KEY: list(self.fixed),
            THEME_KEY: self.theme,
            FONT_SIZE_KEY: self.font_scale,
        }


def _check_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValueError("category name must not be empty")
    if len(name) > MAX_CONFIG_NAME_LENGTH:
        raise ValueError(f"category name longer than {MAX_CONFIG_NAME_LENGTH} characters: {name!r}")
    return name


def _value(backend: StorageBackend, key: str) -> Any:
    record = backend.get_by_key(CONFIG, key)
    return None if record is None else record.get("value")


def _put(backend: StorageBackend, key: str, value: Any) -> None:
    backend.put(CONFIG, {"key": key, "value": value})


def load_config(backend: StorageBackend) -> Config:
    """Read Config from ``backend``, falling back to defaults per key."""

    budgets = _value(backend, BUDGETS_KEY)
    fixed = _value(backend, FIXED_KEY)
    theme = _value(backend, THEME_KEY)
    font_scale = _value(backend, FONT_SIZE_KEY)
    return Config(
        budgets=dict(budgets) if isinstance(budgets, Mapping) else {},
        fixed=tuple(dict.fromkeys(fixed)) if isinstance(fixed, list) else DEFAULT_FIXED,
        theme=theme if theme in THEMES else DEFAULT_THEME,
        font_scale=(
            float(font_scale) if font_scale in FONT_SIZES.values() else DEFAULT_FONT_SCALE
        ),
    )


def save_config(backend: StorageBackend, config: Config) -> None:
    """Persist every key of ``config``."""

    for key, value in config.to_export().items():
        _put(backend, key, value)


def set_budget(backend: StorageBackend, config: Config, category: str, amount: int) -> Config:
    category = _check_name(category)
    budgets = dict(config.budgets)
    budgets[category] = int(amount)
    _put(backend, BUDGETS_KEY, budgets)
    return replace(config, budgets=budgets)


def toggle_fixed(backend: StorageBackend, config: Config, category: str) -> Config:
    """Mark ``category`` as fixed, or unmark it when it already is."""

    category = _check_name(category)
    if category in config.fixed:
        fixed = tuple(c for c in config.fixed if c != category)
    else:
        fixed = (*config.fixed, category)
    _put(backend, FIXED_KEY, list(fixed))
    return replace(config, fixed=fixed)


def set_theme(backend: StorageBackend, config: Config, theme: str) -> Config:
    if theme not in THEMES:
        raise ValueError(f"theme must be one of {', '.join(THEMES)}; got {theme!r}")
    _put(backend, THEME_KEY, theme)
    return replace(config, theme=theme)


def resolve_font_scale(value: str | float) -> float:
    """Accept a size name (``small``/``medium``/``large``) or one of its scales."""

    if isinstance(value, str):
        named = FONT_SIZES.get(value.strip().lower())
        if named is not None:
            return named
        try:
            value = float(value)
        except ValueError:
            value = -1.0
    if value not in FONT_SIZES.values():
        choices = ", ".join(f"{k} ({v})" for k, v in FONT_SIZES.items())
        raise ValueError(f"font size must be one of {choices}; got {value!r}")
    return float(value)


def set_font_scale(backend: StorageBackend, config: Config, value: str | float) -> Config:
    scale = resolve_font_scale(value)
    _put(backend, FONT_SIZE_KEY, scale)
    return replace(config, font_scale=scale)


def register_categories(
    backend: StorageBackend, config: Config, categories: Iterable[str]
) -> Config:
    """Give every category without a budget a budget of 0."""

    budgets = dict(config.budgets)
    added = [c for c in categories if c not in budgets]
    if not added:
        return config
    for c in added:
        budgets[c] = 0
    _put(backend, BUDGETS_KEY, budgets)
    _logger.debug("registered %d new categories: %s", len(added), ", ".join(added))
    return replace(config, budgets=budgets)


def reset_config(backend: StorageBackend) -> Config:
    """Drop every stored setting and return the defaults."""

    backend.clear(CONFIG)
    return Config()


__all__ = [
    "Config",
    "DEFAULT_FIXED",
    "DEFAULT_FONT_SCALE",
    "DEFAULT_THEME",
    "FONT_SIZES",
    "THEMES",
    "load_config",
    "register_categories",
    "reset_config",
    "resolve_font_scale",
    "save_config",
    "set_budget",
    "set_font_scale",
    "set_theme",
    "toggle_fixed",
]
