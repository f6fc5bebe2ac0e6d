"""Typed configuration loader for probemap."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .contracts.error import BadInputError
from .core.maps import DEFAULT_CAPACITY, ProbingConfig

_TRUE_WORDS = {"1", "true", "yes", "on"}
_FALSE_WORDS = {"0", "false", "no", "off"}
_NONE_WORDS = {"none", "null", "disabled", "off"}


@dataclass
class ProbingPolicy:
    default_capacity: int = DEFAULT_CAPACITY
    max_load: float = 0.5
    min_load: float = 0.125

    def validate(self) -> None:
        if self.default_capacity <= 0:
            raise BadInputError("probing.default_capacity must be > 0")
        if not 0.0 < self.max_load <= 1.0:
            raise BadInputError("probing.max_load must be in (0, 1]")
        if not 0.0 < self.min_load < self.max_load:
            raise BadInputError("probing.min_load must be in (0, max_load)")
        if self.min_load * 2 > self.max_load:
            raise BadInputError(
                "probing.min_load must be at most half of probing.max_load",
                hint="otherwise a shrink can push the table straight back over max_load",
            )


@dataclass
class WatchdogPolicy:
    enabled: bool = True
    probe_length_warn: int | None = 16

    def validate(self) -> None:
        if self.probe_length_warn is not None and self.probe_length_warn <= 0:
            raise BadInputError("watchdog.probe_length_warn must be > 0 when set")


def _coerce_bool(raw: Any, name: str) -> bool:
    if isinstance(raw, str):
        normalized = raw.strip().lower()
        if normalized in _TRUE_WORDS:
            return True
        if normalized in _FALSE_WORDS:
            return False
        raise BadInputError(f"{name} must be boolean")
    return bool(raw)


def _coerce_optional_int(raw: Any, name: str) -> int | None:
    if raw is None:
        return None
    if isinstance(raw, str) and raw.strip().lower() in _NONE_WORDS:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise BadInputError(f"{name} must be an integer or 'none'") from exc


@dataclass
class AppConfig:
    probing: ProbingPolicy = field(default_factory=ProbingPolicy)
    watchdog: WatchdogPolicy = field(default_factory=WatchdogPolicy)

    @classmethod
    def load(cls, path: Path | None) -> AppConfig:
        if path is None:
            cfg = cls()
        else:
            try:
                data = tomllib.loads(path.read_text(encoding="utf-8"))
            except FileNotFoundError as exc:
                raise BadInputError(f"Config file not found: {path}") from exc
            except tomllib.TOMLDecodeError as exc:
                raise BadInputError(f"Invalid TOML: {exc}") from exc
            cfg = cls.from_dict(data)
        cfg.apply_env_overrides(os.environ)
        cfg.validate()
        return cfg

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppConfig:
        probing_data = data.get("probing", {})
        if not isinstance(probing_data, dict):
            raise BadInputError("[probing] section must be a table")
        try:
            probing = ProbingPolicy(**probing_data)
        except TypeError as exc:
            raise BadInputError(f"Unknown key in [probing]: {exc}") from exc

        watchdog_data = data.get("watchdog", {})
        if not isinstance(watchdog_data, dict):
            raise BadInputError("[watchdog] section must be a table")
        unknown = set(watchdog_data) - {"enabled", "probe_length_warn"}
        if unknown:
            raise BadInputError(f"Unknown key(s) in [watchdog]: {', '.join(sorted(unknown))}")
        watchdog_kwargs: dict[str, Any] = {}
        if "enabled" in watchdog_data:
            watchdog_kwargs["enabled"] = _coerce_bool(watchdog_data["enabled"], "watchdog.enabled")
        if "probe_length_warn" in watchdog_data:
            watchdog_kwargs["probe_length_warn"] = _coerce_optional_int(
                watchdog_data["probe_length_warn"], "watchdog.probe_length_warn"
            )
        return cls(probing=probing, watchdog=WatchdogPolicy(**watchdog_kwargs))

    def apply_env_overrides(self, env: Mapping[str, str]) -> None:
        probing_mapping: dict[str, tuple[str, Callable[[str], Any]]] = {
            "PROBING_DEFAULT_CAPACITY": ("default_capacity", int),
            "PROBING_MAX_LOAD": ("max_load", float),
            "PROBING_MIN_LOAD": ("min_load", float),
        }
        for key, (attr, caster) in probing_mapping.items():
            raw_value = env.get(key)
            if raw_value is None:
                continue
            try:
                value = caster(raw_value)
            except ValueError as exc:
                raise BadInputError(f"Invalid env override {key}={raw_value!r}") from exc
            setattr(self.probing, attr, value)

        raw_enabled = env.get("WATCHDOG_ENABLED")
        if raw_enabled is not None:
            try:
                self.watchdog.enabled = _coerce_bool(raw_enabled, "WATCHDOG_ENABLED")
            except BadInputError as exc:
                raise BadInputError(f"Invalid env override WATCHDOG_ENABLED={raw_enabled!r}") from exc

        raw_warn = env.get("WATCHDOG_PROBE_WARN")
        if raw_warn is not None:
            try:
                self.watchdog.probe_length_warn = _coerce_optional_int(raw_warn, "WATCHDOG_PROBE_WARN")
            except BadInputError as exc:
                raise BadInputError(f"Invalid env override WATCHDOG_PROBE_WARN={raw_warn!r}") from exc

    def validate(self) -> None:
        self.probing.validate()
        self.watchdog.validate()

    def to_probing_config(self) -> ProbingConfig:
        """Build the core map configuration described by this app config."""

        warn = self.watchdog.probe_length_warn if self.watchdog.enabled else None
        return ProbingConfig(
            default_capacity=self.probing.default_capacity,
            max_load=self.probing.max_load,
            min_load=self.probing.min_load,
            probe_length_warn=warn,
        )


DEFAULT_CONFIG = AppConfig()


def load_app_config(path: str | None) -> AppConfig:
    config_path = Path(path) if path else None
    return AppConfig.load(config_path)
