"""Typed configuration loader for the twinprobe CLI."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .contracts.error import BadInputError
from .core.primes import DEFAULT_PRIME_MAX, DEFAULT_PRIME_MIN
from .workloads.sources import DEFAULT_DATE_STEP_MS, DEFAULT_WORD_LIST

DEFAULT_LOAD_FACTORS: tuple[float, ...] = (0.50, 0.60, 0.70, 0.80, 0.90, 0.95, 0.99)


def _parse_bool(raw: Any, name: str) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        normalized = raw.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    raise BadInputError(f"{name} must be boolean")


def _optional_int(raw: str) -> int | None:
    return None if raw.strip().lower() in {"", "none", "null"} else int(raw)


def _require_int(raw: Any, name: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise BadInputError(f"{name} must be an integer (got {raw!r})")
    return raw


def _require_str(raw: Any, name: str) -> str:
    if not isinstance(raw, str):
        raise BadInputError(f"{name} must be a string (got {raw!r})")
    return raw


def _require_load_factors(raw: Any) -> list[float]:
    if not isinstance(raw, (list, tuple)):
        raise BadInputError(f"experiment.load_factors must be a list of numbers (got {raw!r})")
    factors: list[float] = []
    for lf in raw:
        if isinstance(lf, bool) or not isinstance(lf, (int, float)):
            raise BadInputError(f"experiment.load_factors entries must be numbers (got {lf!r})")
        factors.append(float(lf))
    return factors


@dataclass
class ExperimentPolicy:
    prime_min: int = DEFAULT_PRIME_MIN
    prime_max: int = DEFAULT_PRIME_MAX
    load_factors: list[float] = field(default_factory=lambda: list(DEFAULT_LOAD_FACTORS))
    seed: int | None = None
    word_list: str = DEFAULT_WORD_LIST
    date_step_ms: int = DEFAULT_DATE_STEP_MS
    dump_dir: str = "."

    def validate(self) -> None:
        if self.prime_min < 0:
            raise BadInputError("experiment.prime_min must be >= 0")
        if self.prime_max < self.prime_min:
            raise BadInputError("experiment.prime_max must be >= experiment.prime_min")
        if not self.load_factors:
            raise BadInputError("experiment.load_factors must not be empty")
        for lf in self.load_factors:
            if not 0.0 < lf <= 1.0:
                raise BadInputError(f"experiment.load_factors entries must be in (0, 1] (got {lf})")
        if self.date_step_ms <= 0:
            raise BadInputError("experiment.date_step_ms must be > 0")
        if not self.word_list:
            raise BadInputError("experiment.word_list must not be empty")


@dataclass
class WatchdogPolicy:
    enabled: bool = True
    avg_probe_warn: float | None = None

    def validate(self) -> None:
        if self.avg_probe_warn is not None and self.avg_probe_warn < 1.0:
            raise BadInputError("watchdog.avg_probe_warn must be >= 1 when set")


@dataclass
class AppConfig:
    experiment: ExperimentPolicy = field(default_factory=ExperimentPolicy)
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
        experiment_data = data.get("experiment", {})
        if not isinstance(experiment_data, dict):
            raise BadInputError("[experiment] section must be a table")
        try:
            experiment = ExperimentPolicy(**experiment_data)
        except TypeError as exc:
            raise BadInputError(f"Unknown [experiment] key: {exc}") from exc
        experiment.prime_min = _require_int(experiment.prime_min, "experiment.prime_min")
        experiment.prime_max = _require_int(experiment.prime_max, "experiment.prime_max")
        experiment.date_step_ms = _require_int(experiment.date_step_ms, "experiment.date_step_ms")
        if experiment.seed is not None:
            experiment.seed = _require_int(experiment.seed, "experiment.seed")
        experiment.word_list = _require_str(experiment.word_list, "experiment.word_list")
        experiment.dump_dir = _require_str(experiment.dump_dir, "experiment.dump_dir")
        experiment.load_factors = _require_load_factors(experiment.load_factors)

        watchdog_data = data.get("watchdog", {})
        if not isinstance(watchdog_data, dict):
            raise BadInputError("[watchdog] section must be a table")
        watchdog_kwargs: dict[str, Any] = {}
        if "enabled" in watchdog_data:
            watchdog_kwargs["enabled"] = _parse_bool(watchdog_data["enabled"], "watchdog.enabled")
        if "avg_probe_warn" in watchdog_data:
            value = watchdog_data["avg_probe_warn"]
            if value is None or (
                isinstance(value, str) and value.strip().lower() in {"none", "null", "disabled", "off"}
            ):
                watchdog_kwargs["avg_probe_warn"] = None
            else:
                try:
                    watchdog_kwargs["avg_probe_warn"] = float(value)
                except (TypeError, ValueError) as exc:
                    raise BadInputError("watchdog.avg_probe_warn must be a number or 'none'") from exc
        return cls(experiment=experiment, watchdog=WatchdogPolicy(**watchdog_kwargs))

    def apply_env_overrides(self, env: Mapping[str, str]) -> None:
        experiment_mapping: dict[str, tuple[str, Callable[[str], Any]]] = {
            "EXPERIMENT_PRIME_MIN": ("prime_min", int),
            "EXPERIMENT_PRIME_MAX": ("prime_max", int),
            "EXPERIMENT_SEED": ("seed", _optional_int),
            "EXPERIMENT_WORD_LIST": ("word_list", str),
            "EXPERIMENT_DATE_STEP_MS": ("date_step_ms", int),
            "EXPERIMENT_DUMP_DIR": ("dump_dir", str),
        }
        for key, (attr, caster) in experiment_mapping.items():
            raw_value = env.get(key)
            if raw_value is None:
                continue
            try:
                value = caster(raw_value)
            except ValueError as exc:
                raise BadInputError(f"Invalid env override {key}={raw_value!r}") from exc
            setattr(self.experiment, attr, value)

        raw_enabled = env.get("WATCHDOG_ENABLED")
        if raw_enabled is not None:
            try:
                self.watchdog.enabled = _parse_bool(raw_enabled, "WATCHDOG_ENABLED")
            except BadInputError as exc:
                raise BadInputError(f"Invalid env override WATCHDOG_ENABLED={raw_enabled!r}") from exc

        raw_warn = env.get("WATCHDOG_AVG_PROBE_WARN")
        if raw_warn is not None:
            try:
                self.watchdog.avg_probe_warn = float(raw_warn)
            except ValueError as exc:
                raise BadInputError(f"Invalid env override WATCHDOG_AVG_PROBE_WARN={raw_warn!r}") from exc

    def validate(self) -> None:
        self.experiment.validate()
        self.watchdog.validate()


DEFAULT_CONFIG = AppConfig()


def load_app_config(path: str | None) -> AppConfig:
    config_path = Path(path) if path else None
    return AppConfig.load(config_path)
