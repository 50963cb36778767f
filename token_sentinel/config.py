"""
Configuration for the token risk sentinel.

Values come from (lowest to highest precedence) the dataclass defaults, an
optional YAML file and the process environment (``.env`` files are honoured).
"""

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from dotenv import load_dotenv

from .errors import ConfigError


@dataclass
class SentinelConfig:
    """Tunable thresholds and scheduling parameters.

    The probability cutoffs are heuristics without historical calibration and
    are exposed here so they can be tuned per deployment.
    """

    # Aggregator
    high_risk_threshold: float = 0.7
    medium_risk_threshold: float = 0.4
    critical_risk_threshold: float = 0.9
    # Recommendation cutoffs: AVOID uses avoid_risk_score
    extreme_caution_risk_score: float = 0.6
    monitor_risk_score: float = 0.3

    # Analyzer verdicts
    honeypot_threshold: float = 0.6
    rugpull_threshold: float = 0.4

    # Simulator
    min_liquidity_usd: float = 1000.0
    avoid_risk_score: float = 0.8
    default_max_risk_score: float = 0.6

    # Scheduling
    analysis_interval: float = 60.0
    simulation_interval: float = 300.0
    batch_size: int = 5
    batch_delay: float = 1.0
    reanalysis_max_age: float = 3600.0
    simulation_risk_level: str = "medium"
    simulation_token_limit: int = 20
    simulation_profile: str = "moderate"

    # Backtesting
    backtest_seed: Optional[int] = 42
    accuracy_window_days: int = 30

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "SentinelConfig":
        """Instantiate from a mapping, using defaults for missing keys."""
        params = {}
        for f in dataclasses.fields(cls):
            if f.name in cfg and cfg[f.name] is not None:
                params[f.name] = cfg[f.name]
        config = cls(**params)
        config.validate()
        return config

    def validate(self) -> None:
        for name in (
            "high_risk_threshold",
            "medium_risk_threshold",
            "critical_risk_threshold",
            "honeypot_threshold",
            "rugpull_threshold",
            "avoid_risk_score",
            "extreme_caution_risk_score",
            "monitor_risk_score",
            "default_max_risk_score",
        ):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigError(f"{name} must be within [0, 1], got {value}")
        if self.medium_risk_threshold >= self.high_risk_threshold:
            raise ConfigError(
                "medium_risk_threshold must be lower than high_risk_threshold"
            )
        if self.critical_risk_threshold < self.high_risk_threshold:
            raise ConfigError(
                "critical_risk_threshold must not be lower than high_risk_threshold"
            )
        if not self.monitor_risk_score <= self.extreme_caution_risk_score <= self.avoid_risk_score:
            raise ConfigError(
                "recommendation cutoffs must satisfy "
                "monitor_risk_score <= extreme_caution_risk_score <= avoid_risk_score"
            )
        if self.batch_size < 1:
            raise ConfigError("batch_size must be at least 1")
        if self.min_liquidity_usd < 0:
            raise ConfigError("min_liquidity_usd must not be negative")

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


# environment variable -> (field, type)
ENV_OVERRIDES = {
    "HIGH_RISK_THRESHOLD": ("high_risk_threshold", float),
    "MEDIUM_RISK_THRESHOLD": ("medium_risk_threshold", float),
    "MIN_LIQUIDITY_USD": ("min_liquidity_usd", float),
    "SENTINEL_ANALYSIS_INTERVAL": ("analysis_interval", float),
    "SENTINEL_SIMULATION_INTERVAL": ("simulation_interval", float),
    "SENTINEL_BATCH_SIZE": ("batch_size", int),
    "SENTINEL_BATCH_DELAY": ("batch_delay", float),
    "SENTINEL_BACKTEST_SEED": ("backtest_seed", int),
}


def _read_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    file = Path(path)
    if not file.exists():
        raise ConfigError(f"Config file not found: {file}")
    with open(file, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {file} must contain a mapping")
    return data.get("token_sentinel", data)


def load_config(
    path: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> SentinelConfig:
    """Build a :class:`SentinelConfig` from YAML and environment variables.

    Parameters
    ----------
    path : str or Path, optional
        YAML file with either a ``token_sentinel`` section or top-level keys.
    env : Mapping, optional
        Environment to read overrides from. Defaults to ``os.environ`` after
        loading any ``.env`` file.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    cfg: Dict[str, Any] = _read_yaml(path) if path else {}

    for env_key, (field_name, cast) in ENV_OVERRIDES.items():
        raw = env.get(env_key)
        if raw is None or raw == "":
            continue
        try:
            cfg[field_name] = cast(raw)
        except ValueError as exc:
            raise ConfigError(f"Invalid value for {env_key}: {raw!r}") from exc

    # The default simulator profile follows MEDIUM_RISK_THRESHOLD when it is set
    if env.get("MEDIUM_RISK_THRESHOLD") and "default_max_risk_score" not in cfg:
        cfg["default_max_risk_score"] = cfg["medium_risk_threshold"]

    return SentinelConfig.from_config(cfg)
