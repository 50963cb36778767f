"""Tests for configuration loading."""

import pytest
import yaml

from token_sentinel.config import SentinelConfig, load_config
from token_sentinel.errors import ConfigError


class TestSentinelConfig:
    """Test config defaults and validation."""

    def test_defaults(self):
        config = SentinelConfig()
        assert config.high_risk_threshold == 0.7
        assert config.medium_risk_threshold == 0.4
        assert config.min_liquidity_usd == 1000.0
        assert config.default_max_risk_score == 0.6
        assert config.batch_size == 5
        assert config.backtest_seed == 42

    def test_from_config_ignores_unknown_keys(self):
        config = SentinelConfig.from_config({"batch_size": 3, "unknown": True})
        assert config.batch_size == 3

    @pytest.mark.parametrize(
        "values",
        [
            {"high_risk_threshold": 1.5},
            {"medium_risk_threshold": 0.8, "high_risk_threshold": 0.7},
            {"critical_risk_threshold": 0.5},
            {"batch_size": 0},
            {"min_liquidity_usd": -1},
        ],
    )
    def test_invalid_values_rejected(self, values):
        with pytest.raises(ConfigError):
            SentinelConfig.from_config(values)


class TestLoadConfig:
    """Test YAML and environment layering."""

    def test_yaml_section(self, tmp_path):
        path = tmp_path / "sentinel.yaml"
        path.write_text(yaml.safe_dump({"token_sentinel": {"batch_size": 2, "simulation_profile": "aggressive"}}))

        config = load_config(path, env={})
        assert config.batch_size == 2
        assert config.simulation_profile == "aggressive"

    def test_env_overrides_yaml(self, tmp_path):
        path = tmp_path / "sentinel.yaml"
        path.write_text(yaml.safe_dump({"high_risk_threshold": 0.75}))

        config = load_config(path, env={"HIGH_RISK_THRESHOLD": "0.8", "MIN_LIQUIDITY_USD": "2500"})
        assert config.high_risk_threshold == 0.8
        assert config.min_liquidity_usd == 2500.0

    def test_medium_threshold_tunes_default_profile(self):
        config = load_config(env={"MEDIUM_RISK_THRESHOLD": "0.45"})
        assert config.medium_risk_threshold == 0.45
        assert config.default_max_risk_score == 0.45

    def test_invalid_env_value(self):
        with pytest.raises(ConfigError):
            load_config(env={"SENTINEL_BATCH_SIZE": "many"})

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "absent.yaml", env={})
