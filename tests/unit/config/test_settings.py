"""
Unit tests for configuration loading.

Usage:
    pytest tests/unit/config/test_settings.py
"""

import logging

import pydantic
import pytest

from veilleur.config import VeilleurConfig, get_settings, load_config, reset_settings
from veilleur.domain.value_objects import CommitmentLevel

DEFAULT_YAML = """
rpc_url: "http://yaml.test:8899"
default_commitment: "Confirmed"
subscription_queue_size: 64
log_level: "DEBUG"
retry:
  max_attempts: 5
  initial_delay: 0.1
"""


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    (tmp_path / "default.yaml").write_text(DEFAULT_YAML)
    monkeypatch.setenv("VEILLEUR_CONFIG_DIR", str(tmp_path))
    monkeypatch.delenv("VEILLEUR_CONFIG", raising=False)
    monkeypatch.delenv("VEILLEUR_DEFAULT_COMMITMENT", raising=False)
    monkeypatch.setenv("ENV", "test")
    yield tmp_path
    reset_settings()


class TestVeilleurConfig:
    """Unit tests for VeilleurConfig."""

    def test_defaults(self):
        """Test schema defaults."""
        config = VeilleurConfig()

        assert config.default_commitment is CommitmentLevel.FINALIZED
        assert config.subscription_queue_size == 256
        assert config.retry.max_attempts == 3
        assert config.timeouts.subscribe_ack == 15.0

    def test_log_level_validated(self):
        """Test unknown log levels are rejected."""
        with pytest.raises(pydantic.ValidationError):
            VeilleurConfig(log_level="loud")

        assert VeilleurConfig(log_level="WARNING").log_level_number == logging.WARNING

    def test_commitment_validated(self):
        """Test unknown commitments are rejected."""
        with pytest.raises(pydantic.ValidationError):
            VeilleurConfig(default_commitment="recent")

    def test_queue_size_bounds(self):
        """Test the delivery queue must hold at least one item."""
        with pytest.raises(pydantic.ValidationError):
            VeilleurConfig(subscription_queue_size=0)


class TestLoadConfig:
    """Unit tests for YAML + ENV loading."""

    def test_yaml_values(self, config_dir):
        """Test values come from default.yaml."""
        config = load_config()

        assert config.rpc_url == "http://yaml.test:8899"
        assert config.default_commitment is CommitmentLevel.CONFIRMED
        assert config.subscription_queue_size == 64
        assert config.log_level == "debug"
        assert config.retry.max_attempts == 5

    def test_environment_file_overrides_default(self, config_dir):
        """Test the ENV-specific file is merged over default.yaml."""
        (config_dir / "test.yaml").write_text("subscription_queue_size: 8\n")

        config = load_config()

        assert config.subscription_queue_size == 8
        assert config.rpc_url == "http://yaml.test:8899"

    def test_environment_variable_wins(self, config_dir, monkeypatch):
        """Test VEILLEUR_* variables override YAML."""
        monkeypatch.setenv("VEILLEUR_DEFAULT_COMMITMENT", "processed")

        config = load_config()

        assert config.default_commitment is CommitmentLevel.PROCESSED

    def test_nested_environment_variable_wins(self, config_dir, monkeypatch):
        """Test VEILLEUR_<SECTION>__<KEY> overrides one key of a YAML section."""
        (config_dir / "test.yaml").write_text(
            "timeouts:\n  rpc_call: 10.0\n  subscribe_ack: 7.0\n"
        )
        monkeypatch.setenv("VEILLEUR_TIMEOUTS__RPC_CALL", "2.5")
        monkeypatch.setenv("VEILLEUR_RETRY__MAX_ATTEMPTS", "2")

        config = load_config()

        assert config.timeouts.rpc_call == 2.5
        assert config.timeouts.subscribe_ack == 7.0
        assert config.retry.max_attempts == 2
        assert config.retry.initial_delay == 0.1

    def test_settings_singleton(self, config_dir):
        """Test get_settings caches until reset."""
        first = get_settings()

        assert get_settings() is first
        reset_settings()
        assert get_settings() is not first
