"""Tests for configuration classes."""

import os
from unittest.mock import patch

import pytest

from config import (
    AppConfig,
    CORSConfig,
    GameConfig,
    LoggingConfig,
    RateLimitConfig,
    RedisConfig,
    _parse_cors_origins,
)
from shellgame.game import RoundTiming


class TestCORSConfig:
    """Tests for CORSConfig class."""

    def test_cors_default_origins(self):
        with patch.dict(os.environ, {}, clear=True):
            assert "http://localhost:8000" in CORSConfig().allowed_origins

    def test_cors_parses_env_var_with_whitespace(self):
        """Test that origins are split and stripped."""
        with patch.dict(os.environ, {"CORS_ORIGINS": " http://a.test , http://b.test ,"}):
            assert _parse_cors_origins() == ["http://a.test", "http://b.test"]


class TestRateLimitConfig:
    """Tests for RateLimitConfig class."""

    def test_rate_limit_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = RateLimitConfig()
            assert config.enabled is True
            assert config.requests_per_minute == 60

    def test_rate_limit_from_env(self):
        with patch.dict(os.environ, {"RATE_LIMIT_ENABLED": "FALSE", "RATE_LIMIT_RPM": "5"}):
            config = RateLimitConfig()
            assert config.enabled is False
            assert config.requests_per_minute == 5


class TestRedisConfig:
    """Tests for RedisConfig class."""

    def test_redis_url_without_password(self):
        with patch.dict(os.environ, {}, clear=True):
            assert RedisConfig().url == "redis://localhost:6379/0"

    def test_redis_url_with_password(self):
        env = {"REDIS_HOST": "cache", "REDIS_PASSWORD": "pw", "REDIS_DB": "2"}
        with patch.dict(os.environ, env, clear=True):
            assert RedisConfig().url == "redis://:pw@cache:6379/2"

    def test_redis_can_be_disabled(self):
        with patch.dict(os.environ, {"REDIS_ENABLED": "false"}):
            assert RedisConfig().enabled is False


class TestLoggingConfig:
    """Tests for LoggingConfig class."""

    def test_level_uppercased(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "debug"}):
            assert LoggingConfig().level == "DEBUG"

    def test_default_level(self):
        with patch.dict(os.environ, {}, clear=True):
            assert LoggingConfig().level == "INFO"


class TestGameConfig:
    """Tests for GameConfig class."""

    def test_game_config_defaults(self):
        """Test default pacing matches the engine defaults."""
        with patch.dict(os.environ, {}, clear=True):
            assert GameConfig().timing() == RoundTiming()

    def test_game_config_from_env(self):
        env = {
            "SHELL_PLACING_DWELL": "0.5",
            "SHELL_REVEAL_DELAY": "1",
            "SHELL_MIN_SHUFFLES": "4",
            "SHELL_MAX_SHUFFLES": "6",
        }
        with patch.dict(os.environ, env, clear=True):
            timing = GameConfig().timing()

        assert timing.placing_dwell == 0.5
        assert timing.reveal_delay == 1.0
        assert (timing.min_shuffles, timing.max_shuffles) == (4, 6)

    def test_bad_range_rejected(self):
        """Test that an inverted shuffle range fails when the timing is built."""
        env = {"SHELL_MIN_SHUFFLES": "6", "SHELL_MAX_SHUFFLES": "2"}
        with patch.dict(os.environ, env, clear=True):
            game_config = GameConfig()
        with pytest.raises(ValueError):
            game_config.timing()

    def test_game_config_frozen(self):
        with pytest.raises(AttributeError):
            GameConfig().placing_dwell = 3


class TestAppConfig:
    """Tests for AppConfig class."""

    def test_app_config_has_nested_configs(self):
        config = AppConfig()
        assert isinstance(config.game, GameConfig)
        assert isinstance(config.logging, LoggingConfig)
        assert isinstance(config.redis, RedisConfig)
        assert config.session_ttl == 3600

    def test_app_config_debug_from_env(self):
        with patch.dict(os.environ, {"DEBUG": "true"}):
            assert AppConfig().debug is True
