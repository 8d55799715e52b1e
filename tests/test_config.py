"""
Unit tests for utils/config.py.
"""
from utils.config import AIConfig, Config, ScoringThresholds, config


class TestConfig:
    def test_singleton(self):
        assert Config() is config

    def test_thresholds_are_copies(self):
        original = config.get_thresholds().low_performance
        thresholds = config.get_thresholds()
        thresholds.low_performance = original + 1
        assert config.get_thresholds().low_performance == original
        assert isinstance(thresholds, ScoringThresholds)

    def test_app_settings_have_defaults(self):
        assert config.get_app_setting("MISSING_SETTING", "fallback") == "fallback"
        assert isinstance(config.get_app_setting("TOP_ALERTS_LIMIT"), int)

    def test_unknown_feature_defaults_to_enabled(self):
        assert config.is_feature_enabled("SOMETHING_NEW") is True

    def test_ai_config_without_key(self):
        assert AIConfig().is_configured() is False
        assert AIConfig(api_key="k").is_configured() is True
