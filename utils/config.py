# utils/config.py
"""
Centralized Configuration Management

Version: 2.0.0
Features:
- Support both local (.env) and Streamlit Cloud (secrets.toml)
- Singleton pattern for efficiency
- Type-safe getters with defaults
- Scoring thresholds supplied as configuration, never inferred
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from typing import Dict, Any, Optional
from dataclasses import dataclass

# Initialize logger
logger = logging.getLogger(__name__)


def is_running_on_streamlit_cloud() -> bool:
    """Detect if running on Streamlit Cloud"""
    try:
        import streamlit as st
        return hasattr(st, 'secrets') and len(st.secrets) > 0
    except Exception:
        return False


@dataclass
class ScoringThresholds:
    """Alert threshold configuration container"""
    low_performance: float = 75.0
    pillar_risk: float = 75.0
    stale_plan_days: int = 30

    def to_dict(self) -> Dict[str, Any]:
        return {
            'low_performance': self.low_performance,
            'pillar_risk': self.pillar_risk,
            'stale_plan_days': self.stale_plan_days,
        }


@dataclass
class AIConfig:
    """Generative AI (Gemini) configuration container"""
    api_key: Optional[str] = None
    model: str = "gemini-2.5-flash"
    timeout_seconds: float = 30.0
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    def is_configured(self) -> bool:
        return bool(self.api_key)


class Config:
    """
    Centralized configuration management

    Usage:
        from utils.config import config

        # Alert thresholds
        thresholds = config.get_thresholds()

        # AI collaborator
        ai_config = config.get_ai_config()

        # App settings
        limit = config.get_app_setting("TOP_ALERTS_LIMIT", 5)

        # Feature flags
        if config.is_feature_enabled("AI_SUMMARY"):
            ...
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.is_cloud = is_running_on_streamlit_cloud()
        self._load_config()
        self._initialized = True

    def _load_config(self):
        """Load configuration based on environment"""
        if self.is_cloud:
            self._load_cloud_config()
        else:
            self._load_local_config()

        self._load_app_config()
        self._log_config_status()

    def _load_cloud_config(self):
        """Load configuration from Streamlit Cloud secrets"""
        import streamlit as st

        scoring_secrets = st.secrets.get("SCORING", {})
        self._thresholds = ScoringThresholds(
            low_performance=float(scoring_secrets.get("LOW_PERFORMANCE_THRESHOLD", 75)),
            pillar_risk=float(scoring_secrets.get("PILLAR_RISK_THRESHOLD", 75)),
            stale_plan_days=int(scoring_secrets.get("STALE_PLAN_DAYS", 30)),
        )

        ai_secrets = st.secrets.get("AI", {})
        self._ai_config = AIConfig(
            api_key=ai_secrets.get("GEMINI_API_KEY"),
            model=ai_secrets.get("GEMINI_MODEL", "gemini-2.5-flash"),
            timeout_seconds=float(ai_secrets.get("AI_TIMEOUT_SECONDS", 30)),
        )

        logger.info("☁️ Running in STREAMLIT CLOUD")

    def _load_local_config(self):
        """Load configuration from local .env file"""
        env_paths = [
            Path.cwd() / ".env",
            Path(__file__).parent.parent / ".env",
        ]

        for env_path in env_paths:
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded .env from: {env_path}")
                break

        self._thresholds = ScoringThresholds(
            low_performance=float(os.getenv("LOW_PERFORMANCE_THRESHOLD", "75")),
            pillar_risk=float(os.getenv("PILLAR_RISK_THRESHOLD", "75")),
            stale_plan_days=int(os.getenv("STALE_PLAN_DAYS", "30")),
        )

        self._ai_config = AIConfig(
            api_key=os.getenv("GEMINI_API_KEY"),
            model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
            timeout_seconds=float(os.getenv("AI_TIMEOUT_SECONDS", "30")),
        )

        logger.info("💻 Running in LOCAL environment")

    def _load_app_config(self):
        """Load application-specific settings"""
        self._app_config = {
            # Executive view
            "TOP_ALERTS_LIMIT": int(os.getenv("TOP_ALERTS_LIMIT", "5")),

            # Months of KPI history kept per KPI
            "KPI_HISTORY_MONTHS": int(os.getenv("KPI_HISTORY_MONTHS", "24")),

            # Feature flags
            "ENABLE_AI_SUMMARY": os.getenv("ENABLE_AI_SUMMARY", "true").lower() == "true",
        }

    def _log_config_status(self):
        """Log configuration status"""
        logger.info(
            f"✅ Thresholds: low={self._thresholds.low_performance}, "
            f"pillar={self._thresholds.pillar_risk}, stale={self._thresholds.stale_plan_days}d"
        )
        if self._ai_config.is_configured():
            logger.info(f"✅ AI: {self._ai_config.model}")
        else:
            logger.warning("⚠️ AI: GEMINI_API_KEY not set, summaries will use fallback text")

    # ==================== PUBLIC GETTERS ====================

    def get_thresholds(self) -> ScoringThresholds:
        """Get alert thresholds (copy, safe to modify)"""
        return ScoringThresholds(**self._thresholds.to_dict())

    def get_ai_config(self) -> AIConfig:
        """Get AI collaborator configuration"""
        return AIConfig(
            api_key=self._ai_config.api_key,
            model=self._ai_config.model,
            timeout_seconds=self._ai_config.timeout_seconds,
            base_url=self._ai_config.base_url,
        )

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        """Get application setting with default"""
        return self._app_config.get(key, default)

    def is_feature_enabled(self, feature: str) -> bool:
        """Check if feature is enabled"""
        key = f"ENABLE_{feature.upper()}"
        return self._app_config.get(key, True)

    # ==================== PROPERTIES ====================

    @property
    def app_config(self) -> Dict[str, Any]:
        return self._app_config.copy()


# ==================== SINGLETON INSTANCE ====================

config = Config()

IS_RUNNING_ON_CLOUD = config.is_cloud
APP_CONFIG = config.app_config

__all__ = [
    'config',
    'Config',
    'ScoringThresholds',
    'AIConfig',
    'IS_RUNNING_ON_CLOUD',
    'APP_CONFIG',
]
