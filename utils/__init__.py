# utils/__init__.py
"""
Shared Utilities Package for the Performance Dashboard

This package contains:
- config: Configuration management (local .env + Streamlit Cloud)
- manager_performance: scoring, alerting and state store

Usage:
    from utils.config import config
    from utils.manager_performance import PerformanceStore

    # Or import commonly used items directly
    from utils import config, PerformanceStore
"""

# Configuration
from .config import (
    config,
    Config,
    ScoringThresholds,
    AIConfig,
    IS_RUNNING_ON_CLOUD,
    APP_CONFIG,
)

# Engine
from .manager_performance import (
    PerformanceStore,
    AIService,
)

__all__ = [
    # Config
    'config',
    'Config',
    'ScoringThresholds',
    'AIConfig',
    'IS_RUNNING_ON_CLOUD',
    'APP_CONFIG',

    # Engine
    'PerformanceStore',
    'AIService',
]

__version__ = '2.0.0'
