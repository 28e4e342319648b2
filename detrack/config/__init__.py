"""
Configuration Module
====================

Provides configuration loading with Pydantic validation.

Usage:
    from detrack.config import DetrackConfig
    config = DetrackConfig.from_yaml("config/detrack/config.yaml")
"""
from .schemas import (
    DetrackConfig,
    DecoderSettings,
    NMSSettings,
    TrackerSettings,
    SmoothingSettings,
    LoggingSettings,
    EnvironmentSettings,
)

__all__ = [
    'DetrackConfig',
    'DecoderSettings',
    'NMSSettings',
    'TrackerSettings',
    'SmoothingSettings',
    'LoggingSettings',
    'EnvironmentSettings',
]
