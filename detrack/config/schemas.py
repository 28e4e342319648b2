"""
Pydantic Configuration Schemas
================================

Type-safe configuration validation usando Pydantic v2.

Benefits:
- Validación en load time (no en runtime)
- Type safety con IDE autocomplete
- Mejores mensajes de error

Usage:
    config = DetrackConfig.from_yaml("config/detrack/config.yaml")
    # Config ya está validado, tipos garantizados
"""
from typing import Literal, Optional
from pathlib import Path
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# ============================================================================
# Decoder Configuration
# ============================================================================

class DecoderSettings(BaseModel):
    """Anchor decoder settings"""
    score_threshold: float = Field(
        default=0.2,
        ge=0.0,
        le=1.0,
        description="Objectness / class confidence threshold"
    )
    input_width: int = Field(
        default=416,
        ge=1,
        description="Model input tensor width (for crop computation)"
    )
    input_height: int = Field(
        default=416,
        ge=1,
        description="Model input tensor height (for crop computation)"
    )
    labels_path: Optional[str] = Field(
        default=None,
        description="Path to label file (one label per line)"
    )


# ============================================================================
# NMS Configuration
# ============================================================================

class NMSSettings(BaseModel):
    """Non-Maximum Suppression settings"""
    iou_threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="IoU threshold for suppression"
    )
    class_agnostic: bool = Field(
        default=True,
        description="Suppress across classes (single combined list)"
    )


# ============================================================================
# Tracker Configuration
# ============================================================================

class SmoothingSettings(BaseModel):
    """Smoothed box policy for Track.update"""
    mode: Literal['none', 'exponential'] = Field(
        default='none',
        description="Smoothing mode (none = pass-through)"
    )
    alpha: float = Field(
        default=0.5,
        gt=0.0,
        le=1.0,
        description="Weight of the new detection (exponential mode)"
    )


class TrackerSettings(BaseModel):
    """Multi-object tracker settings"""
    iou_threshold: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Minimum IoU (exclusive) to associate detection and track"
    )
    max_undetected: int = Field(
        default=2,
        ge=0,
        description="Consecutive misses tolerated before eviction"
    )
    history_size: int = Field(
        default=50,
        ge=1,
        description="Per-track history capacity (ring buffer)"
    )
    match_same_class: bool = Field(
        default=False,
        description="Only associate detections with tracks of the same class"
    )
    min_confidence_to_create: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Minimum confidence for an unmatched detection to spawn a track"
    )
    min_detected_to_confirm: int = Field(
        default=1,
        ge=1,
        description="Detected frames before a track is reported as confirmed"
    )
    smoothing: SmoothingSettings = Field(default_factory=SmoothingSettings)


# ============================================================================
# Logging Configuration
# ============================================================================

class LoggingSettings(BaseModel):
    """Logging configuration (JSON structured logging)"""
    level: Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'] = Field(
        default='INFO',
        description="Log level"
    )
    json_indent: Optional[int] = Field(
        default=None,
        ge=0,
        le=4,
        description="JSON indent for pretty-print (None=compact, 2=readable)"
    )
    file: Optional[str] = Field(
        default=None,
        description="Path to log file (None=stderr). If specified, enables file rotation."
    )
    max_bytes: int = Field(
        default=10485760,  # 10 MB
        ge=1024,
        description="Maximum bytes per log file before rotation (default 10 MB)"
    )
    backup_count: int = Field(
        default=5,
        ge=0,
        description="Number of backup log files to keep"
    )


# ============================================================================
# Environment Overrides
# ============================================================================

class EnvironmentSettings(BaseSettings):
    """
    Overrides desde variables de entorno (y .env).

    DETRACK_CONFIG: path al config.yaml
    DETRACK_LOG_LEVEL: pisa logging.level del YAML
    """
    model_config = SettingsConfigDict(env_prefix='DETRACK_', extra='ignore')

    config: Optional[str] = None
    log_level: Optional[Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']] = None


# ============================================================================
# Root Configuration
# ============================================================================

class DetrackConfig(BaseModel):
    """
    Root detrack configuration with full validation.

    Loads from YAML and validates all settings.
    Environment variables override YAML (DETRACK_LOG_LEVEL).
    """
    decoder: DecoderSettings = Field(default_factory=DecoderSettings)
    nms: NMSSettings = Field(default_factory=NMSSettings)
    tracker: TrackerSettings = Field(default_factory=TrackerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_yaml(cls, config_path: str) -> 'DetrackConfig':
        """
        Load and validate configuration from YAML file.

        Args:
            config_path: Path to config.yaml

        Returns:
            Validated DetrackConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValidationError: If config is invalid
        """
        import yaml

        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create it from config/detrack/config.yaml.example"
            )

        with open(config_file, 'r') as f:
            config_dict = yaml.safe_load(f) or {}

        return cls(**config_dict).with_env_overrides()

    def with_env_overrides(self) -> 'DetrackConfig':
        """Aplica overrides de entorno (DETRACK_*) sobre una copia."""
        env = EnvironmentSettings()
        if env.log_level:
            return self.model_copy(
                update={"logging": self.logging.model_copy(update={"level": env.log_level})}
            )
        return self
