"""
Mini-Guard Configuration
========================

This module handles configuration loading for the sentinel.

Configuration Sources (in order of precedence):
    1. Command-line flags (applied by main.py)
    2. Environment variables
    3. config.yaml file
    4. Default values (lowest priority)

Environment Variable Mapping:
    MINIGUARD_CAMERA_DEVICE      -> camera.device
    MINIGUARD_CAMERA_WIDTH       -> camera.width
    MINIGUARD_CAMERA_HEIGHT      -> camera.height
    MINIGUARD_BLUR_KERNEL        -> preprocess.blur_kernel_size
    MINIGUARD_SENSITIVITY_CUTOFF -> motion.sensitivity_cutoff
    MINIGUARD_THRESHOLD_PX       -> motion.threshold_px
    MINIGUARD_FRAME_INTERVAL_MS  -> loop.frame_interval_ms
    MINIGUARD_CREDENTIALS_PATH   -> telegram.credentials_path
    MINIGUARD_TELEGRAM_BASE_URL  -> telegram.base_url
    MINIGUARD_BEEP               -> alerts.beep
    MINIGUARD_LOG_LEVEL          -> logging.level

Example:
    from miniguard.config import load_config, setup_logging

    settings = load_config()
    setup_logging(settings)
    print(settings.motion.threshold_px)
"""

import os
import logging
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator


logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration cannot be loaded or is invalid."""
    pass


# =============================================================================
# Configuration Models
# =============================================================================

class CameraConfig(BaseModel):
    """Camera device configuration."""

    device: Union[int, str] = Field(
        default=0,
        description="Camera index or device path / stream URL",
    )
    width: Optional[int] = Field(
        default=None,
        gt=0,
        description="Requested frame width (None = camera default)",
    )
    height: Optional[int] = Field(
        default=None,
        gt=0,
        description="Requested frame height (None = camera default)",
    )

    @field_validator("device")
    @classmethod
    def _index_from_digits(cls, value: Union[int, str]) -> Union[int, str]:
        # "0" is a camera index, not a file named 0
        if isinstance(value, str) and value.isdigit():
            return int(value)
        return value


class PreprocessConfig(BaseModel):
    """Frame preprocessing configuration."""

    blur_kernel_size: int = Field(
        default=21,
        gt=0,
        description="Gaussian blur kernel side length (odd)",
    )

    @field_validator("blur_kernel_size")
    @classmethod
    def _kernel_must_be_odd(cls, value: int) -> int:
        if value % 2 == 0:
            raise ValueError(f"blur_kernel_size must be odd, got {value}")
        return value


class MotionConfig(BaseModel):
    """
    Motion decision configuration.

    threshold_px is an absolute pixel count. It is tuned for roughly
    640x480 frames; scale it with the frame area at other resolutions.
    """

    sensitivity_cutoff: int = Field(
        default=25,
        ge=0,
        lt=255,
        description="Per-pixel intensity difference that counts as changed (0-254)",
    )
    threshold_px: int = Field(
        default=5000,
        ge=0,
        description="Changed pixels that must be exceeded to flag motion",
    )


class LoopConfig(BaseModel):
    """Sentinel loop pacing configuration."""

    frame_interval_ms: int = Field(
        default=50,
        ge=0,
        description="Delay before each frame read (50ms = ~20 cycles/s)",
    )
    log_every_n_cycles: int = Field(
        default=1200,
        ge=1,
        description="Status log interval in cycles",
    )


class TelegramConfig(BaseModel):
    """Telegram Bot API configuration."""

    base_url: str = Field(
        default="https://api.telegram.org",
        description="Bot API root URL",
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Per-request timeout",
    )
    credentials_path: str = Field(
        default="telegram.properties",
        description="Path to the token/chatId properties file",
    )


class AlertsConfig(BaseModel):
    """Local alert behaviour."""

    beep: bool = Field(default=True, description="Ring the terminal bell on motion")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for Mini-Guard.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    camera: CameraConfig = Field(default_factory=CameraConfig)
    preprocess: PreprocessConfig = Field(default_factory=PreprocessConfig)
    motion: MotionConfig = Field(default_factory=MotionConfig)
    loop: LoopConfig = Field(default_factory=LoopConfig)
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    alerts: AlertsConfig = Field(default_factory=AlertsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches the working directory.

    Returns:
        Settings: Loaded configuration

    Raises:
        ConfigError: If the file is unreadable, not valid YAML, or fails validation
    """
    if config_path is None:
        for path in (Path("config.yaml"), Path("config.yml")):
            if path.exists():
                config_path = str(path)
                break
    elif not Path(config_path).exists():
        raise ConfigError(f"Config file not found: {config_path}")

    config_data = {}
    if config_path:
        logger.info(f"Loading config from: {config_path}")
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read config {config_path}: {e}") from e
        if not isinstance(config_data, dict):
            raise ConfigError(f"Config {config_path} must be a YAML mapping")
    else:
        logger.debug("No config file found, using defaults and environment variables")

    try:
        _apply_env_overrides(config_data)
        return Settings.model_validate(config_data)
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def _parse_device(value: str) -> Union[int, str]:
    return int(value) if value.isdigit() else value


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Camera settings
    if env_device := os.environ.get("MINIGUARD_CAMERA_DEVICE"):
        config_data.setdefault("camera", {})["device"] = _parse_device(env_device)
    if env_width := os.environ.get("MINIGUARD_CAMERA_WIDTH"):
        config_data.setdefault("camera", {})["width"] = int(env_width)
    if env_height := os.environ.get("MINIGUARD_CAMERA_HEIGHT"):
        config_data.setdefault("camera", {})["height"] = int(env_height)

    # Detection settings
    if env_kernel := os.environ.get("MINIGUARD_BLUR_KERNEL"):
        config_data.setdefault("preprocess", {})["blur_kernel_size"] = int(env_kernel)
    if env_cutoff := os.environ.get("MINIGUARD_SENSITIVITY_CUTOFF"):
        config_data.setdefault("motion", {})["sensitivity_cutoff"] = int(env_cutoff)
    if env_threshold := os.environ.get("MINIGUARD_THRESHOLD_PX"):
        config_data.setdefault("motion", {})["threshold_px"] = int(env_threshold)

    # Loop settings
    if env_interval := os.environ.get("MINIGUARD_FRAME_INTERVAL_MS"):
        config_data.setdefault("loop", {})["frame_interval_ms"] = int(env_interval)

    # Telegram settings
    if env_creds := os.environ.get("MINIGUARD_CREDENTIALS_PATH"):
        config_data.setdefault("telegram", {})["credentials_path"] = env_creds
    if env_base := os.environ.get("MINIGUARD_TELEGRAM_BASE_URL"):
        config_data.setdefault("telegram", {})["base_url"] = env_base

    # Alerts
    if env_beep := os.environ.get("MINIGUARD_BEEP"):
        config_data.setdefault("alerts", {})["beep"] = _parse_bool(env_beep)

    # Logging settings
    if env_log := os.environ.get("MINIGUARD_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    # urllib3 logs full request URLs (bot token included) at DEBUG
    logging.getLogger("urllib3").setLevel(max(log_level, logging.INFO))
