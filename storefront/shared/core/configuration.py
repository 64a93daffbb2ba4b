"""
Configuration Management System for the storefront client core

This module provides a centralized configuration system that supports a 4-tier
precedence hierarchy: environment → project → user → system defaults.
"""

import logging
import os
import yaml
from pathlib import Path
from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, Field, ConfigDict, ValidationError
from enum import Enum

logger = logging.getLogger(__name__)

class ValidationLevel(Enum):
    """Configuration validation strictness levels"""
    STRICT = "strict"      # Fail fast on validation errors
    LENIENT = "lenient"    # Log warnings, use defaults

class StoreConfig(BaseModel):
    """Reactive state store configuration"""
    model_config = ConfigDict(extra='forbid')

    storage_key: str = Field(default="storefront_state_v1", min_length=1, description="Snapshot storage key")
    storage_backend: Literal["memory", "duckdb", "none"] = Field(default="duckdb", description="Snapshot storage backend")
    storage_path: str = Field(default="data/state/storefront_state.duckdb", description="DuckDB file for snapshots")
    max_snapshot_bytes: int = Field(default=100_000, ge=1024, description="Snapshots larger than this are not persisted")
    history_limit: int = Field(default=100, ge=0, le=10_000, description="State change history entries kept")
    debug: bool = Field(default=False, description="Verbose state tracing")

class DispatcherConfig(BaseModel):
    """Action dispatcher marker attributes"""
    model_config = ConfigDict(extra='forbid')

    click_marker: str = Field(default="data-action", min_length=1)
    change_marker: str = Field(default="data-action-change", min_length=1)
    input_marker: str = Field(default="data-action-input", min_length=1)

    def markers(self) -> Dict[str, str]:
        """Event type → marker attribute"""
        return {
            "click": self.click_marker,
            "change": self.change_marker,
            "input": self.input_marker,
        }

class LoggingConfig(BaseModel):
    """Logging configuration"""
    model_config = ConfigDict(extra='forbid')

    level: str = Field(default="DEBUG", description="File log level")
    console_level: str = Field(default="WARNING", description="Console log level")
    log_file: Optional[str] = Field(default="data/logs/storefront.log", description="Rotating log file, None disables it")
    max_bytes: int = Field(default=10 * 1024 * 1024, ge=1024, description="Rotate after this many bytes")
    backup_count: int = Field(default=5, ge=0, le=100)

class SystemConfig(BaseModel):
    """Complete system configuration"""
    model_config = ConfigDict(extra='forbid')

    store: StoreConfig = Field(default_factory=StoreConfig)
    dispatcher: DispatcherConfig = Field(default_factory=DispatcherConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Metadata
    schema_version: int = Field(default=1, description="Configuration schema version")

class ConfigManager:
    """Centralized configuration manager with 4-tier precedence hierarchy"""

    def __init__(self, project_root: Optional[Path] = None):
        self.project_root = project_root or Path.cwd()
        self.config_dir = self.project_root / "config"
        self._system_config: Optional[SystemConfig] = None
        self._user_config: Optional[Dict[str, Any]] = None
        self._project_config: Optional[Dict[str, Any]] = None

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """Load YAML configuration file"""
        if not file_path.exists():
            return {}

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load {file_path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring {file_path}: top level must be a mapping")
            return {}
        return data

    def _save_yaml_file(self, file_path: Path, data: Dict[str, Any]) -> bool:
        """Save configuration to YAML file"""
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(file_path, 'w', encoding='utf-8') as f:
                yaml.dump(data, f, default_flow_style=False, sort_keys=False, indent=2)
            return True
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to save {file_path}: {e}")
            return False

    def _load_system_defaults(self) -> SystemConfig:
        """Load system default configuration"""
        if self._system_config is None:
            defaults_path = self.config_dir / "defaults.yaml"
            defaults_dict = self._load_yaml_file(defaults_path)

            try:
                self._system_config = SystemConfig(**defaults_dict)
            except ValidationError as e:
                logger.warning(f"System defaults validation failed: {e}")
                # Use Pydantic defaults
                self._system_config = SystemConfig()

        return self._system_config

    def _load_user_config(self) -> Dict[str, Any]:
        """Load user-level configuration"""
        if self._user_config is None:
            self._user_config = self._load_yaml_file(self.config_dir / "user.yaml")

        return self._user_config

    def _load_project_config(self) -> Dict[str, Any]:
        """Load project-specific configuration"""
        if self._project_config is None:
            self._project_config = self._load_yaml_file(self.config_dir / "project.yaml")

        return self._project_config

    def _merge_configs(self) -> Dict[str, Any]:
        """Merge configurations with precedence: env → project → user → system"""
        merged = self._load_system_defaults().model_dump()

        self._deep_merge(merged, self._load_user_config())
        self._deep_merge(merged, self._load_project_config())
        self._deep_merge(merged, self._get_env_overrides())

        return merged

    def _deep_merge(self, base: Dict[str, Any], updates: Dict[str, Any]) -> None:
        """Deep merge configuration dictionaries"""
        for key, value in updates.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _get_env_overrides(self) -> Dict[str, Any]:
        """Extract configuration overrides from environment variables"""
        env_map = {
            'STOREFRONT_STORAGE_KEY': ('store', 'storage_key'),
            'STOREFRONT_STORAGE_BACKEND': ('store', 'storage_backend'),
            'STOREFRONT_STORAGE_PATH': ('store', 'storage_path'),
            'STOREFRONT_MAX_SNAPSHOT_BYTES': ('store', 'max_snapshot_bytes'),
            'STOREFRONT_DEBUG': ('store', 'debug'),
            'LOG_LEVEL': ('logging', 'level'),
            'LOG_FILE': ('logging', 'log_file'),
        }

        overrides: Dict[str, Dict[str, Any]] = {}
        for env_key, (section, config_key) in env_map.items():
            value = os.getenv(env_key)
            if value is None:
                continue

            # Type conversion
            if config_key == 'max_snapshot_bytes':
                try:
                    converted: Any = int(value)
                except ValueError:
                    logger.warning(f"Ignoring {env_key}={value!r}: not an integer")
                    continue
            elif config_key == 'debug':
                converted = value.lower() in ('true', '1', 'yes', 'on')
            elif config_key == 'level':
                converted = value.upper()
            else:
                converted = value
            overrides.setdefault(section, {})[config_key] = converted

        return overrides

    def get_config(self, validation_level: ValidationLevel = ValidationLevel.STRICT) -> SystemConfig:
        """Get merged configuration with validation"""
        merged_config = self._merge_configs()

        try:
            return SystemConfig(**merged_config)
        except ValidationError as e:
            if validation_level == ValidationLevel.STRICT:
                raise ValueError(f"Configuration validation failed: {e}") from e
            logger.warning(f"Configuration validation failed, using defaults: {e}")
            return SystemConfig()

    def save_project_config(self, config_updates: Dict[str, Any]) -> bool:
        """Save project-specific configuration updates"""
        project_path = self.config_dir / "project.yaml"

        existing_config = self._load_yaml_file(project_path)
        self._deep_merge(existing_config, config_updates)

        success = self._save_yaml_file(project_path, existing_config)
        if success:
            # Clear cached project config to force reload
            self._project_config = None

        return success

    def reload_config(self) -> None:
        """Clear cached configurations and reload from files"""
        self._system_config = None
        self._user_config = None
        self._project_config = None

# Global instance
_config_manager: Optional[ConfigManager] = None

def get_config_manager(project_root: Optional[Path] = None) -> ConfigManager:
    """Get global configuration manager instance"""
    global _config_manager
    if _config_manager is None or project_root is not None:
        _config_manager = ConfigManager(project_root)
    return _config_manager

def get_config(validation_level: ValidationLevel = ValidationLevel.STRICT) -> SystemConfig:
    """Get current system configuration"""
    return get_config_manager().get_config(validation_level)
