# vipgate/core/config.py
import copy
import json
import os
import logging
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(f"vipgate.{__name__}")


DEFAULT_CONFIG: Dict[str, Any] = {
    "system": {"name": "VIP Gate", "version": "1.0.0"},
    "server": {"host": "0.0.0.0", "port": 5000, "log_level": "info", "trust_proxy_headers": False},
    "database": {"type": "sqlite", "path": "data/db/vipgate.db"},
    "storage": {"upload_dir": "uploads", "max_file_size_mb": 50},
    "auth": {
        "jwt_secret_key": "a_default_fallback_secret_key_please_change",
        "jwt_algorithm": "HS256",
        "session_expire_minutes": 1440,
        "max_admins": 3,
    },
    "bootstrap": {
        "admin_username": "admin",
        "admin_password": "password",
        "whitelist_localhost": True,
    },
    "logging": {"file": {"path": "data/logs/vipgate.log"}},
}


class ValidationResult:
    def __init__(self, valid: bool, errors: List[str] = None):
        self.valid = valid
        self.errors = errors or []

    def __bool__(self):
        return self.valid


class ConfigValidator:
    """
    Validate the configuration.
    Only checks that the required sections exist and have the right shape.
    """
    def __init__(self):
        self._schemas: Dict[str, Any] = {
            "server": dict,
            "database": dict,
            "storage": dict,
            "auth": dict,
        }

    def validate(self, config: Dict) -> ValidationResult:
        errors = []
        if not isinstance(config, dict):
            return ValidationResult(False, [f"Configuration root must be a mapping, got {type(config)}"])

        for key, expected_type in self._schemas.items():
            if key not in config:
                errors.append(f"Configuration is missing the key: '{key}'")
            elif not isinstance(config[key], expected_type):
                errors.append(f"Configuration part '{key}' has the wrong type, expected {expected_type}, got {type(config[key])}")

        storage = config.get("storage")
        if isinstance(storage, dict):
            max_mb = storage.get("max_file_size_mb", 50)
            if not isinstance(max_mb, (int, float)) or max_mb <= 0:
                errors.append("'storage.max_file_size_mb' must be a positive number")

        if errors:
            return ValidationResult(False, errors)
        return ValidationResult(True)


class ConfigLoader:
    """Configuration loading interface."""
    def load(self) -> Dict:
        raise NotImplementedError

    def supports_reload(self) -> bool:
        return False

    def reload(self) -> Dict:
        raise NotImplementedError("Reloading not supported by this loader.")


class FileConfigLoader(ConfigLoader):
    """
    Load configuration from a configuration file (YAML/JSON).
    """
    def __init__(self, file_path: str, file_format: str = "yaml"):
        self._file_path = file_path
        self._format = file_format.lower()
        if not os.path.exists(self._file_path):
            raise FileNotFoundError(f"Configuration file not found: {self._file_path}")

    def load(self) -> Dict:
        """Load configuration from a file"""
        try:
            with open(self._file_path, 'r', encoding='utf-8') as f:
                if self._format == "yaml":
                    return yaml.safe_load(f) or {}
                elif self._format == "json":
                    return json.load(f)
                else:
                    raise ValueError(f"Unsupported configuration file format: {self._format}")
        except Exception as e:
            logger.error(f"Failed to load configuration file '{self._file_path}': {e}")
            raise

    def supports_reload(self) -> bool:
        return True

    def reload(self) -> Dict:
        """Reload the configuration file"""
        logger.info(f"Reloading configuration file: {self._file_path}")
        return self.load()


class DictConfigLoader(ConfigLoader):
    """
    Serves configuration from an in-memory mapping, merged over DEFAULT_CONFIG.
    Used by tests and by embedding applications.
    """
    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data = _deep_merge(copy.deepcopy(DEFAULT_CONFIG), data or {})

    def load(self) -> Dict:
        return copy.deepcopy(self._data)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


class ConfigManager:
    """
    Responsible for loading, validating, and accessing the application configuration.
    """
    def __init__(self, loader: ConfigLoader = None, validator: ConfigValidator = None):
        self._config_data: Dict = {}
        self._loader = loader
        self._validator = validator or ConfigValidator()
        self._initialized = False

        if self._loader:
            self._initialized = self.load_config()

    def load_config(self) -> bool:
        """Load configuration, if a loader is provided."""
        if not self._loader:
            logger.error("Error: No configuration loader (ConfigLoader) provided.")
            return False
        try:
            new_config = self._loader.load()
        except Exception as e:
            logger.error(f"Error loading configuration: {e}")
            return False
        validation_result = self._validator.validate(new_config)
        if not validation_result:
            logger.error(f"Configuration validation failed: {validation_result.errors}")
            return False
        self._config_data = new_config
        logger.info("Configuration loaded and validated successfully.")
        return True

    def get_config(self, path: str, default: Any = None) -> Any:
        """
        Get a configuration item by path, e.g. "server.port".
        """
        if not self._config_data:
            logger.warning("Warning: Configuration data is empty. Possibly not loaded or loading failed.")
            return default

        value: Any = self._config_data
        for key in path.split('.'):
            if not isinstance(value, dict) or key not in value:
                return default
            value = value[key]
        return value

    def set_config(self, path: str, value: Any) -> bool:
        """
        Set a configuration item in memory. Rolled back if the result does not validate.
        """
        keys = path.split('.')
        data_ref = self._config_data
        for key in keys[:-1]:
            if key not in data_ref or not isinstance(data_ref[key], dict):
                data_ref[key] = {}
            data_ref = data_ref[key]

        missing = object()
        old_value = data_ref.get(keys[-1], missing)
        data_ref[keys[-1]] = value

        validation_result = self._validator.validate(self._config_data)
        if not validation_result:
            logger.error(f"Configuration validation failed after setting '{path}': {validation_result.errors}")
            if old_value is missing:
                del data_ref[keys[-1]]
            else:
                data_ref[keys[-1]] = old_value
            return False

        logger.info(f"Configuration item '{path}' has been updated to: {value}")
        return True

    def reload_config_from_source(self) -> bool:
        if not self._loader or not self._loader.supports_reload():
            logger.warning("Warning: Current configuration loader does not support reloading.")
            return False
        logger.info("Attempting to reload configuration...")
        return self.load_config()

    @property
    def initialized(self) -> bool:
        return self._initialized


_config_manager: Optional[ConfigManager] = None


def get_config_manager(config_file_path: str = None) -> ConfigManager:
    """
    Get the process-wide ConfigManager.
    On first call the file at config_file_path (or VIPGATE_CONFIG_PATH, or
    config/config.yaml) is loaded; a default file is written when missing.
    """
    global _config_manager
    if _config_manager is not None and _config_manager.initialized:
        return _config_manager

    if config_file_path is None:
        config_file_path = os.getenv("VIPGATE_CONFIG_PATH", "config/config.yaml")

    if not os.path.exists(config_file_path):
        default_config_dir = os.path.dirname(config_file_path)
        if default_config_dir:
            os.makedirs(default_config_dir, exist_ok=True)

        logger.warning(f"Warning: Configuration file '{config_file_path}' not found. Writing a default configuration.")
        try:
            with open(config_file_path, 'w', encoding='utf-8') as f_default:
                yaml.safe_dump(DEFAULT_CONFIG, f_default, default_flow_style=False)
            logger.info(f"Default configuration file '{config_file_path}' has been created.")
        except OSError as e_create:
            logger.error(f"Failed to create default configuration file '{config_file_path}': {e_create}")
            raise RuntimeError(f"Failed to load or create configuration file: {config_file_path}") from e_create

    _config_manager = ConfigManager(loader=FileConfigLoader(file_path=config_file_path))
    return _config_manager
