"""
Configuration management for iTerm MCP

Settings come from a YAML file layered over built-in defaults. Strings may
reference environment variables as ``$VAR`` or ``${VAR}``; unset variables are
left untouched.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .env_config import config as env_config
from .models import BridgeConfig, ConnectorConfig, ServerConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.yaml"


class ConfigManager:
    """Loads and validates the server and connector settings"""

    DEFAULT_CONFIG = {
        "server": {"name": "iterm-mcp", "version": "1.1.0", "log_level": "INFO"},
        "connectors": [{"name": "iterm", "enabled": True, "config": {}}],
    }

    def __init__(self, config_path: Optional[str] = None):
        """
        Args:
            config_path: YAML file to read; when omitted the first of
                ``$ITERM_MCP_CONFIG``, ``./config/config.yaml`` and
                ``~/.iterm-mcp/config.yaml`` is used
        """
        self.config_path = config_path or self.find_config_path()
        self.config_data: Dict[str, Any] = {}
        self.bridge_config: Optional[BridgeConfig] = None
        self._load_config()

    @staticmethod
    def find_config_path() -> str:
        if env_config.ITERM_MCP_CONFIG:
            return env_config.ITERM_MCP_CONFIG

        local = Path.cwd() / "config" / CONFIG_FILE_NAME
        if local.exists():
            return str(local)
        return str(Path.home() / ".iterm-mcp" / CONFIG_FILE_NAME)

    def _read_file(self) -> Dict[str, Any]:
        path = Path(self.config_path)
        if not path.exists():
            logger.info(f"No config file found at {path}, using defaults")
            return {}

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            return {}

        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring config at {path}: expected a mapping, got {type(data).__name__}")
            return {}
        logger.info(f"Loaded configuration from {path}")
        return data

    def _load_config(self) -> None:
        data = _deep_merge(copy.deepcopy(self.DEFAULT_CONFIG), self._read_file())
        self.config_data = _expand_env_vars(data)
        self.bridge_config = BridgeConfig(**self.config_data)

    def get_server_config(self) -> ServerConfig:
        if not self.bridge_config:
            raise RuntimeError("Configuration not loaded")
        return self.bridge_config.server

    def get_connector_configs(self) -> List[ConnectorConfig]:
        if not self.bridge_config:
            raise RuntimeError("Configuration not loaded")
        return self.bridge_config.connectors

    def get_enabled_connectors(self) -> List[ConnectorConfig]:
        return [c for c in self.get_connector_configs() if c.enabled]

    def get_connector_config(self, name: str) -> Optional[ConnectorConfig]:
        return next((c for c in self.get_connector_configs() if c.name == name), None)

    def reload(self) -> None:
        """Re-read the config file"""
        logger.info("Reloading configuration...")
        self._load_config()

    def __str__(self) -> str:
        return f"ConfigManager(path='{self.config_path}')"


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``override`` into ``base``; nested mappings merge, everything else replaces"""
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        elif value is None and key == "connectors":
            base[key] = []
        else:
            base[key] = value
    return base


def _expand_env_vars(obj: Any) -> Any:
    if isinstance(obj, str):
        return os.path.expandvars(obj)
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    return obj
