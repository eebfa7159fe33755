"""
Centralized environment configuration management
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load .env file if it exists
env_file = Path.cwd() / ".env"
if env_file.exists():
    load_dotenv(env_file)
    logger.info(f"Loaded environment from {env_file}")


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class EnvironmentConfig:
    """Centralized configuration from environment variables"""

    # Config file location override
    ITERM_MCP_CONFIG: Optional[str] = os.getenv("ITERM_MCP_CONFIG")

    # Logging
    ITERM_MCP_LOG_LEVEL: Optional[str] = os.getenv("ITERM_MCP_LOG_LEVEL")
    ITERM_MCP_LOG_FILE: str = os.getenv("ITERM_MCP_LOG_FILE", "/tmp/iterm-mcp.log")
    ITERM_MCP_LOG_JSON: bool = _env_flag("ITERM_MCP_LOG_JSON")

    # Development mode turns on debug logging
    ITERM_MCP_DEV_MODE: bool = _env_flag("ITERM_MCP_DEV_MODE")

    @property
    def effective_log_level(self) -> str:
        if self.ITERM_MCP_DEV_MODE:
            return "DEBUG"
        return self.ITERM_MCP_LOG_LEVEL or "INFO"

    @property
    def log_level_from_env(self) -> bool:
        """Whether the environment fixes the log level, overriding the config file"""
        return self.ITERM_MCP_DEV_MODE or bool(self.ITERM_MCP_LOG_LEVEL)

    @classmethod
    def get_safe_dict(cls) -> Dict[str, Any]:
        """Get configuration as a dictionary"""
        config = {}
        for key in dir(cls):
            if not key.startswith("ITERM_MCP_"):
                continue
            config[key] = getattr(cls, key)
        return config


# Create a singleton instance
config = EnvironmentConfig()
