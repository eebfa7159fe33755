"""
Core modules for iTerm MCP
"""

from .base_connector import BaseConnector
from .config import ConfigManager
from .error_handling import (
    BoundsError,
    ChannelError,
    ChannelTimeout,
    ErrorKind,
    ItermMCPError,
    ProtocolError,
    ValidationError,
)
from .models import (
    BridgeConfig,
    ChannelConfig,
    ConnectorConfig,
    ExtractionResult,
    ServerConfig,
    TabSnapshot,
    ToolContent,
    ToolDefinition,
    ToolResult,
    ToolResultType,
)
from .registry import ConnectorRegistry

__all__ = [
    "BaseConnector",
    "ToolDefinition",
    "ToolResult",
    "ToolContent",
    "ToolResultType",
    "ChannelConfig",
    "TabSnapshot",
    "ExtractionResult",
    "ConnectorConfig",
    "ServerConfig",
    "BridgeConfig",
    "ConfigManager",
    "ConnectorRegistry",
    "ItermMCPError",
    "ValidationError",
    "ChannelError",
    "ChannelTimeout",
    "BoundsError",
    "ProtocolError",
    "ErrorKind",
]
