"""Base connector interface for iTerm MCP."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Final

from .models import ToolContent, ToolDefinition, ToolResult, ToolResultType

logger = logging.getLogger(__name__)


class BaseConnector(ABC):
    """Base class for all tool connectors."""

    DEFAULT_VERSION: Final[str] = "1.0.0"

    def __init__(self, name: str, config: dict[str, Any] | None = None) -> None:
        """Initialize the connector.

        Args:
            name: Unique connector identifier, also used as the published tool prefix
            config: Optional configuration dictionary
        """
        self.name = name
        self.config = config or {}
        self.initialized = False
        self.logger = logging.getLogger(f"connector.{name}")
        self.version = self.DEFAULT_VERSION

    async def initialize(self) -> None:
        """Initialize the connector asynchronously.

        Override this method to implement connector-specific initialization.
        """
        self.initialized = True
        self.logger.info("Connector %s initialized", self.name)

    async def shutdown(self) -> None:
        """Cleanup resources (override if needed)"""
        self.logger.info("Connector %s shutting down", self.name)

    @abstractmethod
    def get_tools(self) -> list[ToolDefinition]:
        """Return list of tools this connector provides"""

    @abstractmethod
    async def execute_tool(self, tool_name: str, arguments: dict[str, Any]) -> ToolResult:
        """Execute a specific tool with given arguments"""

    def validate_tool_exists(self, tool_name: str) -> bool:
        """Check if a tool exists in this connector"""
        return any(tool.name == tool_name for tool in self.get_tools())

    def create_text_result(self, text: str, is_error: bool = False) -> ToolResult:
        """Helper to create a text result"""
        return ToolResult(
            content=[ToolContent(type=ToolResultType.TEXT, text=text)], is_error=is_error
        )

    def create_error_result(self, error_message: str) -> ToolResult:
        """Helper to create an error result.

        ``error_message`` is shown to the caller as-is; it should already read
        like an error line.
        """
        return ToolResult(
            content=[ToolContent(type=ToolResultType.TEXT, text=error_message)],
            is_error=True,
            error_message=error_message,
        )

    def get_config_value(self, key: str, default: Any = None) -> Any:
        """Get a configuration value with optional default"""
        return self.config.get(key, default)

    def __str__(self) -> str:
        return f"Connector({self.name})"

    def __repr__(self) -> str:
        return f"Connector(name='{self.name}', initialized={self.initialized})"
