"""
Connector registry for managing connectors and routing tool calls
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Type

from .base_connector import BaseConnector
from .models import ToolDefinition, ToolResult

logger = logging.getLogger(__name__)


class ConnectorRegistry:
    """Registry for managing tool connectors"""

    def __init__(self):
        self._connectors: Dict[str, BaseConnector] = {}
        self._connector_classes: Dict[str, Type[BaseConnector]] = {}
        self.logger = logging.getLogger(__name__)

    def register_connector_class(self, name: str, connector_class: Type[BaseConnector]) -> None:
        """Register a connector class"""
        if not isinstance(connector_class, type) or not issubclass(connector_class, BaseConnector):
            raise ValueError("Connector class must inherit from BaseConnector")

        self._connector_classes[name] = connector_class
        self.logger.info(f"Registered connector class: {name}")

    def register_builtin_connectors(self) -> None:
        """Register the connectors shipped with this package"""
        from ..connectors.iterm.connector import ItermConnector

        self.register_connector_class("iterm", ItermConnector)

    async def initialize_connector(self, name: str, config: Dict[str, Any]) -> BaseConnector:
        """Initialize a connector instance"""
        if name not in self._connector_classes:
            raise ValueError(f"Unknown connector: {name}")

        if name in self._connectors:
            self.logger.warning(f"Connector {name} already initialized, replacing...")
            await self._connectors[name].shutdown()

        connector_class = self._connector_classes[name]
        connector = connector_class(name=name, config=config)
        await connector.initialize()
        self._connectors[name] = connector
        self.logger.info(f"Initialized connector: {name}")
        return connector

    def get_connector(self, name: str) -> Optional[BaseConnector]:
        """Get an initialized connector"""
        return self._connectors.get(name)

    def get_all_connectors(self) -> List[BaseConnector]:
        """Get all initialized connectors"""
        return list(self._connectors.values())

    def get_published_tools(self) -> List[ToolDefinition]:
        """Get all tools, each name prefixed with its connector name"""
        tools = []
        for connector in self._connectors.values():
            for tool in connector.get_tools():
                tools.append(tool.model_copy(update={"name": f"{connector.name}_{tool.name}"}))
        return tools

    def resolve_tool(self, tool_name: str) -> Optional[Tuple[BaseConnector, str]]:
        """Find the connector owning a published or bare tool name"""
        for connector in self._connectors.values():
            prefix = f"{connector.name}_"
            if tool_name.startswith(prefix) and connector.validate_tool_exists(tool_name[len(prefix):]):
                return connector, tool_name[len(prefix):]
        for connector in self._connectors.values():
            if connector.validate_tool_exists(tool_name):
                return connector, tool_name
        return None

    async def execute_tool(self, tool_name: str, arguments: Dict[str, Any]) -> ToolResult:
        """Execute a tool by finding the right connector"""
        resolved = self.resolve_tool(tool_name)
        if resolved is None:
            raise ValueError(f"Tool not found: {tool_name}")

        connector, local_name = resolved
        self.logger.debug(f"Executing tool {local_name} via connector {connector.name}")
        return await connector.execute_tool(local_name, arguments)

    async def shutdown_all(self) -> None:
        """Shutdown all connectors"""
        self.logger.info("Shutting down all connectors...")

        for name, connector in self._connectors.items():
            try:
                await connector.shutdown()
                self.logger.info(f"Shutdown connector: {name}")
            except Exception as e:
                self.logger.error(f"Error shutting down connector {name}: {e}")

        self._connectors.clear()

    def list_registered_classes(self) -> List[str]:
        """List all registered connector classes"""
        return list(self._connector_classes.keys())

    def list_initialized_connectors(self) -> List[str]:
        """List all initialized connectors"""
        return list(self._connectors.keys())

    def __str__(self) -> str:
        classes = len(self._connector_classes)
        initialized = len(self._connectors)
        return f"ConnectorRegistry(classes={classes}, initialized={initialized})"
