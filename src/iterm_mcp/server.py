"""
iTerm MCP server
Serves the iTerm connector's tools to MCP clients over stdio
"""

import asyncio
import logging
import sys
import threading
from typing import Any, Dict, Optional

import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server

from .core.config import ConfigManager
from .core.env_config import config as env_config
from .core.logging_config import set_log_level, setup_logging
from .core.registry import ConnectorRegistry
from .templates.base_templates import BaseTemplates

logger = logging.getLogger(__name__)


class MCPGateway:
    """MCP server routing tool calls to connectors"""

    def __init__(self, config: Optional[ConfigManager] = None, registry: Optional[ConnectorRegistry] = None):
        self.config = config or ConfigManager()
        self.registry = registry or ConnectorRegistry()
        self.server = Server(self.config.get_server_config().name)

    async def initialize(self) -> None:
        """Initialize connectors and MCP handlers"""
        logger.info("Initializing iTerm MCP server...")

        self.registry.register_builtin_connectors()
        logger.info(f"Registered connectors: {self.registry.list_registered_classes()}")

        enabled = self.config.get_enabled_connectors()
        logger.info(f"Enabling {len(enabled)} connectors: {[c.name for c in enabled]}")

        for conn_config in enabled:
            try:
                await self.registry.initialize_connector(conn_config.name, conn_config.config)
            except Exception as e:
                logger.error(f"Failed to initialize {conn_config.name}: {e}", exc_info=True)

        self._setup_handlers()

    async def list_tools(self) -> list[types.Tool]:
        """All connector tools under their published names"""
        tools = [
            types.Tool(name=tool.name, description=tool.description, inputSchema=tool.input_schema)
            for tool in self.registry.get_published_tools()
        ]
        logger.info(f"Listing {len(tools)} tools")
        return tools

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]]) -> list[types.TextContent]:
        """Route a tool call; failures come back as text, never as exceptions"""
        logger.info(f"Tool call: {name} with args: {arguments}")
        try:
            if self.registry.resolve_tool(name) is None:
                text = BaseTemplates.COMMON_ERRORS["unknown_tool"].format(name=name)
            else:
                result = await self.registry.execute_tool(name, arguments or {})
                text = result.text
        except Exception as e:
            logger.error(f"Unhandled error in tool {name}: {e}", exc_info=True)
            text = BaseTemplates.COMMON_ERRORS["unexpected"].format(error=e)

        return [types.TextContent(type="text", text=text)]

    def _setup_handlers(self) -> None:
        """Set up MCP protocol handlers"""

        @self.server.list_tools()
        async def list_tools() -> list[types.Tool]:
            return await self.list_tools()

        @self.server.call_tool(validate_input=False)
        async def call_tool(name: str, arguments: dict) -> list[types.TextContent]:
            return await self.call_tool(name, arguments)

    async def run(self) -> None:
        """Run the server on stdio until the client disconnects"""
        await self.initialize()
        install_crash_handlers(asyncio.get_running_loop())

        server_config = self.config.get_server_config()
        logger.info(
            f"{server_config.name} {server_config.version} ready with "
            f"{len(self.registry.get_published_tools())} tools "
            f"(connectors: {self.registry.list_initialized_connectors()})"
        )

        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    InitializationOptions(
                        server_name=server_config.name,
                        server_version=server_config.version,
                        capabilities=self.server.get_capabilities(
                            notification_options=NotificationOptions(),
                            experimental_capabilities={},
                        ),
                    ),
                )
        finally:
            await self.registry.shutdown_all()


def install_crash_handlers(loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
    """Log otherwise-fatal errors instead of letting them end the process.

    A background task or thread failing must not take the server down while
    a client is connected.
    """

    def log_uncaught(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        logger.critical("Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback))

    def log_thread_exception(args: threading.ExceptHookArgs) -> None:
        if args.exc_type is SystemExit:
            return
        thread_name = args.thread.name if args.thread else "unknown"
        logger.critical(
            f"Uncaught exception in thread {thread_name}",
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )

    def log_loop_exception(_loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
        exception = context.get("exception")
        message = context.get("message", "Unhandled error in event loop")
        if exception is not None:
            logger.critical(message, exc_info=(type(exception), exception, exception.__traceback__))
        else:
            logger.critical(message)

    sys.excepthook = log_uncaught
    threading.excepthook = log_thread_exception
    if loop is not None:
        loop.set_exception_handler(log_loop_exception)


async def main() -> None:
    """Main entry point"""
    setup_logging()
    if env_config.ITERM_MCP_DEV_MODE:
        logger.info("Running in DEVELOPMENT mode")

    try:
        gateway = MCPGateway()
        if not env_config.log_level_from_env:
            set_log_level(gateway.config.get_server_config().log_level)
        await gateway.run()
    except KeyboardInterrupt:
        logger.info("Shutting down iTerm MCP server")
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)


def run() -> None:
    """Console script entry point"""
    asyncio.run(main())


if __name__ == "__main__":
    run()
