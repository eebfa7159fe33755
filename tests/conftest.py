"""
Common test fixtures and configuration for iTerm MCP tests.
"""
import re
import tempfile
from pathlib import Path
from typing import Any, Dict, List

import pytest
import yaml

from iterm_mcp.connectors.iterm import scripts
from iterm_mcp.connectors.iterm.connector import ItermConnector
from iterm_mcp.core.base_connector import BaseConnector
from iterm_mcp.core.error_handling import BoundsError
from iterm_mcp.core.models import ToolContent, ToolDefinition, ToolResult

MARKER_PATTERN = re.compile(r"===[0-9a-f]{8}-\d+===")
TAB_POSITION_PATTERN = re.compile(r"tell tab (\d+)")
CONTROL_BYTE_PATTERN = re.compile(r"write text \(character id (\d+)\) newline NO")


class FakeITerm:
    """Stands in for iTerm2 behind the AppleScript channel.

    Scripts are matched against what the script builders produce, so the
    connector and the fake always agree on the script text. Every script is
    recorded in ``scripts``.
    """

    def __init__(self, tabs: List[Dict[str, str]] = None):
        self.tabs = [dict(tab) for tab in (tabs or [])]
        self.scripts: List[str] = []
        self.control_bytes: List[tuple] = []
        self.command_output = "hi"
        self.exit_code = 0
        self.finish_commands = True

    async def invoke(self, script: str, config=None) -> str:
        self.scripts.append(script)

        if script == scripts.tab_count():
            return str(len(self.tabs))
        if script == scripts.new_tab():
            self.tabs.append({"name": "zsh", "content": "user@mac ~ %"})
            return ""

        position = TAB_POSITION_PATTERN.search(script)
        if position is None:
            raise AssertionError(f"Unexpected script:\n{script}")

        tab = int(position.group(1)) - 1
        if tab >= len(self.tabs):
            raise BoundsError(
                f"Tab index {tab} is out of bounds. There are only {len(self.tabs)} tabs."
            )

        session = self.tabs[tab]
        if script == scripts.tab_content(tab):
            return session["content"]
        if script == scripts.tab_info(tab):
            return f"TAB_NAME:{session['name']}\nTAB_CONTENT:{session['content']}"

        control = CONTROL_BYTE_PATTERN.search(script)
        if control is not None:
            self.control_bytes.append((tab, int(control.group(1))))
            return ""

        marker = MARKER_PATTERN.search(script)
        if marker is not None:
            self._run_marked(session, marker.group(0))
            return ""

        raise AssertionError(f"Unexpected session script:\n{script}")

    def _run_marked(self, session: Dict[str, str], marker: str) -> None:
        lines = [session["content"], f"{marker}-START", self.command_output]
        if self.finish_commands:
            lines += [f"{marker}-END:{self.exit_code}", "user@mac ~ %"]
        session["content"] = "\n".join(lines)

    def count(self, script: str) -> int:
        """How many times ``script`` was sent"""
        return self.scripts.count(script)


@pytest.fixture
def temp_config_dir():
    """Create a temporary directory for config files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config():
    """Sample configuration for testing."""
    return {
        "server": {
            "name": "iterm-mcp-test",
            "version": "9.9.9",
            "log_level": "DEBUG"
        },
        "connectors": [
            {
                "name": "iterm",
                "enabled": True,
                "config": {"channel": {"timeout_ms": 2000, "max_retries": 1}}
            },
            {
                "name": "disabled_connector",
                "enabled": False,
                "config": {}
            }
        ]
    }


@pytest.fixture
def config_file(temp_config_dir, sample_config):
    """Create a temporary config file."""
    config_path = temp_config_dir / "config.yaml"
    with open(config_path, 'w') as f:
        yaml.dump(sample_config, f)
    return config_path


@pytest.fixture
def fake_iterm():
    """An iTerm2 window with three tabs."""
    return FakeITerm([
        {"name": "zsh", "content": "Last login: Mon on ttys001\nuser@mac ~ %"},
        {"name": "build", "content": "make all\ncompiling main.c\ncompiling util.c"},
        {"name": "server", "content": "python -m http.server\nServing HTTP on :: port 8000"},
    ])


@pytest.fixture
def iterm_connector(fake_iterm, monkeypatch):
    """ItermConnector talking to the fake iTerm2."""
    connector = ItermConnector("iterm", {"channel": {"retry_delay_ms": 0}})
    monkeypatch.setattr(connector.channel, "invoke", fake_iterm.invoke)
    return connector


class MockConnector(BaseConnector):
    """Mock connector for testing."""

    def __init__(self, name: str = "mock", config: Dict[str, Any] = None):
        super().__init__(name, config or {})
        self.tools_called = []

    def get_tools(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name="echo",
                description="Mock tool for testing",
                input_schema={
                    "type": "object",
                    "properties": {
                        "input": {"type": "string"}
                    },
                    "required": ["input"]
                }
            )
        ]

    async def execute_tool(self, tool_name: str, arguments: Dict[str, Any]) -> ToolResult:
        self.tools_called.append((tool_name, arguments))
        return ToolResult(
            content=[ToolContent(type="text", text=f"Mock result for {tool_name}")],
            is_error=False
        )


@pytest.fixture
def mock_connector():
    """Create a mock connector instance."""
    return MockConnector()


@pytest.fixture
def mock_connector_class():
    """The MockConnector class, for tests that need several instances."""
    return MockConnector
