"""
Core models for iTerm MCP
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ToolResultType(str, Enum):
    TEXT = "text"


class ToolContent(BaseModel):
    """Content returned by a tool"""

    type: ToolResultType = ToolResultType.TEXT
    text: Optional[str] = None


class ToolResult(BaseModel):
    """Result from a tool execution"""

    content: List[ToolContent]
    is_error: bool = False
    error_message: Optional[str] = None

    @property
    def text(self) -> str:
        """All text content joined together"""
        return "\n".join(c.text for c in self.content if c.text)


class ToolDefinition(BaseModel):
    """Definition of a tool that can be called"""

    name: str = Field(..., description="Unique name for the tool")
    description: str = Field(..., description="Human-readable description")
    input_schema: Dict[str, Any] = Field(..., description="JSON schema for input parameters")


class ChannelConfig(BaseModel):
    """Timeout and retry policy for one automation call"""

    timeout_ms: int = Field(default=10000, gt=0, description="Per-attempt timeout")
    max_retries: int = Field(default=2, ge=0, description="Extra attempts after the first")
    retry_delay_ms: int = Field(default=500, ge=0, description="Fixed delay before a retry")

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    @property
    def retry_delay_seconds(self) -> float:
        return self.retry_delay_ms / 1000


class TabSnapshot(BaseModel):
    """Point-in-time read of one tab.

    ``is_running`` is inferred from the visible text and is best-effort only.
    """

    model_config = ConfigDict(frozen=True)

    index: int
    name: str
    is_running: bool
    content: str


class ExtractionResult(BaseModel):
    """Output and exit status recovered from a marked command.

    ``exit_code == -1`` means the end marker has not been seen yet.
    """

    model_config = ConfigDict(frozen=True)

    content: str
    exit_code: int

    @property
    def completed(self) -> bool:
        return self.exit_code != -1


class ConnectorConfig(BaseModel):
    """Configuration for a connector"""

    name: str
    enabled: bool = True
    config: Dict[str, Any] = Field(default_factory=dict)


class ServerConfig(BaseModel):
    """Server configuration"""

    name: str = "iterm-mcp"
    version: str = "1.1.0"
    log_level: str = "INFO"


class BridgeConfig(BaseModel):
    """Complete server configuration"""

    server: ServerConfig = Field(default_factory=ServerConfig)
    connectors: List[ConnectorConfig] = Field(default_factory=list)
