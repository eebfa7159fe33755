"""iTerm2 connector for iTerm MCP.

Exposes tab automation tools for iTerm2 on macOS: open a tab, run a command
in a tab and read back its output and exit status, tail tab output, send
control characters, and report every tab's state.

The connector holds no session state. Each call asks iTerm2 afresh through
the AppleScript channel.

Errors never escape a tool call: validation failures, channel failures and
anything unexpected come back as a text result, so an agent always receives a
readable answer it can act on.
"""

from __future__ import annotations

import asyncio
import json
import string
from typing import Any, Awaitable, Callable, Final, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from ...core.base_connector import BaseConnector
from ...core.error_handling import BoundsError, ValidationError
from ...core.models import ChannelConfig, ToolDefinition, ToolResult
from ...templates.iterm_templates import ItermTemplates
from . import markers, scripts
from .channel import AppleScriptChannel
from .tabs import TabQuery, tail

DEFAULT_MAX_OUTPUT: Final[int] = 5000
DEFAULT_MAX_LISTING: Final[int] = 10000


def _check_non_negative_int(value: Any, name: str) -> int:
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, float))
        or value < 0
        or (isinstance(value, float) and not value.is_integer())
    ):
        raise ValueError(f"Error: {name} parameter must be a non-negative integer, got {json.dumps(value, default=str)}")
    return int(value)


def _check_non_negative_number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 <= value < float("inf"):
        raise ValueError(f"Error: {name} parameter must be a non-negative number")
    return float(value)


class TabArgs(BaseModel):
    """Arguments addressing one tab."""

    model_config = ConfigDict(populate_by_name=True)

    tab: Optional[int] = Field(default=None, validate_default=True)

    @field_validator("tab", mode="before")
    @classmethod
    def validate_tab(cls, v: Any) -> int:
        if v is None:
            raise ValueError("Error: tab parameter is required.")
        return _check_non_negative_int(v, "tab")


class TailAllArgs(BaseModel):
    lines: int = 20

    @field_validator("lines", mode="before")
    @classmethod
    def validate_lines(cls, v: Any) -> int:
        return 20 if v is None else _check_non_negative_int(v, "lines")


class TailSingleArgs(TabArgs):
    lines: int = 50

    @field_validator("lines", mode="before")
    @classmethod
    def validate_lines(cls, v: Any) -> int:
        return 50 if v is None else _check_non_negative_int(v, "lines")


class CommandArgs(TabArgs):
    command: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("command", mode="before")
    @classmethod
    def validate_command(cls, v: Any) -> str:
        if v is None or v == "":
            raise ValueError("Error: command parameter is required.")
        if not isinstance(v, str) or not v.strip():
            raise ValueError("Error: command parameter must be a non-empty string")
        return v


class BlockingCommandArgs(CommandArgs):
    wait: float = 5

    @field_validator("wait", mode="before")
    @classmethod
    def validate_wait(cls, v: Any) -> float:
        return 5 if v is None else _check_non_negative_number(v, "wait")


class AsyncCommandArgs(CommandArgs):
    wait: float = 0
    tail_lines: int = Field(default=0, alias="tailLines")

    @field_validator("wait", mode="before")
    @classmethod
    def validate_wait(cls, v: Any) -> float:
        return 0 if v is None else _check_non_negative_number(v, "wait")

    @field_validator("tail_lines", mode="before")
    @classmethod
    def validate_tail_lines(cls, v: Any) -> int:
        return 0 if v is None else _check_non_negative_int(v, "tailLines")


class ControlCodeArgs(TabArgs):
    letter: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("letter", mode="before")
    @classmethod
    def validate_letter(cls, v: Any) -> str:
        if v is None or v == "":
            raise ValueError("Error: letter parameter is required.")
        if not isinstance(v, str) or len(v) != 1 or v not in string.ascii_letters:
            raise ValueError("Error: Letter must be a single character from A-Z.")
        return v.upper()

    @property
    def control_byte(self) -> int:
        return ord(self.letter) - 64


def parse_arguments(model: type[BaseModel], arguments: dict[str, Any] | None) -> BaseModel:
    """Validate tool arguments, raising ValidationError with a readable message."""
    try:
        return model.model_validate(arguments or {})
    except PydanticValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or "arguments"
        cause = error.get("ctx", {}).get("error")
        message = str(cause) if cause is not None else f"Error: {field} parameter is invalid: {error['msg']}"
        raise ValidationError(message, field=field, value=error.get("input")) from exc


class ItermConnector(BaseConnector):
    """Tab automation connector for iTerm2 using AppleScript"""

    def __init__(self, name: str = "iterm", config: dict[str, Any] | None = None) -> None:
        super().__init__(name, config)
        self.channel = AppleScriptChannel(ChannelConfig(**(self.get_config_value("channel") or {})))
        self.tabs = TabQuery(self.channel)
        self.max_output_chars = self.get_config_value("max_output_chars", DEFAULT_MAX_OUTPUT)
        self.max_listing_chars = self.get_config_value("max_listing_chars", DEFAULT_MAX_LISTING)
        self._handlers: dict[str, tuple[type[BaseModel] | None, Callable[..., Awaitable[ToolResult]]]] = {
            "new_tab": (None, self._new_tab),
            "tail_tab_all": (TailAllArgs, self._tail_tab_all),
            "tail_tab_single": (TailSingleArgs, self._tail_tab_single),
            "run_command_blocking": (BlockingCommandArgs, self._run_command_blocking),
            "run_command_async": (AsyncCommandArgs, self._run_command_async),
            "control_code": (ControlCodeArgs, self._control_code),
            "get_all_tabs_info": (None, self._get_all_tabs_info),
        }

    def get_tools(self) -> list[ToolDefinition]:
        """Return the tools provided by this connector."""
        t = ItermTemplates
        return [
            ToolDefinition(**t.get_tool_definition("new_tab")),
            ToolDefinition(**t.get_tool_definition("tail_tab_all", {"lines": "tail_all_lines"})),
            ToolDefinition(
                **t.get_tool_definition(
                    "tail_tab_single", {"tab": "tab", "lines": "tail_single_lines"}, ["tab"]
                )
            ),
            ToolDefinition(
                **t.get_tool_definition(
                    "run_command_blocking",
                    {"tab": "tab", "command": "command", "wait": "blocking_wait"},
                    ["tab", "command"],
                )
            ),
            ToolDefinition(
                **t.get_tool_definition(
                    "run_command_async",
                    {"tab": "tab", "command": "command", "wait": "async_wait", "tailLines": "tail_lines"},
                    ["tab", "command"],
                )
            ),
            ToolDefinition(
                **t.get_tool_definition("control_code", {"tab": "tab", "letter": "letter"}, ["tab", "letter"])
            ),
            ToolDefinition(**t.get_tool_definition("get_all_tabs_info")),
        ]

    async def execute_tool(self, tool_name: str, arguments: dict[str, Any]) -> ToolResult:
        """Execute a tool call. Never raises."""
        if tool_name not in self._handlers:
            return self.create_error_result(ItermTemplates.COMMON_ERRORS["unknown_tool"].format(name=tool_name))

        self.logger.info(f"Executing tool: {tool_name} with arguments: {arguments}")
        model, handler = self._handlers[tool_name]
        try:
            if model is None:
                return await handler()
            try:
                args = parse_arguments(model, arguments)
            except ValidationError as e:
                self.logger.info(f"Rejected {tool_name} arguments ({e.field}): {e}")
                return self.create_error_result(str(e))
            return await handler(args)
        except Exception as e:
            self.logger.error(f"Error executing {tool_name}: {e}", exc_info=True)
            return self.create_error_result(ItermTemplates.COMMON_ERRORS["unexpected"].format(error=e))

    def _trim(self, text: str) -> str:
        return ItermTemplates.trim_output(text, self.max_output_chars)

    async def _new_tab(self) -> ToolResult:
        try:
            await self.channel.invoke(scripts.new_tab())
        except Exception as e:
            return self.create_error_result(ItermTemplates.format_result(False, "new_tab", error=e))
        return self.create_text_result(ItermTemplates.format_result(True, "tab_created"))

    async def _tail_tab_all(self, args: TailAllArgs) -> ToolResult:
        try:
            snapshots = await self.tabs.all_tab_info()
        except Exception as e:
            return self.create_error_result(ItermTemplates.format_result(False, "tail_all", error=e))

        sections = [
            ItermTemplates.format_result(
                True,
                "tab_header",
                index=snapshot.index,
                name=snapshot.name,
                output=self._trim(tail(snapshot.content, args.lines)),
            )
            for snapshot in snapshots
        ]
        listing = ItermTemplates.TAB_SEPARATOR.join(sections)
        return self.create_text_result(ItermTemplates.trim_output(listing, self.max_listing_chars))

    async def _tail_tab_single(self, args: TailSingleArgs) -> ToolResult:
        try:
            await self.tabs.ensure_in_bounds(args.tab)
        except BoundsError as e:
            return self.create_error_result(f"Error: {e}")
        except Exception as e:
            return self.create_error_result(ItermTemplates.format_result(False, "tail_single", tab=args.tab, error=e))

        try:
            content = await self.tabs.tab_content(args.tab)
            snapshot = await self.tabs.tab_info(args.tab)
        except Exception as e:
            return self.create_error_result(ItermTemplates.format_result(False, "tail_single", tab=args.tab, error=e))

        return self.create_text_result(
            ItermTemplates.format_result(
                True,
                "tab_tail",
                index=args.tab,
                name=snapshot.name,
                output=self._trim(tail(content, args.lines)),
            )
        )

    async def _run_command_blocking(self, args: BlockingCommandArgs) -> ToolResult:
        try:
            marker = await markers.send_marked(self.channel, args.tab, args.command)
            await asyncio.sleep(args.wait)
            result = markers.extract(await self.tabs.tab_content(args.tab), marker)
        except Exception as e:
            return self.create_error_result(ItermTemplates.format_result(False, "blocking", tab=args.tab, error=e))

        if result.completed:
            status = ItermTemplates.format_result(True, "completed", tab=args.tab, exit_code=result.exit_code)
        else:
            status = ItermTemplates.format_result(True, "still_running", tab=args.tab)
        return self.create_text_result(f"{status} Output:\n\n{self._trim(result.content)}")

    async def _run_command_async(self, args: AsyncCommandArgs) -> ToolResult:
        try:
            marker = await markers.send_marked(self.channel, args.tab, args.command)
            message = ItermTemplates.format_result(True, "sent", command=args.command, tab=args.tab)

            if args.wait > 0:
                await asyncio.sleep(args.wait)
                message = ItermTemplates.format_result(
                    True, "sent_waited", command=args.command, tab=args.tab, wait=f"{args.wait:g}"
                )

            if args.tail_lines > 0:
                result = markers.extract(await self.tabs.tab_content(args.tab), marker)
                if result.completed:
                    message += ItermTemplates.format_result(True, "async_completed", exit_code=result.exit_code)
                message += ItermTemplates.format_result(
                    True,
                    "async_tail",
                    lines=args.tail_lines,
                    output=self._trim(tail(result.content, args.tail_lines)),
                )
        except Exception as e:
            return self.create_error_result(ItermTemplates.format_result(False, "async", tab=args.tab, error=e))

        return self.create_text_result(message)

    async def _control_code(self, args: ControlCodeArgs) -> ToolResult:
        try:
            await self.channel.invoke(scripts.send_control_byte(args.tab, args.control_byte))
        except Exception as e:
            return self.create_error_result(
                ItermTemplates.format_result(False, "control", letter=args.letter, tab=args.tab, error=e)
            )
        return self.create_text_result(
            ItermTemplates.format_result(True, "control_sent", letter=args.letter, tab=args.tab)
        )

    async def _get_all_tabs_info(self) -> ToolResult:
        try:
            snapshots = await self.tabs.all_tab_info()
        except Exception as e:
            return self.create_error_result(ItermTemplates.format_result(False, "tabs_info", error=e))

        info = [
            {
                "index": snapshot.index,
                "name": snapshot.name,
                "isRunning": snapshot.is_running,
                "commandRunning": "unknown (detected via content)" if snapshot.is_running else "none",
            }
            for snapshot in snapshots
        ]
        return self.create_text_result(
            ItermTemplates.format_result(True, "tabs_info", info=json.dumps(info, indent=2))
        )
