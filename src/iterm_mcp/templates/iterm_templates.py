"""
iTerm Templates
Tool descriptions, argument schemas and messages for the iTerm connector
"""

from typing import Any, Dict

from .base_templates import BaseTemplates


class ItermTemplates(BaseTemplates):
    """Templates for iTerm2 tab automation"""

    TOOL_DESC = {
        "new_tab": "Creates a new tab in the current iTerm2 window",
        "tail_tab_all": "Lists all tabs with their output tails",
        "tail_tab_single": "Shows the last N lines from a specific tab",
        "run_command_blocking": "Runs a command in a tab and waits for it to complete",
        "run_command_async": "Runs a command in a tab and optionally waits before returning",
        "control_code": "Sends a control code to a tab (e.g., Ctrl+C)",
        "get_all_tabs_info": (
            "Gets detailed information about all tabs including running state "
            "(running state is a best-effort guess from the visible prompt)"
        ),
    }

    PARAMS = {
        "tab": {"type": "number", "description": "The tab index (0-based)"},
        "command": {"type": "string", "description": "The command to run"},
        "letter": {
            "type": "string",
            "description": "The letter corresponding to the control character (e.g., 'C' for Control-C)",
        },
        "tail_all_lines": {"type": "number", "description": "Number of lines to show for each tab (default: 20)"},
        "tail_single_lines": {"type": "number", "description": "Number of lines to show (default: 50)"},
        "blocking_wait": {"type": "number", "description": "Seconds to wait for completion (default: 5)"},
        "async_wait": {"type": "number", "description": "Seconds to wait before returning (default: 0)"},
        "tail_lines": {
            "type": "number",
            "description": "Number of lines to return from the tab after execution (default: 0)",
        },
    }

    SUCCESS = {
        "tab_created": "New tab created successfully.",
        "tab_header": "========== TAB {index}: {name} ==========\n\n{output}",
        "tab_tail": "Tab {index} ({name}):\n\n{output}",
        "completed": "Command completed in tab {tab} with exit code {exit_code}.",
        "still_running": "Command is still running in tab {tab} (no completion marker found).",
        "sent": 'Command "{command}" sent to tab {tab}.',
        "sent_waited": 'Command "{command}" sent to tab {tab} and waited {wait} seconds.',
        "async_completed": " Completed with exit code {exit_code}.",
        "async_tail": "\n\nOutput (last {lines} lines):\n\n{output}",
        "control_sent": "Control-{letter} sent to tab {tab}.",
        "tabs_info": "Tab Information:\n\n{info}",
    }

    ERRORS = {
        "new_tab": "Error creating new tab: {error}",
        "tail_all": "Error listing tabs: {error}",
        "tail_single": "Error accessing tab {tab}: {error}",
        "blocking": "Error executing command in tab {tab}: {error}",
        "async": "Error running command in tab {tab}: {error}",
        "control": "Error sending Control-{letter} to tab {tab}: {error}",
        "tabs_info": "Error getting tabs info: {error}",
    }

    TAB_SEPARATOR = "\n\n" + "-" * 50 + "\n\n"

    @classmethod
    def get_tool_definition(cls, name: str, params: Dict[str, str] = None, required: list = None) -> Dict[str, Any]:
        """Tool definition; ``params`` maps argument name to a PARAMS key"""
        properties = {arg: cls.PARAMS[key] for arg, key in (params or {}).items()}
        return {
            "name": name,
            "description": cls.TOOL_DESC[name],
            "input_schema": cls.object_schema(properties, required),
        }

    @classmethod
    def format_result(cls, success: bool, message_key: str, **kwargs) -> str:
        """Format standardized result message"""
        if success:
            return cls.SUCCESS[message_key].format(**kwargs)
        return cls.ERRORS[message_key].format(**kwargs)
