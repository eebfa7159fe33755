"""
Base Templates
Common patterns shared by connector templates
"""

from typing import Any, Dict, List


class BaseTemplates:
    """Base templates for common connector patterns"""

    COMMON_ERRORS = {
        "unknown_tool": 'Unknown tool "{name}"',
        "unexpected": "Error: {error}",
    }

    TRIM_NOTE = "\n\n[Note: Output exceeded maximum size and was trimmed]"

    @classmethod
    def object_schema(cls, properties: Dict[str, Any], required: List[str] = None) -> Dict[str, Any]:
        """JSON schema for a tool's arguments"""
        return {
            "type": "object",
            "properties": properties,
            "required": required or [],
        }

    @classmethod
    def trim_output(cls, content: str, max_size: int = 5000) -> str:
        """Cut ``content`` to ``max_size`` characters, noting the cut"""
        if len(content) <= max_size:
            return content
        return content[:max_size] + cls.TRIM_NOTE
