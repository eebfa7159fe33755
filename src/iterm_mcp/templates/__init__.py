"""
Templates for tool descriptions and user-facing messages
"""

from .base_templates import BaseTemplates
from .iterm_templates import ItermTemplates

__all__ = [
    "BaseTemplates",
    "ItermTemplates",
]
