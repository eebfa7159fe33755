"""
iTerm2 connector - tab automation through AppleScript
"""

from .connector import ItermConnector

__all__ = ["ItermConnector"]
