"""
iTerm MCP - drive iTerm2 tabs from MCP clients
"""

__version__ = "1.1.0"
