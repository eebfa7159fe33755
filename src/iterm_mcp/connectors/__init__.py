"""
Connectors for iTerm MCP
"""
