#
# src/deno_mcp/cli/__init__.py
#
"""
Command line interface for deno-mcp.
"""
