"""FastMCP server exposing the built-in tools over MCP.

Tools:
  - retrieve_settings()  — app settings with the API key hidden
  - current_time()       — current UTC time

Other agents can use the same tools this app offers its assistant.

Usage:
    python -m backend.mcp_server [--data-dir DIR]
"""

import json

from mcp.server.fastmcp import FastMCP

from backend import tools

mcp = FastMCP("agent-chat-tools")


@mcp.tool()
def retrieve_settings() -> str:
    """Get the app settings: model connection (API key hidden) and chat options."""
    return json.dumps(tools.retrieve_settings(tools.NoParams()), indent=2)


@mcp.tool()
def current_time() -> str:
    """Get the current date and time in UTC."""
    return tools.current_time(tools.NoParams())["utc"]


if __name__ == "__main__":
    import argparse
    import os
    from pathlib import Path

    from backend import storage

    parser = argparse.ArgumentParser(description="Agent Chat MCP tool server")
    parser.add_argument("--data-dir", type=Path, default=Path(os.getenv("DATA_DIR", "data")))
    args = parser.parse_args()
    storage.init_storage(args.data_dir)
    mcp.run()
