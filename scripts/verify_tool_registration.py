#!/usr/bin/env python3
"""
Verify that the media tools are properly registered with FastMCP.

This script imports the MCP server and checks that:
1. The server instance exists
2. Every media tool is registered
3. Each tool exposes an input schema
"""

import asyncio
import sys

from mediafeed.server import SERVER_VERSION, mcp
import mediafeed.tools  # noqa: F401  Ensure tools are imported and registered

EXPECTED_TOOLS = ("list_categories", "get_media", "sample_media", "health_check")


async def verify_tool_registration() -> bool:
    """Verify every expected tool is registered."""
    print("=" * 60)
    print("MCP Tool Registration Verification")
    print("=" * 60)

    print(f"\n✓ MCP Server Instance: {mcp.name} v{SERVER_VERSION}")

    tools = {tool.name: tool for tool in await mcp.list_tools()}
    print(f"\n✓ Total Tools Registered: {len(tools)}")

    print("\nRegistered Tools:")
    for i, name in enumerate(tools, 1):
        properties = tools[name].inputSchema.get("properties", {})
        print(f"  {i}. {name} ({', '.join(properties) or 'no parameters'})")

    missing = [name for name in EXPECTED_TOOLS if name not in tools]

    print("\n" + "=" * 60)
    if missing:
        print(f"✗ VERIFICATION FAILED: missing {', '.join(missing)}")
    else:
        print("✓ VERIFICATION SUCCESSFUL")
    print("=" * 60)

    return not missing


if __name__ == "__main__":
    try:
        success = asyncio.run(verify_tool_registration())
        sys.exit(0 if success else 1)
    except Exception as e:
        print(f"\n✗ ERROR: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
