#!/usr/bin/env python3
"""
Simple test script to verify the MCP server can be initialized
"""

import sys
import asyncio


async def main():
    try:
        from mcp_pdf_reader import __version__
        from mcp_pdf_reader.server import create_server

        print(f"✅ MCP PDF Reader v{__version__} imported successfully!")

        # Try to create the server
        server = create_server()
        print("✅ Server created successfully!")

        # Check available tools
        tools = await server.mcp.get_tools()

        print(f"\n📋 Available tools ({len(tools)}):")
        for tool_name in sorted(tools.keys()):
            print(f"   - {tool_name}")

        print("\n✅ All systems operational! The MCP server is ready to use.")

    except Exception as e:
        print(f"❌ Error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)

if __name__ == "__main__":
    asyncio.run(main())
