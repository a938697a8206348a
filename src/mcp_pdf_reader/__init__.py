"""
MCP PDF Reader - read text, metadata and images from PDF documents over MCP
"""

__version__ = "1.0.0"
