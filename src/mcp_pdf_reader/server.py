"""
MCP PDF Reader Server - Official FastMCP Mixin Pattern
Using fastmcp.contrib.mcp_mixin for proper modular architecture
"""

import os
import logging
from typing import Dict, Any
from pathlib import Path

from fastmcp import FastMCP

from . import __version__
from .mixins.read_pdf import ReadPdfMixin
from .pdf.extractor import IMAGE_RESOLVE_TIMEOUT
from .security import MAX_PDF_SIZE

logger = logging.getLogger(__name__)


class PDFReaderServer:
    """
    PDF Reader Server using official FastMCP mixin pattern.

    Exposes the read_pdf tool plus a server_info management tool.
    """

    def __init__(self, config: Dict[str, Any] = None):
        self.mcp = FastMCP("pdf-reader")
        self.mixins = []
        self.config = config or self._load_configuration()

        logger.info("🎬 MCP PDF Reader Server")

        self._initialize_mixins()
        self._register_server_tools()

        logger.info(f"✅ Server initialized with {len(self.mixins)} mixins")

    def _load_configuration(self) -> Dict[str, Any]:
        """Load server configuration from environment and defaults"""
        return {
            "max_pdf_size": int(os.getenv("MAX_PDF_SIZE", str(MAX_PDF_SIZE))),
            "project_root": Path(os.getenv("PDF_READER_ROOT") or os.getcwd()).resolve(),
            "allowed_domains": [d.strip() for d in os.getenv("ALLOWED_DOMAINS", "").split(",") if d.strip()],
            "image_timeout": float(os.getenv("IMAGE_RESOLVE_TIMEOUT", str(IMAGE_RESOLVE_TIMEOUT))),
            "max_concurrent_pages": int(os.getenv("MAX_CONCURRENT_PAGES", "0")),
            "debug": os.getenv("DEBUG", "false").lower() == "true",
        }

    def _initialize_mixins(self):
        """Initialize the PDF reading mixins using official pattern"""
        mixin_classes = [
            ReadPdfMixin,
        ]

        for mixin_class in mixin_classes:
            mixin = mixin_class(self.config)
            # Tool names are part of the public interface, so no prefix
            mixin.register_all(self.mcp)
            self.mixins.append(mixin)
            logger.info(f"✓ Initialized and registered {mixin_class.__name__}")

    def _register_server_tools(self):
        """Register server-level management tools"""

        @self.mcp.tool(name="server_info", description="Get server information and configuration")
        async def get_server_info() -> Dict[str, Any]:
            """Get server information including mixins and configuration"""
            return {
                "server_name": "MCP PDF Reader",
                "version": __version__,
                "mixins": [mixin.__class__.__name__ for mixin in self.mixins],
                "configuration": {
                    "max_pdf_size_mb": self.config["max_pdf_size"] // (1024 * 1024),
                    "project_root": str(self.config["project_root"]),
                    "allowed_domains": self.config["allowed_domains"],
                    "image_timeout_seconds": self.config["image_timeout"],
                    "max_concurrent_pages": self.config["max_concurrent_pages"],
                    "debug_mode": self.config["debug"],
                },
            }


def create_server() -> PDFReaderServer:
    """Factory function to create the PDF reader server instance"""
    return PDFReaderServer()


def main():
    """Main entry point for the MCP server"""
    debug = os.getenv("DEBUG", "false").lower() == "true"
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO)

    try:
        logger.info(f"🎬 MCP PDF Reader Server v{__version__}")

        server = create_server()
        server.mcp.run()

    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
    except Exception as e:
        logger.error(f"Server failed to start: {e}")
        raise


if __name__ == "__main__":
    main()
