#!/usr/bin/env python3
"""
Examples of using MCP PDF Reader with URLs and local files
"""

import asyncio
import json

from mcp.types import ImageContent

from mcp_pdf_reader.mixins import ReadPdfMixin

SAMPLE_URL = "https://www.w3.org/WAI/ER/tests/xhtml/testfiles/resources/pdf/dummy.pdf"


def print_summary(content):
    for result in json.loads(content[0].text)["results"]:
        if result["success"]:
            print(f"✅ {result['source']}")
            print(json.dumps(result["data"], indent=2)[:500])
        else:
            print(f"❌ {result['source']}: {result['error']}")


async def example_full_text(reader):
    """Example: Full text and metadata from a PDF URL"""
    print("🔗 Reading full text from URL...")
    content = await reader.handle_read_pdf({
        "sources": [{"url": SAMPLE_URL}],
        "include_full_text": True,
    })
    print_summary(content)


async def example_page_selection(reader):
    """Example: Selected pages from several sources in one request"""
    print("\n📄 Reading selected pages from a batch...")
    content = await reader.handle_read_pdf({
        "sources": [
            {"url": SAMPLE_URL, "pages": "1-"},
            {"path": "test_document.pdf", "pages": [1, 3]},
            {"path": "does_not_exist.pdf"},
        ],
        "include_metadata": False,
    })
    print_summary(content)


async def example_images(reader):
    """Example: Text and images in reading order"""
    print("\n🖼️  Reading text and images in page order...")
    content = await reader.handle_read_pdf({
        "sources": [{"path": "test_document.pdf", "pages": "1"}],
        "include_images": True,
    })
    for part in content[1:]:
        if isinstance(part, ImageContent):
            print(f"   [image {part.mimeType}, {len(part.data)} base64 chars]")
        else:
            print(f"   {part.text}")


async def main():
    print("🌐 MCP PDF Reader - URL Examples")
    print("=" * 50)

    reader = ReadPdfMixin()
    await example_full_text(reader)
    await example_page_selection(reader)
    await example_images(reader)


if __name__ == "__main__":
    asyncio.run(main())
