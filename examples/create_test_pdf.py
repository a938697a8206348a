#!/usr/bin/env python3
"""Create a test PDF for trying out the MCP PDF Reader"""

import fitz  # PyMuPDF


def create_test_pdf(filename="test_document.pdf"):
    """Create a three page test PDF with text, an embedded image, and metadata"""
    doc = fitz.open()

    # Small gradient used on pages 1 and 3
    pix = fitz.Pixmap(fitz.csRGB, fitz.IRect(0, 0, 64, 32), False)
    for x in range(64):
        for y in range(32):
            pix.set_pixel(x, y, (x * 4, y * 8, 128))

    page = doc.new_page(width=612, height=792)
    page.insert_text((72, 72), "MCP PDF Reader Test Document", fontsize=20)
    page.insert_text((72, 110), "Text above the image should be returned first.", fontsize=11)
    xref = page.insert_image(fitz.Rect(72, 140, 328, 268), pixmap=pix)
    page.insert_text((72, 300), "Text below the image should be returned last.", fontsize=11)

    page = doc.new_page(width=612, height=792)
    page.insert_text((72, 72), "2. Page selection", fontsize=16)
    page.insert_text((72, 100), "Request this page with pages=[2] or pages='2'.", fontsize=11)

    page = doc.new_page(width=612, height=792)
    page.insert_text((72, 72), "3. Shared images", fontsize=16)
    page.insert_image(fitz.Rect(72, 100, 200, 164), xref=xref)
    page.insert_text((72, 200), "The image above is the same object as on page 1.", fontsize=11)

    doc.set_metadata({
        "title": "MCP PDF Reader Test Document",
        "author": "MCP PDF Reader Tester",
        "subject": "Testing PDF Processing",
        "keywords": "test, pdf, mcp, extraction",
    })

    doc.save(filename)
    doc.close()
    print(f"✅ Created test PDF: {filename}")


if __name__ == "__main__":
    create_test_pdf()
