"""Tests for the PyMuPDF document adapter, using generated PDFs"""

import asyncio

import fitz
import pytest

from mcp_pdf_reader.models import ImageItem, TextItem
from mcp_pdf_reader.pdf.engine import OPS, ImageKind, ObjectTable, PdfDocumentHandle, _parse_xmp
from mcp_pdf_reader.pdf.extractor import extract_page_content


@pytest.fixture
def sample_document(sample_pdf):
    document = PdfDocumentHandle(fitz.open(str(sample_pdf)))
    yield document
    document.close()


@pytest.fixture
def single_use_image_document(tmp_path):
    doc = fitz.open()
    pix = fitz.Pixmap(fitz.csGRAY, fitz.IRect(0, 0, 3, 3), False)
    pix.set_rect(pix.irect, (200,))
    page = doc.new_page(width=200, height=200)
    page.insert_image(fitz.Rect(10, 10, 40, 40), pixmap=pix)
    path = tmp_path / "single.pdf"
    doc.save(str(path))
    doc.close()

    document = PdfDocumentHandle(fitz.open(str(path)))
    yield document
    document.close()


class TestTextContent:
    @pytest.mark.asyncio
    async def test_runs_are_positioned_from_the_bottom(self, sample_document):
        page = await sample_document.get_page(1)
        content = await page.get_text_content()

        runs = {run.text: run.transform for run in content.items}
        assert abs(runs["Top text"][5] - 742) < 1
        assert abs(runs["Bottom text"][5] - 142) < 1
        assert abs(runs["Top text"][4] - 72) < 1


class TestOperatorList:
    @pytest.mark.asyncio
    async def test_image_placements(self, sample_document):
        page = await sample_document.get_page(1)
        operator_list = await page.get_operator_list()

        assert operator_list.fn_array == [OPS.PAINT_IMAGE_XOBJECT]
        name, transform = operator_list.args_array[0]
        assert name.startswith("g_")
        assert abs(transform[5] - 492) < 1

    @pytest.mark.asyncio
    async def test_shared_images_are_resolved_eagerly(self, sample_document):
        page = await sample_document.get_page(2)
        operator_list = await page.get_operator_list()
        name = operator_list.args_array[0][0]

        image = page.common_objs.get(name)

        assert image.width == 4
        assert image.height == 2
        assert image.kind == ImageKind.RGB
        assert image.data[:3] == bytes([255, 0, 0])
        assert len(image.data) == 4 * 2 * 3

    @pytest.mark.asyncio
    async def test_private_images_resolve_through_callback(self, single_use_image_document):
        page = await single_use_image_document.get_page(1)
        operator_list = await page.get_operator_list()
        name = operator_list.args_array[0][0]

        assert name.startswith("img_")
        assert page.objs.get(name) is None

        received = []
        page.objs.get(name, received.append)
        assert received == []

        await asyncio.sleep(0)

        assert received[0].kind == ImageKind.GRAYSCALE
        assert received[0].data == bytes([200]) * 9
        assert page.objs.get(name) is received[0]


class TestObjectTable:
    def test_strict_table_raises_for_unresolved(self):
        table = ObjectTable(lambda name: None, strict=True)
        with pytest.raises(LookupError):
            table.get("g_1")

    def test_resolve_notifies_waiters_once(self):
        table = ObjectTable(lambda name: name.upper())
        received = []
        table._pending["a"] = [received.append]

        assert table.resolve("a") == "A"
        assert table.resolve("a") == "A"
        assert received == ["A"]

    @pytest.mark.asyncio
    async def test_resolver_failure_delivers_none(self):
        def broken(name):
            raise RuntimeError("corrupt image")

        table = ObjectTable(broken)
        received = []
        table.get("img_5", received.append)
        await asyncio.sleep(0)

        assert received == [None]


class TestDocumentHandle:
    def test_page_count(self, sample_document):
        assert sample_document.num_pages == 2

    @pytest.mark.asyncio
    async def test_metadata(self, sample_document):
        metadata = await sample_document.get_metadata()

        assert metadata["info"]["Title"] == "Sample Document"
        assert metadata["info"]["Author"] == "Test Author"
        assert "PDFFormatVersion" in metadata["info"]
        assert metadata["info"]["IsEncrypted"] is False
        assert isinstance(metadata["metadata"], dict)

    @pytest.mark.asyncio
    async def test_page_out_of_range(self, sample_document):
        with pytest.raises(ValueError, match="Invalid page number 3"):
            await sample_document.get_page(3)


class TestXmp:
    def test_flatten(self):
        xmp = """<?xpacket begin="" id="W5M0MpCehiHzreSzNTczkc9d"?>
<x:xmpmeta xmlns:x="adobe:ns:meta/">
  <rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#">
    <rdf:Description rdf:about="" xmlns:dc="http://purl.org/dc/elements/1.1/"
        xmlns:xmp="http://ns.adobe.com/xap/1.0/" xmp:CreatorTool="Writer">
      <dc:format>application/pdf</dc:format>
      <dc:title><rdf:Alt><rdf:li xml:lang="x-default">Report</rdf:li></rdf:Alt></dc:title>
      <dc:subject><rdf:Bag><rdf:li>one</rdf:li><rdf:li>two</rdf:li></rdf:Bag></dc:subject>
    </rdf:Description>
  </rdf:RDF>
</x:xmpmeta>
<?xpacket end="w"?>"""

        assert _parse_xmp(xmp) == {
            "xmp:CreatorTool": "Writer",
            "dc:format": "application/pdf",
            "dc:title": "Report",
            "dc:subject": "one, two",
        }

    def test_empty(self):
        assert _parse_xmp("") == {}

    def test_prefixes_declared_on_inner_elements(self):
        xmp = """<x:xmpmeta xmlns:x="adobe:ns:meta/">
  <rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#">
    <rdf:Description rdf:about="">
      <pdf:Producer xmlns:pdf="http://ns.adobe.com/pdf/1.3/">PyMuPDF</pdf:Producer>
    </rdf:Description>
    <rdf:Description rdf:about="" xmlns:xmpMM="http://ns.adobe.com/xap/1.0/mm/" xmpMM:DocumentID="uuid:1"/>
  </rdf:RDF>
</x:xmpmeta>"""

        assert _parse_xmp(xmp) == {"pdf:Producer": "PyMuPDF", "xmpMM:DocumentID": "uuid:1"}


class TestRealPageExtraction:
    @pytest.mark.asyncio
    async def test_mixed_content_order(self, sample_document):
        items = await extract_page_content(sample_document, 1, True, "sample.pdf")

        assert [type(item) for item in items] == [TextItem, ImageItem, TextItem]
        assert items[0].text == "Top text"
        assert items[2].text == "Bottom text"
        assert items[1].image.format == "rgb"
        assert (items[1].image.width, items[1].image.height) == (4, 2)
