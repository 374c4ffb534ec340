"""
Unit tests for the concrete extraction and recognition engines.

PDFs are generated in memory with PyMuPDF; pytesseract calls are patched
so the tesseract binary is not required.
"""

import pymupdf
import pytest
from PIL import Image

from resume_ingest.exceptions import InvalidInputError
from resume_ingest.extractor import build_default_engines
from resume_ingest.extractor.pdfminer_extractor import read_with_pdfminer
from resume_ingest.extractor.pdfplumber_extractor import _clamp_bbox, _table_to_markdown
from resume_ingest.extractor.pymupdf_extractor import read_with_pymupdf
from resume_ingest.extractor.source import describe_source, validate_source
from resume_ingest.recognition import TesseractEngine
from resume_ingest.recognition import tesseract as tesseract_module


@pytest.fixture(scope="module")
def resume_pdf() -> bytes:
    doc = pymupdf.open()
    first = doc.new_page()
    first.insert_text((72, 72), "Jane Smith", fontsize=14)
    first.insert_text((72, 100), "Senior Software Engineer", fontsize=11)
    second = doc.new_page()
    second.insert_text((72, 72), "Education: University of Toronto", fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.mark.unit
class TestSource:
    def test_describe(self, tmp_path):
        assert describe_source(b"abc") == "<3 bytes>"
        assert describe_source(tmp_path / "cv.pdf") == "cv.pdf"

    def test_validate(self, tmp_path):
        pdf = tmp_path / "cv.pdf"
        pdf.write_bytes(b"%PDF")
        validate_source(pdf)
        validate_source(str(pdf))
        validate_source(b"%PDF")

    @pytest.mark.parametrize("source", [None, b"", bytearray(), 42])
    def test_rejected(self, source):
        with pytest.raises(InvalidInputError):
            validate_source(source)

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidInputError, match="not found"):
            validate_source(tmp_path / "missing.pdf")


@pytest.mark.unit
class TestDigitalEngines:
    def test_registry(self):
        engines = build_default_engines()
        assert list(engines) == ["pymupdf", "pdfplumber", "pdfminer", "pymupdf4llm"]

    def test_pymupdf(self, resume_pdf):
        text, pages = read_with_pymupdf(resume_pdf)
        assert pages == 2
        assert "Jane Smith" in text
        assert "University of Toronto" in text

    def test_pdfminer(self, resume_pdf):
        text, pages = read_with_pdfminer(resume_pdf)
        assert pages == 2
        assert "Jane Smith" in text

    @pytest.mark.asyncio
    async def test_pdfplumber_engine(self, resume_pdf):
        result = await build_default_engines()["pdfplumber"].extract(resume_pdf)
        assert result.success
        assert result.page_count == 2
        assert "Senior" in result.text
        assert "Engineer" in result.text

    @pytest.mark.asyncio
    async def test_garbage_input_fails_cleanly(self):
        engines = build_default_engines()
        for name in ("pymupdf", "pdfminer", "pdfplumber"):
            result = await engines[name].extract(b"this is not a pdf")
            assert result.success is False, name
            assert result.error

    def test_table_to_markdown(self):
        md = _table_to_markdown([["Skill", "Years"], ["Python", "8"], ["Go", None]])
        assert "| Skill" in md
        assert "Python" in md
        assert _table_to_markdown([["only header"]]) is None

    def test_clamp_bbox(self):
        assert _clamp_bbox((-5, -1, 700, 900), 612, 792) == (0, 0, 612, 792)


@pytest.mark.unit
class TestTesseractEngine:
    def test_create_session_checks_languages(self, monkeypatch):
        monkeypatch.setattr(
            tesseract_module.pytesseract, "get_languages", lambda config="": ["eng", "osd"]
        )
        engine = TesseractEngine()

        assert engine.create_session("eng").language == "eng"
        with pytest.raises(ValueError, match="fra"):
            engine.create_session("eng+fra")

    def test_recognize_confidence(self, monkeypatch):
        monkeypatch.setattr(
            tesseract_module.pytesseract, "image_to_string", lambda image, lang: "Jane Smith\n"
        )
        monkeypatch.setattr(
            tesseract_module.pytesseract,
            "image_to_data",
            lambda image, lang, output_type: {"conf": ["-1", "90", "80.5", -1, "70"]},
        )
        engine = TesseractEngine()
        session = tesseract_module.TesseractSession(language="eng")

        page = engine.recognize(session, Image.new("RGB", (10, 10)))

        assert page.text == "Jane Smith\n"
        assert page.confidence == pytest.approx((90 + 80.5 + 70) / 3)

    def test_destroyed_session_rejected(self):
        engine = TesseractEngine()
        session = tesseract_module.TesseractSession(language="eng")
        engine.destroy_session(session)

        with pytest.raises(RuntimeError):
            engine.recognize(session, Image.new("RGB", (10, 10)))

    def test_rasterize_scale(self, resume_pdf):
        engine = TesseractEngine()

        small = engine.rasterize(resume_pdf, 1.0)
        large = engine.rasterize(resume_pdf, 2.0)
        try:
            assert len(small) == 2
            small_image = small.render(1)
            large_image = large.render(1)
            assert isinstance(small_image, Image.Image)
            assert large_image.width == pytest.approx(small_image.width * 2, abs=2)
        finally:
            small.close()
            large.close()

    def test_closed_page_images(self, resume_pdf):
        images = TesseractEngine().rasterize(resume_pdf, 1.0)
        images.close()

        with pytest.raises(ValueError, match="closed"):
            images.render(1)
        # Second close is a no-op
        images.close()
