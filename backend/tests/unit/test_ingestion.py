"""Unit tests for input acceptance and loading."""

import pytest

from imagebatch.core.exceptions import IngestionError
from imagebatch.core.registry.models import OutputMode
from imagebatch.services.ingestion import (
    accepted_mime,
    check_accepted,
    guess_mime_type,
    is_accepted,
    load_sources,
    read_source,
)


class TestAcceptance:
    def test_accepted_mime(self):
        assert accepted_mime(OutputMode.JPEG) == "image/webp"
        assert accepted_mime("pdf") == "image/*"

    @pytest.mark.parametrize(
        "name,mime_type,mode,expected",
        [
            ("a.webp", "image/webp", "jpeg", True),
            ("a.png", "image/png", "jpeg", False),
            ("a.png", "image/png", "pdf", True),
            ("a.webp", None, "jpeg", True),
            ("notes.txt", None, "pdf", False),
            ("a.pdf", "application/pdf", "pdf", False),
        ],
    )
    def test_is_accepted(self, name, mime_type, mode, expected):
        assert is_accepted(name, mime_type, mode) is expected


class TestGuessMimeType:
    def test_by_extension(self):
        assert guess_mime_type("photo.JPG") == "image/jpeg"

    def test_webp_by_content(self, image_generator):
        data = image_generator(format="WEBP")
        assert guess_mime_type("upload", data[:16]) == "image/webp"

    def test_png_by_content(self, image_generator):
        assert guess_mime_type("upload.bin", image_generator(format="PNG")) == "image/png"

    def test_unknown(self):
        assert guess_mime_type("mystery", b"\x00\x01\x02") is None


class TestLoadSources:
    """Test reading files from disk."""

    @pytest.fixture
    def files(self, temp_dir, image_generator):
        (temp_dir / "b.webp").write_bytes(image_generator(format="WEBP"))
        (temp_dir / "a.webp").write_bytes(image_generator(format="WEBP"))
        (temp_dir / "c.png").write_bytes(image_generator(format="PNG"))
        (temp_dir / "notes.txt").write_text("hello")
        (temp_dir / "nested").mkdir()
        (temp_dir / "nested" / "deep.webp").write_bytes(image_generator(format="WEBP"))
        return temp_dir

    def test_jpeg_mode_accepts_only_webp(self, files):
        accepted, rejected = load_sources([files], OutputMode.JPEG)

        assert [source.name for source in accepted] == ["a.webp", "b.webp"]
        assert sorted(path.name for path, _ in rejected) == ["c.png", "notes.txt"]

    def test_pdf_mode_accepts_any_image(self, files):
        accepted, rejected = load_sources([files], OutputMode.PDF)

        assert [source.name for source in accepted] == ["a.webp", "b.webp", "c.png"]
        assert [path.name for path, _ in rejected] == ["notes.txt"]

    def test_explicit_paths_keep_order(self, files):
        accepted, _ = load_sources([files / "b.webp", files / "a.webp"], "jpeg")
        assert [source.name for source in accepted] == ["b.webp", "a.webp"]
        assert accepted[0].mime_type == "image/webp"
        assert accepted[0].data == (files / "b.webp").read_bytes()

    def test_missing_file_is_rejected(self, temp_dir):
        accepted, rejected = load_sources([temp_dir / "gone.webp"], "jpeg")
        assert accepted == []
        assert rejected[0][0].name == "gone.webp"

    def test_oversize_file_is_rejected(self, files):
        accepted, rejected = load_sources([files / "a.webp"], "jpeg", max_file_size=10)
        assert accepted == []
        assert "maximum file size" in rejected[0][1]

    def test_unaccepted_type_reports_mime_details(self, temp_dir, image_generator):
        (temp_dir / "c.png").write_bytes(image_generator(format="PNG"))
        source = read_source(temp_dir / "c.png")

        with pytest.raises(IngestionError) as exc_info:
            check_accepted(source, OutputMode.JPEG)

        assert exc_info.value.details == {
            "filename": "c.png",
            "mime_type": "image/png",
            "accepted": "image/webp",
        }
        assert check_accepted(source, OutputMode.PDF) is source

    def test_read_source_raises(self, temp_dir):
        with pytest.raises(IngestionError) as exc_info:
            read_source(temp_dir / "gone.webp")
        assert exc_info.value.error_code == "IB401"
