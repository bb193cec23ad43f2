"""
Tests for source loading and validation.
"""

import os

import pytest
from pydantic import ValidationError

from DocScan import config
from DocScan.exceptions import SourceFileError, SourceSecurityError
from DocScan.schemas import MediaKind
from DocScan.utils import (
    collect_sources,
    load_source,
    media_kind_for,
    sanitize_path,
    source_from_bytes,
)


class TestMediaKind:
    def test_pdf(self):
        assert media_kind_for("doc.PDF") == MediaKind.PDF

    @pytest.mark.parametrize("name", ["a.png", "a.jpg", "a.JPEG", "a.tiff", "a.webp"])
    def test_images(self, name):
        assert media_kind_for(name) == MediaKind.IMAGE

    def test_unsupported(self):
        with pytest.raises(SourceFileError):
            media_kind_for("notes.txt")


class TestSanitizePath:
    def test_traversal_rejected(self):
        with pytest.raises(SourceSecurityError):
            sanitize_path("../etc/passwd")

    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceFileError):
            sanitize_path(tmp_path / "nope.png")

    def test_directory_rejected(self, tmp_path):
        with pytest.raises(SourceFileError):
            sanitize_path(tmp_path)

    def test_symlink_rejected(self, tmp_path):
        target = tmp_path / "real.png"
        target.write_bytes(b"x")
        link = tmp_path / "link.png"
        os.symlink(target, link)
        with pytest.raises(SourceSecurityError):
            sanitize_path(link)


class TestLoadSource:
    def test_reads_bytes_and_kind(self, tmp_path):
        path = tmp_path / "scan.pdf"
        path.write_bytes(b"%PDF-1.4")
        source = load_source(path)
        assert source.data == b"%PDF-1.4"
        assert source.kind == MediaKind.PDF
        assert source.name == "scan.pdf"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.png"
        path.write_bytes(b"")
        with pytest.raises(SourceFileError, match="empty"):
            load_source(path)

    def test_source_is_immutable(self, tmp_path):
        path = tmp_path / "a.png"
        path.write_bytes(b"x")
        source = load_source(path)
        with pytest.raises(ValidationError):
            source.name = "b.png"


class TestSourceFromBytes:
    def test_infers_kind(self):
        assert source_from_bytes(b"x", "photo.jpg").kind == MediaKind.IMAGE

    def test_too_large(self, monkeypatch):
        monkeypatch.setattr(config, "MAX_FILE_SIZE_MB", 0.000001)
        with pytest.raises(SourceFileError, match="too large"):
            source_from_bytes(b"x" * 100, "photo.jpg")


class TestCollectSources:
    def test_expands_directory_sorted(self, tmp_path):
        (tmp_path / "b.png").write_bytes(b"b")
        (tmp_path / "a.pdf").write_bytes(b"a")
        (tmp_path / "readme.txt").write_bytes(b"skip")
        (tmp_path / "empty.jpg").write_bytes(b"")

        names = [s.name for s in collect_sources([tmp_path])]
        assert names == ["a.pdf", "b.png"]

    def test_explicit_bad_file_raises(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_bytes(b"x")
        with pytest.raises(SourceFileError):
            collect_sources([path])
