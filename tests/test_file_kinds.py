"""Tests for file kind detection and display helpers."""

import pytest

from utils.file_kinds import detect_file_kind, format_bytes, strip_data_url


@pytest.mark.parametrize(
    "mime_type, name, expected",
    [
        ("image/png", "photo.png", "image"),
        ("video/mp4", "clip.mp4", "video"),
        ("audio/mpeg", "song.mp3", "audio"),
        ("application/pdf", "doc.pdf", "pdf"),
        ("text/plain", "a.txt", "text"),
        ("", "readme.md", "text"),
        ("application/octet-stream", "notes.txt", "text"),
        ("application/zip", "archive.zip", "other"),
        ("", "", "other"),
    ],
)
def test_detect_file_kind(mime_type, name, expected):
    assert detect_file_kind(mime_type, name) == expected


def test_mime_prefix_wins_over_extension():
    assert detect_file_kind("image/png", "looks-like.md") == "image"


def test_pdf_requires_exact_mime():
    assert detect_file_kind("application/pdf+x", "doc.pdf") == "other"


def test_format_bytes():
    assert format_bytes(0) == "0 Bytes"
    assert format_bytes(10) == "10 Bytes"
    assert format_bytes(1536) == "1.5 KB"
    assert format_bytes(5 * 1024 * 1024) == "5 MB"


def test_strip_data_url():
    assert strip_data_url("data:text/plain;base64,aGk=") == "aGk="
    assert strip_data_url("aGk=") == "aGk="
