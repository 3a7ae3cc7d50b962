"""Tests for text sniffing, sanitizing and truncation."""

from glance.reader import (
    TRUNCATION_MARKER,
    is_text_file,
    looks_like_text,
    read_text_file,
    sanitize_text,
)


class TestLooksLikeText:

    def test_empty_is_text(self):
        assert looks_like_text(b"")

    def test_plain_ascii(self):
        assert looks_like_text(b"def main():\n\treturn 0\n")

    def test_nul_byte_is_binary(self):
        assert not looks_like_text(b"GIF89a\x00\x01")

    def test_utf8_is_text(self):
        assert looks_like_text("naïve café ✓".encode("utf-8"))

    def test_multibyte_cut_at_window_edge(self):
        sample = ("a" * 10 + "✓").encode("utf-8")[:-1]

        assert looks_like_text(sample)

    def test_latin1_is_text(self):
        assert looks_like_text(b"caf\xe9 cr\xe8me\n")

    def test_control_heavy_is_binary(self):
        assert not looks_like_text(bytes([0x01, 0x02, 0x03, 0x04, 0x41, 0xff]))


class TestReadTextFile:

    def test_reads_whole_file(self, tmp_path):
        path = tmp_path / "a.txt"
        path.write_text("hello\n")

        assert is_text_file(path)
        assert read_text_file(path) == "hello\n"

    def test_truncates_with_marker(self, tmp_path):
        path = tmp_path / "big.txt"
        path.write_text("0123456789abcdef")

        assert read_text_file(path, max_bytes=10) == "0123456789" + TRUNCATION_MARKER

    def test_exact_size_not_truncated(self, tmp_path):
        path = tmp_path / "exact.txt"
        path.write_text("0123456789")

        assert read_text_file(path, max_bytes=10) == "0123456789"

    def test_zero_limit_reads_everything(self, tmp_path):
        path = tmp_path / "all.txt"
        path.write_text("x" * 50)

        assert read_text_file(path, max_bytes=0) == "x" * 50

    def test_binary_file_detected(self, tmp_path):
        path = tmp_path / "blob.bin"
        path.write_bytes(b"\x7fELF\x02\x01\x01\x00\x00")

        assert not is_text_file(path)


def test_sanitize_replaces_invalid_bytes():
    assert sanitize_text(b"ok \xff\xfe end") == "ok \ufffd\ufffd end"
