"""
Unit tests for the byte stream buffer.
"""

import pytest

from serverlite.core.buffer import ByteStreamBuffer, CRLF, DEFAULT_READ_SIZE
from serverlite.exceptions import BufferOverflow, ConnectionClosed


class TestReadLine:
    """Tests for CRLF line extraction."""

    def test_single_read_single_line(self, chunked):
        """A whole line in one read comes back without its terminator."""
        buffer = ByteStreamBuffer(chunked.whole(b"GET / HTTP/1.1\r\n"), read_size=64)

        assert buffer.read_line() == b"GET / HTTP/1.1"
        assert buffer.pending == b""

    def test_line_spread_over_many_reads(self, chunked):
        """The default 7-byte reads need several calls per line."""
        stream = chunked.whole(b"GET /foo.txt HTTP/1.1\r\n")
        buffer = ByteStreamBuffer(stream)

        assert buffer.read_line() == b"GET /foo.txt HTTP/1.1"
        assert set(stream.recv_sizes) == {DEFAULT_READ_SIZE}
        assert len(stream.recv_sizes) == 4  # 23 bytes / 7

    def test_crlf_straddling_two_reads(self, chunked):
        """CR in one read and LF in the next is still one delimiter."""
        buffer = ByteStreamBuffer(chunked([b"abc\r", b"\ndef\r\n"]), read_size=64)

        assert buffer.read_line() == b"abc"
        assert buffer.read_line() == b"def"

    def test_one_byte_reads(self, chunked):
        buffer = ByteStreamBuffer(chunked.whole(b"ab\r\ncd\r\n"), read_size=1)

        assert buffer.read_line() == b"ab"
        assert buffer.read_line() == b"cd"

    def test_lone_cr_is_not_a_delimiter(self, chunked):
        buffer = ByteStreamBuffer(chunked.whole(b"a\rb\nc\r\n"), read_size=3)

        assert buffer.read_line() == b"a\rb\nc"

    def test_empty_line(self, chunked):
        buffer = ByteStreamBuffer(chunked.whole(b"\r\n"), read_size=64)

        assert buffer.read_line() == b""


class TestRemainder:
    """Bytes after the delimiter must survive for the next call."""

    def test_next_line_start_is_kept(self, chunked):
        """End of line 1 and start of line 2 in the same read."""
        stream = chunked([b"GET / HTTP/1.1\r\nHo", b"st: x\r\n"])
        buffer = ByteStreamBuffer(stream, read_size=64)

        assert buffer.read_line() == b"GET / HTTP/1.1"
        assert buffer.pending == b"Ho"
        assert buffer.read_line() == b"Host: x"
        assert buffer.pending == b""

    def test_splits_at_first_delimiter_only(self, chunked):
        buffer = ByteStreamBuffer(chunked.whole(b"a\r\nb\r\n\r\n"), read_size=64)

        assert buffer.read_line() == b"a"
        assert buffer.pending == b"b\r\n\r\n"

    def test_buffered_line_needs_no_read(self, chunked):
        """A line already in the buffer is served without touching the source."""
        stream = chunked.whole(b"a\r\nb\r\n")
        buffer = ByteStreamBuffer(stream, read_size=64)

        buffer.read_line()
        reads = len(stream.recv_sizes)
        assert buffer.read_line() == b"b"
        assert len(stream.recv_sizes) == reads

    def test_stops_reading_once_delimiter_found(self, chunked):
        stream = chunked([b"a\r\n", b"never read"])
        buffer = ByteStreamBuffer(stream, read_size=64)

        assert buffer.read_line() == b"a"
        assert not stream.exhausted
        assert len(stream.recv_sizes) == 1

    def test_len_counts_pending_bytes(self, chunked):
        buffer = ByteStreamBuffer(chunked.whole(b"ab\r\ncde"), read_size=64)
        buffer.read_line()

        assert len(buffer) == 3


class TestConsumeUntil:
    """Tests for arbitrary delimiters."""

    def test_multi_byte_delimiter_across_three_reads(self, chunked):
        stream = chunked([b"a\r\n", b"\r", b"\nrest"])
        buffer = ByteStreamBuffer(stream, read_size=64)

        assert buffer.consume_until(b"\r\n\r\n") == b"a"
        assert buffer.pending == b"rest"

    def test_custom_delimiter(self, chunked):
        buffer = ByteStreamBuffer(chunked.whole(b"key=value;next"), read_size=2)

        assert buffer.consume_until(b"=") == b"key"
        assert buffer.consume_until(b";") == b"value"

    def test_empty_delimiter_rejected(self, chunked):
        buffer = ByteStreamBuffer(chunked.whole(b"abc"))

        with pytest.raises(ValueError):
            buffer.consume_until(b"")

    def test_read_line_uses_crlf(self, chunked):
        buffer = ByteStreamBuffer(chunked.whole(b"x" + CRLF), read_size=64)

        assert buffer.consume_until(CRLF) == b"x"


class TestEndOfStream:
    """Tests for a peer that goes away."""

    def test_closed_before_delimiter(self, chunked):
        buffer = ByteStreamBuffer(chunked.whole(b"GET / HTT"), read_size=4)

        with pytest.raises(ConnectionClosed) as exc_info:
            buffer.read_line()

        assert exc_info.value.pending == b"GET / HTT"
        assert exc_info.value.status_code is None

    def test_closed_immediately(self, chunked):
        buffer = ByteStreamBuffer(chunked([]))

        with pytest.raises(ConnectionClosed):
            buffer.read_line()

    def test_append_from_source_reports_count(self, chunked):
        buffer = ByteStreamBuffer(chunked.whole(b"abcdefghij"), read_size=7)

        assert buffer.append_from_source() == 7
        assert buffer.append_from_source() == 3
        with pytest.raises(ConnectionClosed):
            buffer.append_from_source()
        assert buffer.pending == b"abcdefghij"


class TestLimits:
    """Tests for constructor validation and the size limit."""

    @pytest.mark.parametrize("read_size", [0, -1])
    def test_read_size_must_be_positive(self, chunked, read_size):
        with pytest.raises(ValueError):
            ByteStreamBuffer(chunked([]), read_size=read_size)

    def test_max_size_must_be_positive(self, chunked):
        with pytest.raises(ValueError):
            ByteStreamBuffer(chunked([]), max_size=0)

    def test_overflow_without_delimiter(self, chunked):
        buffer = ByteStreamBuffer(chunked.whole(b"A" * 100), read_size=7, max_size=20)

        with pytest.raises(BufferOverflow) as exc_info:
            buffer.read_line()

        assert exc_info.value.status_code == 400
        assert exc_info.value.limit == 20

    def test_line_within_limit(self, chunked):
        buffer = ByteStreamBuffer(chunked.whole(b"A" * 18 + b"\r\n"), read_size=7, max_size=20)

        assert buffer.read_line() == b"A" * 18

    @pytest.mark.parametrize("fragment_size", [1, 2, 7, 19, 20, 21, 502])
    def test_overlong_line_rejected_however_it_arrives(self, chunked, fragment_size):
        data = b"A" * 500 + b"\r\n"
        buffer = ByteStreamBuffer(chunked.every(data, fragment_size), read_size=1024, max_size=20)

        with pytest.raises(BufferOverflow):
            buffer.read_line()

    def test_overlong_line_in_one_read(self, chunked):
        buffer = ByteStreamBuffer(chunked.whole(b"A" * 500 + b"\r\nB\r\n"), read_size=1024, max_size=20)

        with pytest.raises(BufferOverflow) as exc_info:
            buffer.read_line()

        assert exc_info.value.size == 500

    @pytest.mark.parametrize("fragments", [
        [b"A" * 20 + b"\r\n"],
        [b"A" * 20 + b"\r", b"\n"],
        [b"A" * 20, b"\r\n"],
        [b"A" * 10, b"A" * 10 + b"\r", b"\n"],
    ])
    def test_line_of_exactly_max_size(self, chunked, fragments):
        buffer = ByteStreamBuffer(chunked(fragments), read_size=1024, max_size=20)

        assert buffer.read_line() == b"A" * 20

    @pytest.mark.parametrize("fragment_size", [1, 7, 21, 23])
    def test_one_byte_over_max_size(self, chunked, fragment_size):
        data = b"A" * 21 + b"\r\n"
        buffer = ByteStreamBuffer(chunked.every(data, fragment_size), read_size=1024, max_size=20)

        with pytest.raises(BufferOverflow):
            buffer.read_line()

    def test_limit_applies_per_line(self, chunked):
        data = b"A" * 20 + b"\r\n" + b"B" * 20 + b"\r\n"
        buffer = ByteStreamBuffer(chunked.every(data, 5), read_size=1024, max_size=20)

        assert buffer.read_line() == b"A" * 20
        assert buffer.read_line() == b"B" * 20
