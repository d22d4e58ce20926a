"""
Unit tests for HTTP response serialization.
"""

import pytest

from serverlite.http.response import (
    Response,
    STATUS_REASONS,
    ok,
    not_found,
    error_response,
)


class TestResponse:
    """Tests for Response class."""

    def test_status_line(self):
        """Test status line generation."""
        assert Response(200).status_line == "HTTP/1.1 200 OK"
        assert Response(404).status_line == "HTTP/1.1 404 NOT FOUND"

    def test_to_bytes_exact(self):
        response = Response(200, b"Hello world\n")

        assert response.to_bytes() == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Length: 12\r\n"
            b"\r\n"
            b"Hello world\n"
        )

    def test_not_found_has_zero_length(self):
        assert not_found().to_bytes() == b"HTTP/1.1 404 NOT FOUND\r\nContent-Length: 0\r\n\r\n"

    def test_content_length_counts_bytes(self):
        """Test that Content-Length is bytes, not characters."""
        response = ok("héllo")

        assert response.content == "héllo".encode("utf-8")
        assert b"Content-Length: 6\r\n" in response.to_bytes()

    def test_binary_body_passes_through(self):
        body = bytes(range(256))
        data = Response(200, body).to_bytes()

        assert data.endswith(b"\r\n\r\n" + body)

    def test_unknown_status_is_an_error(self):
        response = Response(302, b"")

        with pytest.raises(ValueError):
            response.to_bytes()


class TestConvenienceFunctions:
    """Tests for convenience response functions."""

    def test_ok(self):
        response = ok(b"data")
        assert response.status_code == 200
        assert response.content == b"data"

    def test_ok_default_empty(self):
        assert ok().content == b""

    def test_not_found(self):
        response = not_found()
        assert response.status_code == 404
        assert response.content == b""

    @pytest.mark.parametrize("code, reason", [
        (400, "BAD REQUEST"),
        (408, "REQUEST TIMEOUT"),
        (500, "INTERNAL SERVER ERROR"),
    ])
    def test_error_response(self, code: int, reason: str):
        response = error_response(code)

        assert response.content == b""
        assert response.to_bytes() == f"HTTP/1.1 {code} {reason}\r\nContent-Length: 0\r\n\r\n".encode()

    def test_error_response_rejects_unknown_codes(self):
        with pytest.raises(ValueError):
            error_response(418)


def test_status_table_is_closed():
    assert set(STATUS_REASONS) == {200, 400, 404, 408, 500}
