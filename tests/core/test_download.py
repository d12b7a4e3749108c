"""
Unit tests for download module.

Tests download functionality with mocked network requests.
"""

import pytest
import responses

from helm_installer.core.download import (
    DownloadError,
    DownloadProgress,
    download_file,
    fetch_json,
    format_progress,
)


class TestFormatProgress:
    """Test format_progress function."""

    def test_format_with_known_size(self):
        """Test formatting progress with known total size."""
        progress = DownloadProgress(
            bytes_downloaded=10485760,  # 10 MB
            total_bytes=104857600,  # 100 MB
            percentage=10.0,
            speed_bps=2097152,  # 2 MB/s
        )

        result = format_progress(progress)

        assert "10.0/100.0 MB" in result
        assert "(10.0%)" in result
        assert "2.0 MB/s" in result

    def test_format_with_unknown_size(self):
        """Test formatting progress with unknown total size."""
        progress = DownloadProgress(
            bytes_downloaded=10485760,
            total_bytes=10485760,
            percentage=0.0,
            speed_bps=1048576,
        )

        assert str(progress) == "10.0 MB at 1.0 MB/s"


class TestDownloadFile:
    """Test download_file function."""

    @responses.activate
    def test_simple_download(self, tmp_path):
        """Test simple download."""
        url = "https://example.com/file.zip"
        content = b"test content"
        destination = tmp_path / "sub" / "file.zip"

        responses.add(
            responses.GET,
            url,
            body=content,
            status=200,
            headers={"content-length": str(len(content))},
        )

        result = download_file(url, destination)

        assert result == destination
        assert destination.read_bytes() == content

    @responses.activate
    def test_download_with_progress_callback(self, tmp_path):
        """Test download reports progress."""
        url = "https://example.com/file.zip"
        content = b"x" * 100000
        destination = tmp_path / "file.zip"

        responses.add(
            responses.GET,
            url,
            body=content,
            status=200,
            headers={"content-length": str(len(content))},
        )

        progress_updates = []
        download_file(url, destination, progress_callback=progress_updates.append)

        assert len(progress_updates) > 0
        assert progress_updates[-1].bytes_downloaded == len(content)

    @responses.activate
    def test_http_error_raises_download_error(self, tmp_path):
        """Test a 404 is reported as DownloadError without retrying."""
        url = "https://example.com/missing.zip"
        destination = tmp_path / "missing.zip"

        responses.add(responses.GET, url, status=404)

        with pytest.raises(DownloadError, match="missing.zip"):
            download_file(url, destination)

        assert not destination.exists()
        assert len(responses.calls) == 1

    @responses.activate
    def test_connection_error_raises_download_error(self, tmp_path):
        """Test transport failures are reported as DownloadError."""
        url = "https://example.com/file.zip"

        # responses raises ConnectionError for unregistered URLs
        with pytest.raises(DownloadError):
            download_file(url, tmp_path / "file.zip")

    def test_empty_url(self, tmp_path):
        """Test empty URL raises ValueError."""
        with pytest.raises(ValueError, match="URL cannot be empty"):
            download_file("", tmp_path / "file.zip")


class TestFetchJson:
    """Test fetch_json function."""

    @responses.activate
    def test_fetch_json(self):
        """Test JSON body is decoded."""
        url = "https://example.com/releases"
        responses.add(responses.GET, url, json=[{"tag_name": "v3.5.3"}])

        assert fetch_json(url) == [{"tag_name": "v3.5.3"}]

    @responses.activate
    def test_fetch_json_sends_headers(self):
        """Test extra headers are sent."""
        url = "https://example.com/releases"
        responses.add(responses.GET, url, json={})

        fetch_json(url, headers={"Accept": "application/vnd.github+json"})

        assert responses.calls[0].request.headers["Accept"] == "application/vnd.github+json"

    @responses.activate
    def test_invalid_json(self):
        """Test a non-JSON body raises DownloadError."""
        url = "https://example.com/releases"
        responses.add(responses.GET, url, body="<html>")

        with pytest.raises(DownloadError):
            fetch_json(url)

    @responses.activate
    def test_server_error(self):
        """Test error status raises DownloadError."""
        url = "https://example.com/releases"
        responses.add(responses.GET, url, status=500)

        with pytest.raises(DownloadError, match="Failed to fetch"):
            fetch_json(url)
