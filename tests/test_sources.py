"""Tests for import file sources."""

import httpx
import pytest
from unittest.mock import MagicMock, Mock, patch

from ticket_intake.config import SourceConfig
from ticket_intake.errors import SourceError
from ticket_intake.sources import (
    RemoteFileClient,
    filename_from_url,
    is_url,
    load_upload,
    read_local_file,
)


URL = "https://files.example.com/exports/tickets%202024.csv"


@pytest.fixture
def config() -> SourceConfig:
    return SourceConfig(request_timeout=5)


class TestHelpers:
    """Tests for URL helpers."""

    @pytest.mark.parametrize("source,expected", [
        ("https://example.com/t.csv", True),
        ("http://example.com/t.json", True),
        ("ftp://example.com/t.csv", False),
        ("/tmp/tickets.csv", False),
        ("tickets.xml", False),
    ])
    def test_is_url(self, source, expected):
        assert is_url(source) is expected

    def test_filename_from_url(self):
        assert filename_from_url(URL) == "tickets 2024.csv"

    def test_filename_ignores_query(self):
        assert filename_from_url("https://example.com/a/b.json?token=1") == "b.json"


class TestRemoteFileClient:
    """Tests for RemoteFileClient."""

    def test_context_manager(self, config):
        """Test client works as context manager."""
        with RemoteFileClient(config) as client:
            assert client._client is not None
        assert client._client is None

    def test_fetch_without_context_raises(self, config):
        """Test fetch raises if not in context manager."""
        client = RemoteFileClient(config)
        with pytest.raises(RuntimeError, match="context manager"):
            client.fetch(URL)

    @patch("ticket_intake.sources.httpx.Client")
    def test_fetch_success(self, mock_client_class, config):
        """Test successful download."""
        mock_response = Mock()
        mock_response.content = b"customer_id\n"
        mock_response.raise_for_status = Mock()

        mock_client = MagicMock()
        mock_client.get.return_value = mock_response
        mock_client_class.return_value = mock_client

        with RemoteFileClient(config) as client:
            upload = client.fetch(URL)

        mock_client_class.assert_called_once_with(timeout=5, follow_redirects=True)
        mock_client.get.assert_called_once_with(URL)
        mock_client.close.assert_called_once()
        assert upload.filename == "tickets 2024.csv"
        assert upload.content == b"customer_id\n"

    def test_fetch_http_error(self, config):
        """Test HTTP status errors are wrapped."""
        request = httpx.Request("GET", URL)
        response = httpx.Response(404, request=request)

        mock_client = MagicMock()
        mock_client.get.return_value = response

        with RemoteFileClient(config) as client:
            client._client = mock_client
            with pytest.raises(SourceError, match="HTTP error: 404"):
                client.fetch(URL)

    def test_fetch_request_error(self, config):
        """Test connection errors are wrapped."""
        mock_client = MagicMock()
        mock_client.get.side_effect = httpx.ConnectError("connection refused")

        with RemoteFileClient(config) as client:
            client._client = mock_client
            with pytest.raises(SourceError, match="Request failed"):
                client.fetch(URL)


class TestLocalFiles:
    """Tests for reading files from disk."""

    def test_read_local_file(self, tmp_path):
        path = tmp_path / "tickets.json"
        path.write_bytes(b"[]")

        upload = read_local_file(path)

        assert upload.filename == "tickets.json"
        assert upload.content == b"[]"

    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceError, match="File not found"):
            read_local_file(tmp_path / "missing.csv")

    def test_load_upload_local(self, tmp_path):
        path = tmp_path / "tickets.xml"
        path.write_bytes(b"<tickets/>")

        upload = load_upload(str(path))

        assert upload.filename == "tickets.xml"

    @patch("ticket_intake.sources.RemoteFileClient")
    def test_load_upload_url(self, mock_client_class, config):
        client = mock_client_class.return_value.__enter__.return_value
        client.fetch.return_value = Mock(filename="tickets 2024.csv")

        upload = load_upload(URL, config)

        mock_client_class.assert_called_once_with(config)
        client.fetch.assert_called_once_with(URL)
        assert upload.filename == "tickets 2024.csv"
