"""Tests for exceptions and API error mapping."""
import pytest

from romup.core.exceptions import (
    RomUploadException,
    ValidationError,
    FileTooLarge,
    NetworkError,
    PlatformAmbiguous,
    PlatformSelectionError,
    PipelineCancelled,
)
from romup.core.api.errors import APIError, HTTPErrorMessages


class TestExceptions:

    def test_code_defaults_to_class_name(self):
        error = FileTooLarge("too big", "game.iso")

        assert error.code == "FileTooLarge"
        assert error.message == "too big"
        assert error.file_name == "game.iso"
        assert isinstance(error, ValidationError)
        assert isinstance(error, RomUploadException)

    def test_explicit_code(self):
        assert RomUploadException("boom", code="E1").code == "E1"

    def test_selection_error_carries_platform(self):
        error = PlatformAmbiguous("two matches", file_name="data.bin", platform_id=3)

        assert isinstance(error, PlatformSelectionError)
        assert error.platform_id == 3

    def test_cancelled_default_message(self):
        assert str(PipelineCancelled()) == "Run cancelled"


class TestHTTPErrorMessages:

    def test_unreachable(self):
        assert HTTPErrorMessages.get_message(0).startswith("Connection failed")

    def test_payload_too_large(self):
        assert "File too large" in HTTPErrorMessages.get_message(413, "ignored")

    def test_server_error(self):
        assert HTTPErrorMessages.get_message(503) == HTTPErrorMessages.SERVER_ERROR

    def test_client_error_uses_server_message(self):
        assert HTTPErrorMessages.get_message(400, "Bad platform") == "Bad platform"

    def test_client_error_without_message(self):
        assert HTTPErrorMessages.get_message(404) == "Upload failed (HTTP 404)"


class TestAPIError:

    def test_is_network_error(self):
        error = APIError(500, "stack trace")

        assert isinstance(error, NetworkError)
        assert error.status == 500
        assert error.server_message == "stack trace"
        assert error.message == HTTPErrorMessages.SERVER_ERROR

    def test_raise(self):
        with pytest.raises(NetworkError, match="Connection failed"):
            raise APIError(0)
