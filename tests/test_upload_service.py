"""Tests for image uploads."""

from unittest.mock import MagicMock

import pytest
import requests

import upload_service
from errors import UploadFailedError
from upload_service import IMAGEKIT_UPLOAD_URL, UploadService


class TestUnconfigured:
    def test_returns_placeholder_url(self):
        service = UploadService()

        assert service.configured is False
        assert service.upload(b"\x89PNG", "neem oil.png") == "https://via.placeholder.com/400?text=neem%20oil.png"

    def test_needs_both_keys(self):
        assert UploadService(public_key="public").configured is False


class TestConfigured:
    @pytest.fixture
    def service(self):
        return UploadService(public_key="public_key", private_key="private_key")

    def test_posts_file_and_returns_url(self, service, monkeypatch):
        response = MagicMock()
        response.json.return_value = {"url": "https://ik.imagekit.io/agro/products/urea.png"}
        post = MagicMock(return_value=response)
        monkeypatch.setattr(upload_service.requests, "post", post)

        url = service.upload(b"data", "urea.png", folder="agro/products")

        assert url == "https://ik.imagekit.io/agro/products/urea.png"
        args, kwargs = post.call_args
        assert args == (IMAGEKIT_UPLOAD_URL,)
        assert kwargs["auth"] == ("private_key", "")
        assert kwargs["data"] == {"fileName": "urea.png", "folder": "agro/products"}

    def test_http_error_raises_upload_failed(self, service, monkeypatch):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("401 Unauthorized")
        monkeypatch.setattr(upload_service.requests, "post", MagicMock(return_value=response))

        with pytest.raises(UploadFailedError) as exc_info:
            service.upload(b"data", "urea.png")

        assert exc_info.value.status_code == 500
        assert str(exc_info.value) == "Image upload failed"

    def test_connection_error_raises_upload_failed(self, service, monkeypatch):
        monkeypatch.setattr(
            upload_service.requests, "post", MagicMock(side_effect=requests.ConnectionError("unreachable"))
        )

        with pytest.raises(UploadFailedError):
            service.upload(b"data", "urea.png")

    def test_response_without_url_raises_upload_failed(self, service, monkeypatch):
        response = MagicMock()
        response.json.return_value = {"message": "quota exceeded"}
        monkeypatch.setattr(upload_service.requests, "post", MagicMock(return_value=response))

        with pytest.raises(UploadFailedError):
            service.upload(b"data", "urea.png")

    def test_builds_url_from_endpoint_when_only_file_path_returned(self, monkeypatch):
        service = UploadService(
            public_key="public_key", private_key="private_key", url_endpoint="https://ik.imagekit.io/agro/"
        )
        response = MagicMock()
        response.json.return_value = {"filePath": "/products/urea.png"}
        monkeypatch.setattr(upload_service.requests, "post", MagicMock(return_value=response))

        assert service.upload(b"data", "urea.png") == "https://ik.imagekit.io/agro/products/urea.png"
