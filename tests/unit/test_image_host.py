"""
Unit tests for the image host client.
"""

import json

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from eventform.image_host import DeleteError, ImageHostClient, UploadError
from eventform.models import ImageResource


def _response(status_code, json_body=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_body
    return response


@pytest.fixture
def host(mock_server_url, mock_api_key):
    return ImageHostClient(server_url=mock_server_url, api_key=mock_api_key)


class TestUpload:
    """Tests for ImageHostClient.upload."""

    @pytest.mark.asyncio
    async def test_upload_success(self, host, image_bytes):
        with patch.object(host, "_client") as mock_client:
            mock_client.post = AsyncMock(
                return_value=_response(200, {"image": "https://i.example/u1.jpg", "delete": "https://i.example/d1"})
            )

            resource = await host.upload(image_bytes, 800, 3600)

        assert resource == ImageResource("https://i.example/u1.jpg", "https://i.example/d1")
        kwargs = mock_client.post.await_args.kwargs
        assert mock_client.post.await_args.args == ("/v2/image",)
        assert kwargs["data"] == {"size": "800", "expiration": "3600"}
        assert kwargs["files"]["file"][1] == image_bytes

    @pytest.mark.asyncio
    async def test_upload_rejected(self, host, image_bytes):
        with patch.object(host, "_client") as mock_client:
            mock_client.post = AsyncMock(return_value=_response(400, {"detail": "File too large"}))

            with pytest.raises(UploadError) as exc_info:
                await host.upload(image_bytes, 800, 3600)

        assert exc_info.value.status_code == 400
        assert str(exc_info.value) == "File too large"

    @pytest.mark.asyncio
    async def test_upload_incomplete_response(self, host, image_bytes):
        with patch.object(host, "_client") as mock_client:
            mock_client.post = AsyncMock(return_value=_response(200, {"image": "u1"}))

            with pytest.raises(UploadError):
                await host.upload(image_bytes, 800, 3600)

    @pytest.mark.asyncio
    async def test_upload_network_error(self, host, image_bytes):
        with patch.object(host, "_client") as mock_client:
            mock_client.post = AsyncMock(side_effect=httpx.ConnectError("Connection refused"))

            with pytest.raises(UploadError):
                await host.upload(image_bytes, 800, 3600)

    @pytest.mark.asyncio
    async def test_upload_read_error(self, host, image_bytes):
        with patch.object(host, "_client") as mock_client:
            mock_client.post = AsyncMock(side_effect=httpx.ReadError("Connection reset by peer"))

            with pytest.raises(UploadError, match="Connection reset"):
                await host.upload(image_bytes, 800, 3600)

    @pytest.mark.asyncio
    async def test_upload_non_json_body(self, host, image_bytes):
        response = _response(200)
        response.json.side_effect = json.JSONDecodeError("Expecting value", "<html>gateway</html>", 0)
        with patch.object(host, "_client") as mock_client:
            mock_client.post = AsyncMock(return_value=response)

            with pytest.raises(UploadError) as exc_info:
                await host.upload(image_bytes, 800, 3600)

        assert exc_info.value.status_code == 200


class TestDelete:
    """Tests for ImageHostClient.delete."""

    @pytest.mark.asyncio
    async def test_delete_success(self, host):
        with patch.object(host, "_client") as mock_client:
            mock_client.delete = AsyncMock(return_value=_response(200))

            await host.delete("https://i.example/d1")

        mock_client.delete.assert_awaited_once_with(
            "/v2/image", params={"url": "https://i.example/d1"}
        )

    @pytest.mark.asyncio
    async def test_delete_rejected(self, host):
        with patch.object(host, "_client") as mock_client:
            mock_client.delete = AsyncMock(return_value=_response(500, {"error": "host error"}))

            with pytest.raises(DeleteError) as exc_info:
                await host.delete("d1")

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_delete_timeout(self, host):
        with patch.object(host, "_client") as mock_client:
            mock_client.delete = AsyncMock(side_effect=httpx.ReadTimeout("timed out"))

            with pytest.raises(DeleteError):
                await host.delete("d1")

    @pytest.mark.asyncio
    async def test_delete_protocol_error(self, host):
        with patch.object(host, "_client") as mock_client:
            mock_client.delete = AsyncMock(side_effect=httpx.RemoteProtocolError("Server disconnected"))

            with pytest.raises(DeleteError, match="Server disconnected"):
                await host.delete("d1")
