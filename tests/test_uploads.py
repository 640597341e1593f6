"""Tests for the asset upload client."""

import httpx
import pytest

from portfolio_cms.uploads import AssetUploadClient, UploadError, UploadFile


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://cms.test")


@pytest.fixture
def image() -> UploadFile:
    return UploadFile(filename="photo.jpg", content=b"jpeg-bytes", content_type="image/jpeg")


class TestAssetUploadClient:
    """Tests for AssetUploadClient.upload."""

    @pytest.mark.asyncio
    async def test_successful_upload(self, image):
        """Test that the URL and path are read from the response."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = request.read()
            return httpx.Response(200, json={"id": "a1", "url": "/uploads/public-assets/x.jpg", "path": "x.jpg"})

        async with _client(handler) as client:
            asset = await AssetUploadClient(client, bucket="media").upload(image)

        assert asset.url == "/uploads/public-assets/x.jpg"
        assert asset.path == "x.jpg"
        assert asset.id == "a1"
        assert seen["path"] == "/api/uploads"
        assert b'name="file"; filename="photo.jpg"' in seen["body"]
        assert b'name="bucket"' in seen["body"]

    @pytest.mark.asyncio
    async def test_error_response(self, image):
        """Test that a non-2xx response raises with the server's message."""
        async with _client(lambda request: httpx.Response(403, json={"error": "Forbidden"})) as client:
            with pytest.raises(UploadError, match="Forbidden"):
                await AssetUploadClient(client).upload(image)

    @pytest.mark.asyncio
    async def test_missing_url(self, image):
        """Test that a response without a URL is an error."""
        async with _client(lambda request: httpx.Response(200, json={"path": "x"})) as client:
            with pytest.raises(UploadError, match="URL"):
                await AssetUploadClient(client).upload(image)

    @pytest.mark.asyncio
    async def test_non_json_response(self, image):
        """Test that a non-JSON success body is an error."""
        async with _client(lambda request: httpx.Response(200, text="<html>")) as client:
            with pytest.raises(UploadError):
                await AssetUploadClient(client).upload(image)

    @pytest.mark.asyncio
    async def test_transport_error(self, image):
        """Test that connection failures raise UploadError."""
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(UploadError, match="refused"):
                await AssetUploadClient(client).upload(image)

    def test_is_image(self, image):
        """Test MIME-based image detection."""
        assert image.is_image
        assert not UploadFile("a.pdf", b"", "application/pdf").is_image
