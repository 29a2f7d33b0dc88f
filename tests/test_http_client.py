"""
Tests for HttpClient.

The underlying httpx client is mocked out; every request is sent once.
"""

import pytest
from unittest.mock import AsyncMock, Mock, patch
import httpx
from cryptosi.utils.http_client import HttpClient


def _failing_response(status_code: int):
    response = Mock()
    response.status_code = status_code
    response.request = Mock()
    response.raise_for_status.side_effect = httpx.HTTPStatusError(
        "error", request=response.request, response=response
    )
    return response


class TestHttpClient:

    @pytest.fixture
    def http_client(self):
        return HttpClient(timeout=30.0)

    @pytest.mark.asyncio
    async def test_post_request_success(self, http_client):
        with patch.object(http_client, '_client', new_callable=AsyncMock) as mock_client:
            mock_response = Mock()
            mock_response.status_code = 200
            mock_response.json.return_value = {"images": [{"image": "QUJD"}]}
            mock_response.raise_for_status = Mock()
            mock_client.request.return_value = mock_response

            response = await http_client.post("https://api.example.com/v1/image/generation", json={"prompt": "test"})

            assert response.json() == {"images": [{"image": "QUJD"}]}
            mock_client.request.assert_called_once()
            assert mock_client.request.call_args.kwargs["json"] == {"prompt": "test"}

    @pytest.mark.asyncio
    async def test_server_error_is_not_retried(self, http_client):
        with patch.object(http_client, '_client', new_callable=AsyncMock) as mock_client:
            mock_client.request.return_value = _failing_response(503)

            with pytest.raises(httpx.HTTPStatusError):
                await http_client.post("https://api.example.com/generate", json={})

            assert mock_client.request.call_count == 1

    @pytest.mark.asyncio
    async def test_network_error_propagates(self, http_client):
        with patch.object(http_client, '_client', new_callable=AsyncMock) as mock_client:
            mock_client.request.side_effect = httpx.ConnectError("Connection refused")

            with pytest.raises(httpx.ConnectError):
                await http_client.post("https://api.example.com/generate", json={})

            assert mock_client.request.call_count == 1

    def test_none_timeout_disables_limits(self):
        http_client = HttpClient(timeout=None)
        assert http_client.timeout == httpx.Timeout(None)

    @pytest.mark.asyncio
    async def test_close_closes_underlying_client(self, http_client):
        await http_client.close()
        assert http_client._client.is_closed
