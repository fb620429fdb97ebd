import asyncio

from unittest.mock import patch, AsyncMock, MagicMock, Mock

import aiohttp
import pytest

from bdecode.bencode import LeadingZero
from bdecode.sources import SourceReader, SourceReadError


def fake_session(status=200, payload=b""):
    http_resp = Mock(status=status)
    http_resp.read = AsyncMock(return_value=payload)

    resp_ctx = MagicMock()
    resp_ctx.__aenter__.return_value = http_resp
    resp_ctx.__aexit__.return_value = False

    session = Mock()
    session.get.return_value = resp_ctx
    session.close = AsyncMock()
    return session


class TestSourceReader:
    @pytest.mark.asyncio
    async def test_read_file(self, tmp_path):
        path = tmp_path / "data.torrent"
        path.write_bytes(b"d3:heyi69ee")
        reader = SourceReader()
        assert await reader.read(str(path)) == b"d3:heyi69ee"

    @pytest.mark.asyncio
    async def test_read_missing_file(self, tmp_path):
        reader = SourceReader()
        with pytest.raises(SourceReadError) as excinfo:
            await reader.read(str(tmp_path / "missing.torrent"))
        assert "missing.torrent" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_read_url(self):
        reader = SourceReader()
        reader._http_session = fake_session(payload=b"d8:intervali1800ee")
        url = "http://tracker.example.com/announce"
        assert await reader.read(url) == b"d8:intervali1800ee"
        reader._http_session.get.assert_called_once_with(
            url, timeout=reader._timeout)

    @pytest.mark.asyncio
    async def test_read_url_bad_status(self):
        reader = SourceReader()
        reader._http_session = fake_session(status=404)
        with pytest.raises(SourceReadError) as excinfo:
            await reader.read("http://tracker.example.com/announce")
        assert str(excinfo.value) == \
            "Invalid response from http://tracker.example.com/announce: 404"

    @pytest.mark.parametrize("exc", [
        asyncio.TimeoutError(),
        aiohttp.ClientConnectionError(),
    ])
    @pytest.mark.asyncio
    async def test_read_url_connection_err(self, exc):
        reader = SourceReader()
        reader._http_session = fake_session()
        reader._http_session.get.side_effect = exc
        with pytest.raises(SourceReadError) as excinfo:
            await reader.read("https://example.com/file.torrent")
        assert str(excinfo.value) == \
            "Can't connect to https://example.com/file.torrent"

    @pytest.mark.asyncio
    @patch.object(SourceReader, "read", new_callable=AsyncMock)
    async def test_decode(self, read_mock):
        read_mock.return_value = b"i1ei2e"
        assert await SourceReader().decode("file.torrent") == [1, 2]

    @pytest.mark.asyncio
    @patch.object(SourceReader, "read", new_callable=AsyncMock)
    async def test_decode_strict(self, read_mock):
        read_mock.return_value = b"d3:heyi69ee"
        assert await SourceReader().decode("file.torrent", strict=True) \
            == [{b"hey": 69}]

    @pytest.mark.asyncio
    @patch.object(SourceReader, "read", new_callable=AsyncMock)
    async def test_decode_with_err(self, read_mock):
        read_mock.return_value = b"i01e"
        with pytest.raises(LeadingZero):
            await SourceReader().decode("file.torrent")

    @pytest.mark.asyncio
    async def test_close(self):
        session = fake_session()
        async with SourceReader() as reader:
            reader._http_session = session
        session.close.assert_awaited_once()
        assert reader._http_session is None

    @pytest.mark.asyncio
    async def test_close_without_session(self):
        reader = SourceReader()
        await reader.close()
        assert reader._http_session is None
