import asyncio
import logging

from http import HTTPStatus
from typing import Optional

import aiohttp

from bdecode.bencode import Value, decode, loads
from bdecode.utils import is_url


__all__ = (
    "SourceReader",
    "SourceReadError",
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


class SourceReadError(Exception):
    ...


class SourceReader:
    """Supplies raw buffers from local files or HTTP(S) URLs."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._http_session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "SourceReader":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def read(self, source: str) -> bytes:
        if is_url(source):
            return await self._fetch(source)
        return await asyncio.to_thread(self._read_file, source)

    async def decode(self, source: str, strict: bool = False) -> list[Value]:
        payload = await self.read(source)
        values = [loads(payload)] if strict else decode(payload)
        logger.debug("Decoded %d top-level value(s) from %s",
                     len(values), source)
        return values

    async def close(self) -> None:
        if self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    @property
    def _session(self) -> aiohttp.ClientSession:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        return self._http_session

    async def _fetch(self, url: str) -> bytes:
        logger.debug("Fetching %s", url)
        try:
            async with self._session.get(
                url,
                timeout=self._timeout
            ) as http_resp:
                if http_resp.status != HTTPStatus.OK:
                    raise SourceReadError(
                        f"Invalid response from {url}: {http_resp.status}")
                payload = await http_resp.read()
        except (asyncio.TimeoutError, aiohttp.ClientError) as exc:
            raise SourceReadError(f"Can't connect to {url}") from exc
        logger.debug("Received %d bytes from %s", len(payload), url)
        return payload

    @staticmethod
    def _read_file(path: str) -> bytes:
        logger.debug("Reading %s", path)
        try:
            with open(path, "rb") as fin:
                return fin.read()
        except OSError as exc:
            raise SourceReadError(
                f"Can't read {path}: {exc.strerror}") from exc
