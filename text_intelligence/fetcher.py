# text_intelligence/fetcher.py
"""Resolves a ``url`` request field into the text to analyze."""
import logging

import httpx
from pydantic import HttpUrl, TypeAdapter, ValidationError

from .config import get_cfg
from .errors import ContractError, INVALID_URL, TEXT_TOO_LONG

log = logging.getLogger(__name__)

_http_url = TypeAdapter(HttpUrl)


def parse_url(raw: str) -> str:
    """Validates an absolute http(s) URL, raising INVALID_URL otherwise."""
    try:
        return str(_http_url.validate_python(raw.strip()))
    except ValidationError:
        raise ContractError.validation(INVALID_URL, f"Invalid URL: {raw}") from None


class UrlFetcher:
    """Downloads text over HTTP with an explicit timeout and size cap."""

    def __init__(self, timeout_s: float | None = None, max_bytes: int | None = None,
                 transport: httpx.AsyncBaseTransport | None = None):
        cfg = get_cfg()["fetch"]
        self.timeout_s = float(timeout_s if timeout_s is not None else cfg["timeout_seconds"])
        self.max_bytes = int(max_bytes if max_bytes is not None else cfg["max_bytes"])
        self.transport = transport

    async def fetch_text(self, raw_url: str) -> str:
        url = parse_url(raw_url)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_s,
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                async with client.stream("GET", url) as resp:
                    if not resp.is_success:
                        raise ContractError.validation(
                            INVALID_URL,
                            f"Failed to fetch URL: {resp.status_code} {resp.reason_phrase}".rstrip(),
                            status=resp.status_code,
                        )
                    body = await self._read_capped(resp)
                    encoding = resp.encoding or "utf-8"
        except httpx.HTTPError as e:
            log.info("fetch failed for %s: %s", url, e)
            raise ContractError.validation(
                INVALID_URL, f"Failed to fetch URL: {str(e) or type(e).__name__}"
            ) from None
        return body.decode(encoding, errors="replace")

    async def _read_capped(self, resp: httpx.Response) -> bytes:
        """Reads the body, stopping as soon as it exceeds ``max_bytes``."""
        declared = resp.headers.get("content-length", "")
        if self.max_bytes and declared.isdigit() and int(declared) > self.max_bytes:
            raise self._too_long()

        chunks = []
        size = 0
        async for chunk in resp.aiter_bytes():
            size += len(chunk)
            if self.max_bytes and size > self.max_bytes:
                raise self._too_long()
            chunks.append(chunk)
        return b"".join(chunks)

    def _too_long(self) -> ContractError:
        return ContractError.validation(
            TEXT_TOO_LONG,
            f"Fetched content exceeds {self.max_bytes} bytes",
            max_bytes=self.max_bytes,
        )
