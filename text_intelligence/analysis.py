# text_intelligence/analysis.py
"""Adapter for the external text analysis service (Deepgram /v1/read)."""
import logging
import os
from typing import Any, Dict

import httpx

from .config import get_cfg
from .errors import InvalidInputError, TextTooLongError, UpstreamError
from .schemas import AnalysisOptions

log = logging.getLogger(__name__)


class DeepgramAnalyzer:
    """Posts text to the read endpoint and raises structured errors."""

    def __init__(self, api_key: str | None = None, base_url: str | None = None,
                 timeout_s: float | None = None,
                 transport: httpx.AsyncBaseTransport | None = None):
        cfg = get_cfg()["deepgram"]
        self.api_key = api_key if api_key is not None else os.environ.get("DEEPGRAM_API_KEY", "")
        self.base_url = (base_url or cfg["base_url"]).rstrip("/")
        self.timeout_s = float(timeout_s if timeout_s is not None else cfg["timeout_seconds"])
        self.transport = transport

    async def analyze(self, text: str, options: AnalysisOptions) -> Dict[str, Any]:
        if not self.api_key:
            raise UpstreamError("DEEPGRAM_API_KEY not set")

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                resp = await client.post(
                    f"{self.base_url}/v1/read",
                    params=options.to_query(),
                    json={"text": text},
                    headers={"Authorization": f"Token {self.api_key}"},
                )
        except httpx.TimeoutException:
            raise UpstreamError("Text analysis service timed out") from None
        except httpx.HTTPError as e:
            raise UpstreamError(f"Text analysis service unreachable: {e}") from None

        if resp.is_success:
            try:
                payload = resp.json()
            except ValueError:
                raise UpstreamError("Text analysis service returned invalid JSON", resp.status_code) from None
            if not isinstance(payload, dict) or not isinstance(payload.get("results", {}), dict):
                raise UpstreamError("Text analysis service returned an unexpected payload", resp.status_code)
            return payload

        message = _error_message(resp)
        log.warning("analysis failed: status=%s message=%s", resp.status_code, message)
        if resp.status_code == 413:
            raise TextTooLongError(message, resp.status_code)
        if 400 <= resp.status_code < 500:
            raise InvalidInputError(message, resp.status_code)
        raise UpstreamError(message, resp.status_code)


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("err_msg", "message", "error"):
            if isinstance(body.get(key), str) and body[key]:
                return body[key]
    return f"Text analysis service returned {resp.status_code}"
