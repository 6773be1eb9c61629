# text_intelligence/normalizer.py
"""
Request normalization: turns a raw body and query string into validated text
plus canonical analysis options, then delegates and shapes the result.

Every check short-circuits with a ContractError, so nothing reaches the
analysis service unless the request is fully valid.
"""
import logging
from typing import Any, Dict, List, Mapping, Protocol, Tuple

from pydantic import ValidationError

from .errors import (
    AnalysisError,
    ContractError,
    INVALID_REQUEST,
    INVALID_TEXT,
    INVALID_URL,
    PROCESSING_ERROR,
    TEXT_PROCESSING_FAILED,
    UpstreamError,
    from_analysis_error,
)
from .guardrails import guardrails_pre
from .schemas import AnalysisOptions, AnalyzeRequest

log = logging.getLogger(__name__)

CUSTOM_MODES = ("extended", "strict")


class TextFetcher(Protocol):
    async def fetch_text(self, raw_url: str) -> str: ...


class Analyzer(Protocol):
    async def analyze(self, text: str, options: AnalysisOptions) -> Dict[str, Any]: ...


def _present(value: Any) -> bool:
    return value is not None and value != ""


def _truthy(value: Any) -> bool:
    return value is True or (isinstance(value, str) and value.strip().lower() == "true")


def _getlist(query: Mapping[str, Any], key: str) -> List[Any]:
    if hasattr(query, "getlist"):
        return list(query.getlist(key))
    value = query.get(key)
    if value is None:
        return []
    return list(value) if isinstance(value, (list, tuple)) else [value]


def parse_request(body: Any) -> AnalyzeRequest:
    """Validates the body shape; field type errors map to the field's code."""
    if not isinstance(body, dict):
        raise ContractError.validation(INVALID_REQUEST, "Request body must be a JSON object")
    try:
        return AnalyzeRequest.model_validate(body)
    except ValidationError as e:
        err = e.errors()[0]
        field = err["loc"][0] if err["loc"] else "text"
        code = INVALID_URL if field == "url" else INVALID_TEXT
        raise ContractError.validation(code, f"'{field}' must be a string") from None


async def resolve_text(req: AnalyzeRequest, fetcher: TextFetcher) -> str:
    """Presence check, then URL resolution or direct text."""
    has_text, has_url = _present(req.text), _present(req.url)
    if not has_text and not has_url:
        raise ContractError.validation(INVALID_TEXT, "Request body must contain 'text' or 'url' field")
    if has_text and has_url:
        raise ContractError.validation(INVALID_TEXT, "Request body must contain only one of 'text' or 'url'")

    if has_url:
        return await fetcher.fetch_text(req.url)
    return req.text


def build_options(query: Mapping[str, Any]) -> AnalysisOptions:
    """Maps recognized query parameters onto AnalysisOptions."""
    opts: Dict[str, Any] = {"language": query.get("language") or "en"}

    summarize = query.get("summarize")
    if summarize == "v1":
        raise ContractError.validation(
            INVALID_TEXT, "Summarization v1 is no longer supported; use summarize=v2 or summarize=true"
        )
    if summarize == "v2":
        opts["summarize"] = "v2"
    elif _truthy(summarize):
        opts["summarize"] = True

    for flag in ("topics", "sentiment", "intents"):
        opts[flag] = _truthy(query.get(flag))

    for custom, parent in (("custom_topic", "topics"), ("custom_intent", "intents")):
        values = [str(v) for v in _getlist(query, custom) if _present(v) and str(v).strip()]
        if values:
            opts[custom] = values
            opts[parent] = True

        mode = query.get(f"{custom}_mode")
        if _present(mode):
            if mode not in CUSTOM_MODES:
                raise ContractError.validation(
                    INVALID_REQUEST,
                    f"{custom}_mode must be one of {', '.join(CUSTOM_MODES)}",
                    parameter=f"{custom}_mode",
                )
            opts[f"{custom}_mode"] = mode

    return AnalysisOptions(**opts)


async def normalize(body: Any, query: Mapping[str, Any], fetcher: TextFetcher) -> Tuple[str, AnalysisOptions]:
    """Runs every validation step in order and returns (text, options)."""
    req = parse_request(body)
    text = await resolve_text(req, fetcher)
    guardrails_pre(text)
    return text, build_options(query)


def shape_results(result: Any, options: AnalysisOptions) -> Dict[str, Any]:
    """Keeps only the requested result keys; missing ones default to {}."""
    if not isinstance(result, dict):
        raise UpstreamError("Text analysis service returned an unexpected payload")
    results = result.get("results") or {}
    if not isinstance(results, dict):
        raise UpstreamError("Text analysis service returned malformed results")
    return {key: results.get(key) or {} for key in options.requested_keys()}


async def analyze(text: str, options: AnalysisOptions, analyzer: Analyzer) -> Dict[str, Any]:
    """Delegates to the analysis service and remaps every failure."""
    try:
        result = await analyzer.analyze(text, options)
        shaped = shape_results(result, options)
    except AnalysisError as e:
        raise from_analysis_error(e) from e
    except Exception:
        log.exception("unexpected failure during text analysis")
        raise ContractError(500, PROCESSING_ERROR, TEXT_PROCESSING_FAILED, "Text processing failed") from None
    return {"results": shaped}
