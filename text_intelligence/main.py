# text_intelligence/main.py
"""
Core FastAPI application, including middleware, endpoints, and audit logging.
"""
import hashlib
import json
import logging
import time
from typing import Any

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.datastructures import UploadFile

# Local module imports
from . import config, normalizer, schemas
from .analysis import DeepgramAnalyzer
from .errors import (
    ContractError,
    INVALID_REQUEST,
    PROCESSING_ERROR,
    RATE_LIMITED,
    TEXT_PROCESSING_FAILED,
    VALIDATION_ERROR,
)
from .fetcher import UrlFetcher

load_dotenv()

REQUEST_ID_HEADER = "X-Request-Id"

# --- App Setup ---
app = FastAPI(title="Text Intelligence", version="1.0.0")
config.start_config_reloader()

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get_cfg()["server"]["cors_allow_origins"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Rate Limiting ---
limiter = Limiter(key_func=get_remote_address)
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
def ratelimit_handler(request: Request, exc: RateLimitExceeded):
    err = ContractError(429, VALIDATION_ERROR, RATE_LIMITED, "Too many requests", {"limit": str(exc.detail)})
    return JSONResponse(status_code=429, content=err.envelope())


def _current_rate_limit() -> str:
    return config.get_cfg()["guardrails"]["rate_limit"]


def _rate_limit_decorator(fn):
    return limiter.limit(_current_rate_limit)(fn)


# --- Logging ---
logging.basicConfig(level=logging.INFO)
log = logging.getLogger(__name__)
audit_log = logging.getLogger("audit")


def audit_event(kind: str, payload: dict):
    """Logs an audit event if enabled."""
    if not config.get_cfg()["guardrails"]["audit_log"]:
        return
    payload = dict(payload)
    if "text" in payload:
        payload["text_sha256"] = hashlib.sha256(payload["text"].encode()).hexdigest()
        payload["text_chars"] = len(payload["text"])
        del payload["text"]
    payload["ts"] = int(time.time())
    audit_log.info({"event": kind, **payload})


# --- Request Id echo & error envelopes ---
@app.middleware("http")
async def echo_request_id(request: Request, call_next):
    response = await call_next(request)
    request_id = request.headers.get(REQUEST_ID_HEADER)
    if request_id:
        response.headers[REQUEST_ID_HEADER] = request_id
    return response


@app.exception_handler(ContractError)
def contract_error_handler(request: Request, exc: ContractError):
    audit_event("rejected", {"code": exc.code, "status": exc.status_code, "path": request.url.path})
    return JSONResponse(status_code=exc.status_code, content=exc.envelope())


@app.exception_handler(Exception)
def unhandled_error_handler(request: Request, exc: Exception):
    # Runs outside the http middleware, so the request id is echoed here.
    log.error("unhandled error on %s", request.url.path, exc_info=exc)
    err = ContractError(500, PROCESSING_ERROR, TEXT_PROCESSING_FAILED, "Text processing failed")
    headers = {}
    if request.headers.get(REQUEST_ID_HEADER):
        headers[REQUEST_ID_HEADER] = request.headers[REQUEST_ID_HEADER]
    return JSONResponse(status_code=500, content=err.envelope(), headers=headers)


# --- Collaborators ---
def get_fetcher() -> normalizer.TextFetcher:
    return UrlFetcher()


def get_analyzer() -> normalizer.Analyzer:
    return DeepgramAnalyzer()


async def read_body(request: Request) -> Any:
    """Reads a JSON object or form body into a plain dict."""
    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        body = {}
        for key, value in form.items():
            if isinstance(value, UploadFile):
                value = (await value.read()).decode("utf-8", errors="replace")
            body[key] = value
        return body

    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        raise ContractError.validation(INVALID_REQUEST, "Request body must be valid JSON") from None


# --- Endpoints ---
@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "text-intelligence"}


@app.post("/text-intelligence/analyze", response_model=schemas.AnalyzeResponse,
          responses={400: {"model": schemas.ErrorEnvelope}, 500: {"model": schemas.ErrorEnvelope}})
@app.post("/api/text-intelligence", response_model=schemas.AnalyzeResponse, include_in_schema=False)
@_rate_limit_decorator
async def analyze(
    request: Request,
    fetcher: normalizer.TextFetcher = Depends(get_fetcher),
    analyzer: normalizer.Analyzer = Depends(get_analyzer),
):
    """Validates the request, runs text analysis and returns the requested results."""
    body = await read_body(request)
    text, options = await normalizer.normalize(body, request.query_params, fetcher)
    resp = await normalizer.analyze(text, options, analyzer)
    audit_event("analyze", {"text": text, "features": list(resp["results"]), "language": options.language})
    return resp
