# text_intelligence/guardrails.py
"""Checks applied to the resolved text before it leaves the service."""
from .config import get_cfg
from .errors import ContractError, EMPTY_TEXT, TEXT_TOO_LONG


def guardrails_pre(text: str) -> str:
    """Rejects blank or oversized text; returns the text unchanged."""
    if not text.strip():
        raise ContractError.validation(EMPTY_TEXT, "Text field cannot be empty")

    max_chars = int(get_cfg()["guardrails"]["max_chars"])
    if max_chars and len(text) > max_chars:
        raise ContractError.validation(
            TEXT_TOO_LONG,
            f"Text exceeds the maximum length of {max_chars} characters",
            length=len(text),
            max_chars=max_chars,
        )
    return text
