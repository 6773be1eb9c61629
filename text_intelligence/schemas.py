# text_intelligence/schemas.py
"""Data schemas (Pydantic models) for the API."""
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional, Union

RESULT_KEYS = ("summary", "sentiments", "topics", "intents")


class AnalyzeRequest(BaseModel):
    """Request body: exactly one of ``text`` or ``url``."""
    model_config = ConfigDict(extra="ignore")

    text: Optional[str] = None
    url: Optional[str] = None


class AnalysisOptions(BaseModel):
    """Canonical options forwarded to the text analysis service."""
    language: str = "en"
    summarize: Optional[Union[Literal[True], Literal["v2"]]] = None
    topics: bool = False
    sentiment: bool = False
    intents: bool = False
    custom_topic: List[str] = Field(default_factory=list)
    custom_intent: List[str] = Field(default_factory=list)
    custom_topic_mode: Optional[Literal["extended", "strict"]] = None
    custom_intent_mode: Optional[Literal["extended", "strict"]] = None

    def requested_keys(self) -> List[str]:
        """Result keys the caller asked for, in contract order."""
        wanted = {
            "summary": self.summarize is not None,
            "sentiments": self.sentiment,
            "topics": self.topics,
            "intents": self.intents,
        }
        return [k for k in RESULT_KEYS if wanted[k]]

    def to_query(self) -> List[tuple]:
        """Renders the options as upstream query parameters."""
        params = [("language", self.language)]
        if self.summarize is not None:
            params.append(("summarize", "true" if self.summarize is True else self.summarize))
        for flag in ("topics", "sentiment", "intents"):
            if getattr(self, flag):
                params.append((flag, "true"))
        params += [("custom_topic", t) for t in self.custom_topic]
        params += [("custom_intent", i) for i in self.custom_intent]
        if self.custom_topic_mode:
            params.append(("custom_topic_mode", self.custom_topic_mode))
        if self.custom_intent_mode:
            params.append(("custom_intent_mode", self.custom_intent_mode))
        return params


class ErrorBody(BaseModel):
    type: Literal["validation_error", "processing_error", "AuthenticationError"]
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class ErrorEnvelope(BaseModel):
    error: ErrorBody


class AnalyzeResponse(BaseModel):
    """Successful analysis: only the recognized result keys."""
    results: Dict[str, Any]
