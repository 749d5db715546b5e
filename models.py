from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel


# Request models
class PageSpeedRequest(BaseModel):
    url: Optional[str] = None
    strategy: Optional[Literal["mobile", "desktop"]] = None


class GeminiRequest(BaseModel):
    prompt: Optional[str] = None
    lighthouse: Optional[Dict[str, Any]] = None
    lhr: Optional[Dict[str, Any]] = None
    pagespeed: Optional[Dict[str, Any]] = None
    instructions: Optional[str] = None

    def report(self) -> Optional[Dict[str, Any]]:
        """First report supplied, in lighthouse / lhr / pagespeed order."""
        for candidate in (self.lighthouse, self.lhr, self.pagespeed):
            if candidate is not None:
                return candidate
        return None


# Summary models
class Opportunity(BaseModel):
    id: str
    title: Optional[str] = None
    wasted: Optional[Union[int, float]] = None  # estimated savings, ms
    wasted_bytes: Optional[Union[int, float]] = None
    score: Optional[float] = None


class ThirdParty(BaseModel):
    name: str
    origins: List[str] = []


class Summary(BaseModel):
    target: Optional[str] = None
    score: Optional[float] = None
    metrics: Dict[str, Union[int, float, str]] = {}
    opportunities: List[Opportunity] = []
    third_parties: List[ThirdParty] = []
    error: Optional[str] = None  # set when extraction degraded

    def trimmed(self) -> "Summary":
        """Reduced copy: target, score, metrics and the top 3 opportunities."""
        return Summary(
            target=self.target,
            score=self.score,
            metrics=dict(self.metrics),
            opportunities=list(self.opportunities[:3]),
            error=self.error,
        )


class PromptText(BaseModel):
    text: str
    summary: Summary
    trimmed: bool = False

    @property
    def length(self) -> int:
        return len(self.text)


# Retry bookkeeping
class RetryAttempt(BaseModel):
    attempt: int
    outcome: Literal["success", "retriable", "fatal"]
    delay: Optional[float] = None
