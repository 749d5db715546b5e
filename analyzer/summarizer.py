"""
Report summarizer.

Compresses a Lighthouse / PageSpeed report, often several megabytes of JSON,
into a Summary and a prompt no longer than a configured number of characters.
Summarization is best-effort: it never raises, and a partial Summary carries
the failure in its ``error`` field.
"""

import logging
from typing import Any, Optional

from analyzer import accessors
from analyzer.prompts import get_default_instructions, render_prompt
from models import Opportunity, PromptText, Summary, ThirdParty

logger = logging.getLogger(__name__)

METRIC_AUDITS = (
    "first-contentful-paint",
    "largest-contentful-paint",
    "total-blocking-time",
    "cumulative-layout-shift",
    "speed-index",
    "interactive",
)
MAX_OPPORTUNITIES = 8
MAX_THIRD_PARTIES = 8
MAX_ORIGINS_PER_PARTY = 2
FAILING_SCORE = 0.9
TRIMMED_OPPORTUNITIES = 3
TRIM_SUFFIX = " (trimmed)"


def _opportunities(root: dict) -> list:
    found = []
    for audit_id, audit in accessors.audits(root):
        score = accessors.audit_score(audit)
        failing = score is not None and score < FAILING_SCORE
        if not (accessors.is_opportunity(audit) or failing):
            continue
        found.append(
            Opportunity(
                id=audit_id,
                title=accessors.as_str(audit.get("title")),
                wasted=accessors.savings_ms(audit),
                wasted_bytes=accessors.savings_bytes(audit),
                score=score,
            )
        )
    # sorted() is stable, so ties keep report order
    found = sorted(found, key=lambda o: o.wasted or 0, reverse=True)
    return found[:MAX_OPPORTUNITIES]


def _third_parties(root: dict) -> list:
    parties = []
    for entity in accessors.entities(root):
        if entity.get("isFirstParty") is True:
            continue
        name = accessors.as_str(entity.get("name"))
        if not name:
            continue
        origins = [
            o for o in accessors.as_list(entity.get("origins")) if isinstance(o, str)
        ]
        parties.append(ThirdParty(name=name, origins=origins[:MAX_ORIGINS_PER_PARTY]))
        if len(parties) == MAX_THIRD_PARTIES:
            break
    return parties


def summarize_report(report: Any) -> Summary:
    """
    Extract target, score, key metrics, ranked opportunities and third parties.

    Absent fields are left out, never zero-filled. Any unexpected failure is
    logged and recorded on ``Summary.error``; whatever was extracted before it
    is kept.
    """
    summary = Summary()
    try:
        root = accessors.analysis_root(report)
        summary.target = accessors.target_url(root)
        summary.score = accessors.performance_score(root)

        audits = dict(accessors.audits(root))
        for name in METRIC_AUDITS:
            if name in audits:
                value = accessors.audit_value(audits[name])
                if value is not None:
                    summary.metrics[name] = value

        summary.opportunities = _opportunities(root)
        summary.third_parties = _third_parties(root)
    except Exception as e:
        logger.warning(f"⚠️  Report summarization degraded: {type(e).__name__}: {e}")
        summary.error = f"{type(e).__name__}: {e}"
    return summary


def build_prompt(
    report: Any,
    instructions: Optional[str] = None,
    max_chars: int = 15000,
    language: str = "Serbian",
) -> PromptText:
    """
    Summarize ``report`` and render the prompt sent to Gemini.

    If the full rendering is longer than ``max_chars`` it is rebuilt exactly
    once from the trimmed Summary, with " (trimmed)" appended to the
    instructions. The trimmed prompt can still exceed ``max_chars`` when the
    instructions alone are that long.
    """
    instructions = instructions or get_default_instructions(language)
    summary = summarize_report(report)

    text = render_prompt(summary, instructions)
    if len(text) <= max_chars:
        return PromptText(text=text, summary=summary)

    trimmed = summary.trimmed()
    text = render_prompt(trimmed, instructions + TRIM_SUFFIX)
    logger.info(
        f"Prompt exceeded {max_chars} chars, trimmed summary to {len(text)} chars"
    )
    if len(text) > max_chars:
        logger.warning(f"⚠️  Trimmed prompt still {len(text)} chars (max {max_chars})")
    return PromptText(text=text, summary=trimmed, trimmed=True)
