"""
Accessors over schema-less Lighthouse / PageSpeed JSON.

Reports arrive in several shapes (raw Lighthouse result, PageSpeed envelope,
older exports), so nothing here assumes a field exists. Every accessor returns
None (or an empty container) instead of raising on a missing or mistyped field.
"""

import math
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

Number = Union[int, float]


def as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def as_number(value: Any) -> Optional[Number]:
    # bool is an int subclass; JSON true/false is never a measurement
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    # NaN and Infinity parse from JSON but cannot be serialized back
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def analysis_root(report: Any) -> Dict[str, Any]:
    """The Lighthouse result, unwrapping a PageSpeed ``lighthouseResult`` envelope."""
    report = as_dict(report)
    nested = report.get("lighthouseResult")
    return nested if isinstance(nested, dict) else report


def target_url(root: Dict[str, Any]) -> Optional[str]:
    for key in ("finalUrl", "requestedUrl", "url"):
        value = as_str(root.get(key))
        if value:
            return value
    return None


def _clamp_score(score: Optional[Number]) -> Optional[Number]:
    if score is None:
        return None
    return min(max(score, 0), 1)


def performance_score(root: Dict[str, Any]) -> Optional[Number]:
    """Performance category score, clamped to 0..1."""
    categories = as_dict(root.get("categories"))
    score = as_number(as_dict(categories.get("performance")).get("score"))
    if score is not None:
        return _clamp_score(score)
    for category in categories.values():
        category = as_dict(category)
        if category.get("id") == "performance":
            return _clamp_score(as_number(category.get("score")))
    return None


def audits(root: Dict[str, Any]) -> Iterator[Tuple[str, Dict[str, Any]]]:
    """(audit id, audit) pairs, skipping entries that are not mappings."""
    for audit_id, audit in as_dict(root.get("audits")).items():
        if isinstance(audit, dict):
            yield audit_id, audit


def audit_value(audit: Dict[str, Any]) -> Optional[Union[Number, str]]:
    """numericValue when present, else displayValue."""
    numeric = as_number(audit.get("numericValue"))
    if numeric is not None:
        return numeric
    return as_str(audit.get("displayValue"))


def audit_score(audit: Dict[str, Any]) -> Optional[Number]:
    return as_number(audit.get("score"))


def is_opportunity(audit: Dict[str, Any]) -> bool:
    return as_dict(audit.get("details")).get("type") == "opportunity"


def savings_ms(audit: Dict[str, Any]) -> Optional[Number]:
    return as_number(as_dict(audit.get("details")).get("overallSavingsMs"))


def savings_bytes(audit: Dict[str, Any]) -> Optional[Number]:
    return as_number(as_dict(audit.get("details")).get("overallSavingsBytes"))


def entities(root: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [e for e in as_list(root.get("entities")) if isinstance(e, dict)]
