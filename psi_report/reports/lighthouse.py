"""Lighthouse report builder.

Functions:
    build_report(raw)          -> Report   [PSI v5 response -> Report]
    score100(score)            -> int
    extract_details(payload)   -> tuple of string rows
"""

import json
import math
from typing import Any

from psi_report.models import Audit, Category, Report

# Category ids in Chrome DevTools order
CATEGORY_IDS = ("performance", "accessibility", "best-practices", "seo", "pwa")

_ABBREVS = {
    "performance":    "Perf",
    "accessibility":  "A11Y",
    "best-practices": "Best",
    "seo":            "SEO",
    "pwa":            "PWA",
}

_UNITS = ("ms", "bytes")


class ReportBuildError(Exception):
    """Raised when a PSI response doesn't match the expected Lighthouse schema."""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_report(raw: dict[str, Any]) -> Report:
    """Build a Report from a decoded PageSpeed Insights v5 response.

    Categories are re-sequenced into :data:`CATEGORY_IDS` order; categories
    missing from the response are skipped.

    Raises:
        ReportBuildError: if ``lighthouseResult`` is missing or a category
                          references an audit that isn't in the audit map.
    """
    lhr = raw.get("lighthouseResult")
    if not isinstance(lhr, dict):
        raise ReportBuildError("Response has no 'lighthouseResult' object")

    url = raw.get("id") or lhr.get("finalUrl") or lhr.get("requestedUrl") or ""
    raw_categories = lhr.get("categories") or {}
    raw_audits = lhr.get("audits") or {}

    categories: list[Category] = []
    for cat_id in CATEGORY_IDS:
        raw_cat = raw_categories.get(cat_id)
        if raw_cat is None:
            continue
        title = raw_cat.get("title", cat_id)

        audits: list[Audit] = []
        for ref in raw_cat.get("auditRefs") or []:
            audit_id = ref.get("id")
            raw_audit = raw_audits.get(audit_id)
            if raw_audit is None:
                raise ReportBuildError(f"Category '{title}' is missing audit '{audit_id}'")
            audits.append(Audit(
                title=raw_audit.get("title", audit_id),
                score=score100(raw_audit.get("score")),
                value=raw_audit.get("displayValue") or "",
                details=extract_details(raw_audit.get("details")),
            ))

        categories.append(Category(
            title=title,
            abbrev=_ABBREVS.get(cat_id, cat_id),
            score=score100(raw_cat.get("score")),
            audits=tuple(audits),
        ))

    return Report(url=url, categories=tuple(categories))


def score100(score: Any) -> int:
    """Map a Lighthouse score in [0, 1] to an int in [0, 100].

    Halves round away from zero (0.995 -> 100). Returns -1 when the score
    isn't a number, which Lighthouse uses for informative or
    not-applicable audits.
    """
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        return -1
    if math.isnan(score) or math.isinf(score):
        return -1
    scaled = score * 100
    return int(math.copysign(math.floor(abs(scaled) + 0.5), scaled))


def extract_details(payload: Any) -> tuple[tuple[str, ...], ...]:
    """Convert an audit's ``details`` payload into rows of strings.

    The first row holds the column headings. A payload that isn't a table
    of headings and items comes back as one row with one cell holding the
    raw payload text. Returns ``()`` when there is nothing to show.
    """
    if payload is None or payload == "" or payload == {}:
        return ()

    try:
        headings, items = _parse_table(payload)
    except ValueError:
        text = payload if isinstance(payload, str) else _to_json(payload)
        return ((text,),)

    if not headings or not items:
        return ()

    keys = [h.get("key") for h in headings]
    units = [_heading_unit(h) for h in headings]
    rows = [tuple(_heading_name(h) for h in headings)]
    for item in items:
        rows.append(tuple(
            _cell_text(item[key], unit) if key in item else ""
            for key, unit in zip(keys, units)
        ))
    return tuple(rows)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _parse_table(payload: Any) -> tuple[list[dict], list[dict]]:
    """Return (headings, items) or raise ValueError if *payload* has another shape."""
    if isinstance(payload, str):
        payload = json.loads(payload)   # JSONDecodeError is a ValueError
    if not isinstance(payload, dict):
        raise ValueError("details payload is not an object")

    headings = payload.get("headings") or []
    items = payload.get("items") or []
    if not isinstance(headings, list) or not isinstance(items, list):
        raise ValueError("headings and items must be lists")
    if not all(isinstance(h, dict) for h in headings):
        raise ValueError("headings must be objects")
    if not all(isinstance(i, dict) for i in items):
        raise ValueError("items must be objects")
    for h in headings:
        for field in ("key", "text", "label", "itemType", "valueType"):
            if h.get(field) is not None and not isinstance(h[field], str):
                raise ValueError(f"heading '{field}' must be a string")
    return headings, items


def _heading_name(heading: dict) -> str:
    return (heading.get("text") or heading.get("label") or "").strip()


def _heading_unit(heading: dict) -> str:
    # Lighthouse >= 6 uses 'valueType'; older reports use 'itemType'
    unit = heading.get("itemType") or heading.get("valueType")
    return unit if unit in _UNITS else ""


def _cell_text(value: Any, unit: str) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        text = f"{value:.1f}"
        if text.endswith(".0"):
            text = text[:-2]
        return f"{text} {unit}" if unit else text
    if isinstance(value, dict):
        for field in ("snippet", "url"):
            if isinstance(value.get(field), str):
                return value[field]
        return _to_json(value)
    if value is None:
        return ""
    return _to_json(value)


def _to_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, sort_keys=True, default=str)
