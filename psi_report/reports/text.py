"""Plain-text rendering of Lighthouse reports.

Functions:
    format_summary(reports, options)   -> list[str]   category scores per URL
    format_report(report, options)     -> list[str]   categories and audits of one URL
    format_reports(reports, options)   -> list[str]   all reports, divider-separated
    render(reports, options)           -> str         summary followed by all reports
"""

from collections.abc import Sequence
from dataclasses import dataclass

from psi_report.models import Audit, AuditFilter, Report
from psi_report.strutil import elide, url_path
from psi_report.table import format_table


@dataclass(frozen=True)
class RenderOptions:
    full_urls: bool = False                 # summary shows full URLs, not just paths
    audits: AuditFilter = AuditFilter.FAILED
    max_details: int = 5                    # 0 hides details, negative is unlimited
    detail_width: int = 40                  # 0 disables elision
    spacing: int = 2
    divider_len: int = 80                   # '=' line before each report
    underline_len: int = 20                 # '-' line below each category


# --------------------------------------------------------------------------- #
# Public API
# --------------------------------------------------------------------------- #

def format_summary(reports: Sequence[Report], options: RenderOptions) -> list[str]:
    """Return a table of category scores with one row per report.

    Column headings come from the first report that didn't fail. Failed
    reports keep their row but only show the URL.
    """
    heading = ["URL"]
    right_cols: set[int] = set()
    first_ok = next((r for r in reports if not r.failed), None)
    if first_ok is not None:
        for i, cat in enumerate(first_ok.categories, start=1):
            heading.append(cat.abbrev)
            right_cols.add(i)

    rows = [heading]
    for rep in reports:
        row = [rep.url if options.full_urls else url_path(rep.url)]
        row.extend(str(cat.score) for cat in rep.categories)
        rows.append(row)

    return format_table(rows, spacing=options.spacing, right_cols=right_cols)


def format_report(report: Report, options: RenderOptions) -> list[str]:
    """Return the category and audit listing for a single report."""
    lines = [report.url, ""]

    for cat in report.categories:
        lines.append(f"{cat.score:3d} {cat.title}")
        if options.audits is AuditFilter.NONE:
            continue
        lines.append("-" * options.underline_len)
        for aud in cat.audits:
            if options.audits is AuditFilter.FAILED and (not aud.scored or aud.score == 100):
                continue
            lines.append(_audit_line(aud))
            lines.extend(f"    {det}" for det in _detail_lines(aud, options))
        lines.append("")

    return lines


def format_reports(reports: Sequence[Report], options: RenderOptions) -> list[str]:
    lines: list[str] = []
    for rep in reports:
        lines.append("=" * options.divider_len)
        lines.append("")
        lines.extend(format_report(rep, options))
    return lines


def render(reports: Sequence[Report], options: RenderOptions) -> str:
    """Return the full text output: summary table, blank line, then each report."""
    lines = format_summary(reports, options)
    lines.append("")
    lines.extend(format_reports(reports, options))
    return "\n".join(lines) + "\n"


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #

def _audit_line(aud: Audit) -> str:
    score = f"{aud.score:3d}" if aud.scored else "  ."
    text = f"{score} {aud.title}"
    if aud.value:
        text += f": {aud.value}"
    return text


def _detail_lines(aud: Audit, options: RenderOptions) -> list[str]:
    if not aud.details or options.max_details == 0:
        return []
    rows = aud.details
    if options.detail_width > 0:
        rows = [[elide(val, options.detail_width) for val in row] for row in rows]
    max_lines = options.max_details if options.max_details > 0 else None
    return format_table(rows, spacing=options.spacing, max_lines=max_lines)
