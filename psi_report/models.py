"""Data models for PageSpeed Insights reports.

Contains frozen dataclasses shared by the builder, the orchestrator and the
text renderer:
    - Audit
    - Category
    - Report
    - DeviceProfile    (desktop / mobile analysis)
    - AuditFilter      (which audits the text report lists)
"""

from dataclasses import dataclass
from enum import Enum


class DeviceProfile(Enum):
    """Device simulated by PageSpeed Insights. The value is the API ``strategy``."""

    DESKTOP = "DESKTOP"
    MOBILE = "MOBILE"


class AuditFilter(Enum):
    ALL = "all"
    FAILED = "failed"   # scored audits below 100
    NONE = "none"


@dataclass(frozen=True)
class Audit:
    title: str
    score: int                                  # [0, 100] or -1 if unscored
    value: str = ""
    details: tuple[tuple[str, ...], ...] = ()   # heading row first

    @property
    def scored(self) -> bool:
        return self.score >= 0


@dataclass(frozen=True)
class Category:
    title: str                  # e.g. "Performance"
    abbrev: str                 # e.g. "Perf"
    score: int
    audits: tuple[Audit, ...] = ()


@dataclass(frozen=True)
class Report:
    url: str
    categories: tuple[Category, ...] = ()

    @property
    def failed(self) -> bool:
        """True for the placeholder recorded when every fetch attempt failed."""
        return not self.categories
