"""Configuration loading and validation.

Usage:
    config  = load("psi-config.yaml")         # raises ConfigError on bad config
    config  = load()                          # defaults, PSI_API_KEY still applies
    options = config.render_options()         # RenderOptions for the text report
    generate_template("psi-config.yaml")      # writes example file to disk
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from psi_report.models import AuditFilter, DeviceProfile
from psi_report.reports.text import RenderOptions


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ConfigError(Exception):
    """Raised when the configuration is missing or invalid."""


# ---------------------------------------------------------------------------
# Config dataclass
# ---------------------------------------------------------------------------

@dataclass
class Config:
    api_key: str = ""
    device: DeviceProfile = DeviceProfile.DESKTOP
    workers: int = 4
    retries: int = 2
    urls: list[str] = field(default_factory=list)
    audits: AuditFilter = AuditFilter.FAILED
    max_details: int = 5
    detail_width: int = 40
    full_urls: bool = False

    def render_options(self) -> RenderOptions:
        """Return the RenderOptions matching the ``report`` section."""
        return RenderOptions(
            full_urls=self.full_urls,
            audits=self.audits,
            max_details=self.max_details,
            detail_width=self.detail_width,
        )


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def load(config_path: str | None = None) -> Config:
    """Load and validate configuration from a YAML file.

    With no path the built-in defaults are used. The PSI_API_KEY
    environment variable overrides the file's ``api_key``.

    Raises:
        ConfigError: if the file is missing, malformed, or holds invalid
                     values.
    """
    raw: dict = {}
    if config_path is not None:
        raw = _read_yaml(config_path)

    errors: list[str] = []
    report = raw.get("report") or {}
    if not isinstance(report, dict):
        errors.append("  - 'report' must be a mapping")
        report = {}

    api_key = os.environ.get("PSI_API_KEY") or raw.get("api_key") or ""
    urls = raw.get("urls") or []
    if not isinstance(urls, list) or not all(isinstance(u, str) for u in urls):
        errors.append("  - 'urls' must be a list of strings")
        urls = []

    config = Config(
        api_key=str(api_key).strip(),
        device=_enum(DeviceProfile, raw.get("device", "desktop"), "device", errors),
        workers=_int(raw.get("workers", 4), "workers", 4, errors),
        retries=_int(raw.get("retries", 2), "retries", 2, errors),
        urls=[u.strip() for u in urls],
        audits=_enum(AuditFilter, report.get("audits", "failed"), "report.audits", errors),
        max_details=_int(report.get("max_details", 5), "report.max_details", 5, errors),
        detail_width=_int(report.get("detail_width", 40), "report.detail_width", 40, errors),
        full_urls=_bool(report.get("full_urls", False), "report.full_urls", False, errors),
    )
    _validate(config, errors)
    return config


def _read_yaml(config_path: str) -> dict:
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(
            f"Config file not found: '{config_path}'\n"
            "Run `python -m psi_report init` to generate a template."
        )

    try:
        with path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse '{config_path}': {exc}") from exc

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"'{config_path}' must be a YAML mapping at the top level.")
    return raw


def _int(value, name: str, default: int, errors: list[str]) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        errors.append(f"  - '{name}' must be an integer (got {value!r})")
        return default
    return value


def _bool(value, name: str, default: bool, errors: list[str]) -> bool:
    if not isinstance(value, bool):
        errors.append(f"  - '{name}' must be true or false (got {value!r})")
        return default
    return value


def _enum(enum_cls, value, name: str, errors: list[str]):
    text = str(value).strip()
    for member in enum_cls:
        if member.value.lower() == text.lower():
            return member
    choices = ", ".join(m.value.lower() for m in enum_cls)
    errors.append(f"  - '{name}' must be one of: {choices} (got {value!r})")
    return next(iter(enum_cls))


def _validate(config: Config, errors: list[str]) -> None:
    """Raise ConfigError if any value is out of range."""
    if config.workers < 1:
        errors.append("  - 'workers' must be at least 1")
    if config.retries < 0:
        errors.append("  - 'retries' can't be negative")
    if config.detail_width < 0:
        errors.append("  - 'report.detail_width' can't be negative (use 0 to disable eliding)")

    if errors:
        raise ConfigError("Invalid configuration:\n" + "\n".join(errors))


# ---------------------------------------------------------------------------
# Template generator (used by `init` command)
# ---------------------------------------------------------------------------

TEMPLATE = """\
api_key: ""            # Or set PSI_API_KEY. Create one at https://developers.google.com/speed/docs/insights/v5/get-started
device: desktop        # desktop | mobile
workers: 4             # concurrent PageSpeed requests
retries: 2             # extra attempts per URL after a failure

urls:
  - "https://www.example.org/"
  - "https://www.example.org/about.html"

report:
  audits: failed       # all | failed (score below 100) | none
  max_details: 5       # detail lines per audit (0 hides them, -1 shows all)
  detail_width: 40     # elide detail cells longer than this (0 disables)
  full_urls: false     # summary shows full URLs instead of paths
"""


def generate_template(output_path: str = "psi-config.yaml") -> None:
    """Write a template psi-config.yaml to *output_path*.

    Raises:
        ConfigError: if the file already exists (to avoid overwriting an API key).
    """
    path = Path(output_path)
    if path.exists():
        raise ConfigError(
            f"'{output_path}' already exists. Remove it first or choose a different path."
        )
    path.write_text(TEMPLATE, encoding="utf-8")
