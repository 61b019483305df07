"""Settings for panel field resolution.

Values are driven by environment variables so deployments can adjust link
safety and display defaults without code changes. Settings are read at import
time; `load_settings()` re-reads the environment (used by tests and the CLI).
"""

from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, *, default: bool) -> bool:
    """Parse a boolean environment variable.

    Args:
        name: Environment variable name.
        default: Value when the variable is not set.

    Returns:
        Parsed boolean value.
    """

    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _env_csv(name: str, *, default: list[str]) -> list[str]:
    """Parse a comma-separated environment variable into a list of strings.

    Args:
        name: Environment variable name.
        default: Value when the variable is not set.

    Returns:
        A list of non-empty, trimmed values.
    """

    raw = os.getenv(name)
    if raw is None:
        return default
    return [part.strip() for part in raw.split(",") if part.strip()]


def _env_str(name: str, *, default: str) -> str:
    """Read a string environment variable, trimming whitespace."""

    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip()


@dataclass(frozen=True, slots=True)
class PanelSettings:
    """Resolved settings.

    Attributes:
        app_sub_url: Prefix added to relative link URLs (e.g. `/monitor`).
        allowed_link_hosts: Hosts absolute link URLs may point to; `*` allows
            any host with an http(s) scheme.
        require_https_links: Reject absolute `http://` link URLs.
        unsafe_link_url: Replacement href for links that fail the safety check.
        default_time_zone: Zone used for time fields when a panel sets none.
        auto_min_max: Default for global min/max inference.
        log_level: Logging level name used by the CLI.
    """

    app_sub_url: str
    allowed_link_hosts: tuple[str, ...]
    require_https_links: bool
    unsafe_link_url: str
    default_time_zone: str
    auto_min_max: bool
    log_level: str


def load_settings() -> PanelSettings:
    """Read settings from the environment."""

    return PanelSettings(
        app_sub_url=_env_str("PANELS_APP_SUB_URL", default="").rstrip("/"),
        allowed_link_hosts=tuple(_env_csv("PANELS_ALLOWED_LINK_HOSTS", default=["*"])),
        require_https_links=_env_bool("PANELS_REQUIRE_HTTPS_LINKS", default=False),
        unsafe_link_url=_env_str("PANELS_UNSAFE_LINK_URL", default="about:blank"),
        default_time_zone=_env_str("PANELS_DEFAULT_TIME_ZONE", default="UTC"),
        auto_min_max=_env_bool("PANELS_AUTO_MIN_MAX", default=False),
        log_level=_env_str("PANELS_LOG_LEVEL", default="WARNING").upper(),
    )


SETTINGS = load_settings()
