"""Dashboard URL utilities used by data links.

Link targets are user-authored templates, so the final URL is
security-sensitive. This module centralizes link URL validation using Django's
`url_has_allowed_host_and_scheme`, mirroring how redirect targets are checked.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any
from urllib.parse import urlsplit

from django.utils.encoding import iri_to_uri
from django.utils.http import url_has_allowed_host_and_scheme, urlencode

from .settings import SETTINGS, PanelSettings

logger = logging.getLogger(__name__)


class DashboardLocation:
    """LinkLocation backed by panel settings and the current dashboard state.

    Args:
        settings: Link safety and base URL settings.
        time_range: Current `(from, to)` time range, if any.
        variables: Current dashboard variables by name.
    """

    def __init__(
        self,
        *,
        settings: PanelSettings | None = None,
        time_range: tuple[datetime, datetime] | None = None,
        variables: Mapping[str, Any] | None = None,
    ) -> None:
        """Bind the location to settings and dashboard state."""

        self._settings = settings or SETTINGS
        self._time_range = time_range
        self._variables = dict(variables or {})

    def assure_base_url(self, url: str) -> str:
        """Prefix app-relative URLs (`/d/...`) with the configured sub URL.

        Args:
            url: Link URL template.

        Returns:
            The URL with the sub URL prefix when it is app-relative.
        """

        sub_url = self._settings.app_sub_url
        if not sub_url or not url.startswith("/") or url.startswith("//"):
            return url
        if url == sub_url or url.startswith(f"{sub_url}/"):
            return url
        return f"{sub_url}{url}"

    def process_url(self, url: str) -> str:
        """Encode a substituted URL and replace unsafe targets.

        Args:
            url: Fully substituted link URL.

        Returns:
            An ASCII-safe URL, or the configured fallback when the URL uses a
            disallowed scheme or host.
        """

        candidate = url.strip()
        if not candidate:
            return candidate
        if not self._is_safe(candidate):
            logger.info("Rejected unsafe data link URL %r", candidate)
            return self._settings.unsafe_link_url
        return iri_to_uri(candidate)

    def time_range_url_params(self) -> str:
        """Return `from=<ms>&to=<ms>` for the current time range, or an empty string."""

        if self._time_range is None:
            return ""
        start, end = self._time_range
        return urlencode({"from": _epoch_millis(start), "to": _epoch_millis(end)})

    def variables_url_params(self) -> str:
        """Return `var-<name>=<value>` pairs for every dashboard variable."""

        pairs: list[tuple[str, Any]] = []
        for name, value in self._variables.items():
            if value is None:
                continue
            if isinstance(value, Sequence) and not isinstance(value, str):
                pairs.append((f"var-{name}", [str(item) for item in value]))
            else:
                pairs.append((f"var-{name}", str(value)))
        return urlencode(pairs, doseq=True)

    def _is_safe(self, url: str) -> bool:
        allowed = set(self._settings.allowed_link_hosts)
        if "*" in allowed:
            try:
                netloc = urlsplit(url).netloc
            except ValueError:
                return False
            allowed = {netloc} if netloc else set()
        return url_has_allowed_host_and_scheme(
            url=url,
            allowed_hosts=allowed,
            require_https=self._settings.require_https_links,
        )


def _epoch_millis(value: datetime) -> int:
    return int(value.timestamp() * 1000)
