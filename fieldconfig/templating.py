"""Default template variable substitution.

Supported syntaxes:
- `$name`
- `${name}` and `${name.path.to.value}`
- `[[name]]`

Scoped variables take precedence over dashboard variables. Unknown variables
are left untouched so a later templating pass can still resolve them.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any, Final

from .types import ScopedVar, ScopedVars

_VARIABLE_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"\$(\w+)|\[\[([\s\S]+?)(?::\w+)?\]\]|\$\{(\w+)(?:\.([^:}]+))?(?::[^}]+)?\}"
)

_MISSING: Final = object()


class Templater:
    """Substitute variables in templates.

    Args:
        variables: Dashboard-level variables by name. Sequence values are
            joined with commas.
    """

    def __init__(self, variables: Mapping[str, Any] | None = None) -> None:
        """Initialize with dashboard-level variables."""

        self._variables: dict[str, Any] = dict(variables or {})

    @property
    def variables(self) -> Mapping[str, Any]:
        """Dashboard-level variables."""

        return self._variables

    def __call__(self, template: str, scoped_vars: ScopedVars | None = None) -> str:
        """Return `template` with every known variable substituted."""

        if not template:
            return template or ""

        def _substitute(match: re.Match[str]) -> str:
            name = match.group(1) or match.group(2) or match.group(3)
            path = match.group(4)
            value = self._lookup(name, path, scoped_vars)
            if value is _MISSING:
                return match.group(0)
            return _format(value)

        return _VARIABLE_PATTERN.sub(_substitute, template)

    def _lookup(self, name: str, path: str | None, scoped_vars: ScopedVars | None) -> Any:
        if scoped_vars and name in scoped_vars:
            scoped = scoped_vars[name]
            if path:
                return _get_path(scoped.value, path)
            if isinstance(scoped, ScopedVar):
                return scoped.value if _is_scalar(scoped.value) else scoped.text
            return scoped
        if name in self._variables:
            value = self._variables[name]
            return _get_path(value, path) if path else value
        return _MISSING


def _get_path(value: Any, path: str) -> Any:
    """Walk a dotted path through mappings and attributes."""

    current = value
    for part in path.split("."):
        if isinstance(current, Mapping):
            if part not in current:
                return _MISSING
            current = current[part]
        elif hasattr(current, part):
            current = getattr(current, part)
        else:
            return _MISSING
    return current


def _is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


def _format(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, Sequence) and not isinstance(value, str):
        return ",".join(_format(item) for item in value)
    return str(value)
