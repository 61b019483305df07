"""Field matcher registry.

Override rules reference matchers declaratively (`id` + `options`). The
registry maps an id to a factory that turns options into a predicate over a
field, so rules are compiled once per resolution call.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Final

from .field_type import guess_field_type_for_field
from .types import Field, FieldType, MatcherConfig

logger = logging.getLogger(__name__)

FieldMatcher = Callable[[Field], bool]


@dataclass(frozen=True, slots=True)
class FieldMatcherInfo:
    """Describe a matcher factory.

    Args:
        id: Identifier referenced by `MatcherConfig.id`.
        name: Human-friendly label.
        description: Short description for editors.
        get: Factory turning matcher options into a predicate.
    """

    id: str
    name: str
    description: str
    get: Callable[[Any, FieldMatcherRegistry], FieldMatcher]


class FieldMatcherRegistry:
    """Lookup of matcher factories by id."""

    def __init__(self, matchers: Iterable[FieldMatcherInfo]) -> None:
        """Initialize a registry from matcher descriptions."""

        self._matchers: dict[str, FieldMatcherInfo] = {}
        for info in matchers:
            if info.id in self._matchers:
                raise ValueError(f"Duplicate FieldMatcherInfo id: {info.id!r}")
            self._matchers[info.id] = info

    def __contains__(self, matcher_id: object) -> bool:
        return matcher_id in self._matchers

    def get_if_exists(self, matcher_id: str) -> FieldMatcherInfo | None:
        """Return matcher info by id, or None when missing."""

        return self._matchers.get(matcher_id)

    def list(self) -> tuple[FieldMatcherInfo, ...]:
        """Return all matchers in registration order."""

        return tuple(self._matchers.values())

    def compile(self, config: MatcherConfig) -> FieldMatcher | None:
        """Compile a matcher reference into a predicate.

        Args:
            config: Matcher id and options.

        Returns:
            The predicate, or None when the id is not registered.
        """

        info = self._matchers.get(config.id)
        if info is None:
            logger.debug("Unknown field matcher id %r; rule dropped", config.id)
            return None
        return info.get(config.options, self)


def _by_name(options: Any, registry: FieldMatcherRegistry) -> FieldMatcher:
    name = "" if options is None else str(options)
    return lambda field: field.name == name


def _by_names(options: Any, registry: FieldMatcherRegistry) -> FieldMatcher:
    if isinstance(options, Mapping):
        options = options.get("names")
    names = frozenset(str(name) for name in options or ())
    return lambda field: field.name in names


def _by_regexp(options: Any, registry: FieldMatcherRegistry) -> FieldMatcher:
    pattern = "" if options is None else str(options)
    try:
        regex = re.compile(pattern)
    except re.error:
        logger.debug("Invalid byRegexp pattern %r; matcher never matches", pattern)
        return _never
    return lambda field: regex.search(field.name or "") is not None


def _by_type(options: Any, registry: FieldMatcherRegistry) -> FieldMatcher:
    try:
        wanted = FieldType(str(options))
    except ValueError:
        return _never
    return lambda field: _effective_type(field) == wanted


def _numeric(options: Any, registry: FieldMatcherRegistry) -> FieldMatcher:
    return lambda field: _effective_type(field) == FieldType.number


def _time(options: Any, registry: FieldMatcherRegistry) -> FieldMatcher:
    return lambda field: _effective_type(field) == FieldType.time


def _always(options: Any, registry: FieldMatcherRegistry) -> FieldMatcher:
    return lambda field: True


def _never(field: Field) -> bool:
    return False


def _never_factory(options: Any, registry: FieldMatcherRegistry) -> FieldMatcher:
    return _never


def _effective_type(field: Field) -> FieldType | None:
    """Return the declared type, or a guessed one when unset or `other`."""

    if field.type is None or field.type == FieldType.other:
        return guess_field_type_for_field(field) or field.type
    return field.type


def _children(options: Any, registry: FieldMatcherRegistry) -> list[FieldMatcher]:
    """Compile nested matcher configs; unknown children are dropped."""

    if isinstance(options, Mapping):
        options = options.get("matchers")
    compiled: list[FieldMatcher] = []
    for child in options or ():
        if isinstance(child, Mapping) and child.get("id"):
            child = MatcherConfig(id=str(child["id"]), options=child.get("options"))
        if not isinstance(child, MatcherConfig):
            continue
        matcher = registry.compile(child)
        if matcher is not None:
            compiled.append(matcher)
    return compiled


def _any_match(options: Any, registry: FieldMatcherRegistry) -> FieldMatcher:
    children = _children(options, registry)
    return lambda field: any(matcher(field) for matcher in children)


def _all_match(options: Any, registry: FieldMatcherRegistry) -> FieldMatcher:
    children = _children(options, registry)
    if not children:
        return _never
    return lambda field: all(matcher(field) for matcher in children)


def _invert_match(options: Any, registry: FieldMatcherRegistry) -> FieldMatcher:
    if isinstance(options, Mapping) and options.get("id"):
        options = MatcherConfig(id=str(options["id"]), options=options.get("options"))
    if not isinstance(options, MatcherConfig):
        return _never
    inner = registry.compile(options)
    if inner is None:
        return _never
    return lambda field: not inner(field)


FIELD_MATCHERS: Final[FieldMatcherRegistry] = FieldMatcherRegistry(
    (
        FieldMatcherInfo("byName", "Field name", "Match a field by its exact name", _by_name),
        FieldMatcherInfo("byNames", "Field names", "Match any of a set of field names", _by_names),
        FieldMatcherInfo("byRegexp", "Field name pattern", "Match field names with a regular expression", _by_regexp),
        FieldMatcherInfo("byType", "Field type", "Match fields of a given type", _by_type),
        FieldMatcherInfo("numeric", "Numeric fields", "Match all numeric fields", _numeric),
        FieldMatcherInfo("time", "Time fields", "Match all time fields", _time),
        FieldMatcherInfo("anyMatch", "Any match", "Match when any nested matcher matches", _any_match),
        FieldMatcherInfo("allMatch", "All match", "Match when every nested matcher matches", _all_match),
        FieldMatcherInfo("invertMatch", "Invert match", "Match when the nested matcher does not", _invert_match),
        FieldMatcherInfo("alwaysMatch", "All fields", "Match every field", _always),
        FieldMatcherInfo("neverMatch", "No fields", "Match no field", _never_factory),
    )
)
