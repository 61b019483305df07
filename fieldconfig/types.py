"""Core data types for field configuration resolution.

Frames, fields, and the per-field `FieldConfig` are plain data containers. The
resolution engine treats frames and fields as immutable (new instances are
produced on every resolution call) while `FieldConfig` is a mutable working
object owned by a single resolution pass.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from .display import DisplayValue
    from .links import LinksSupplier
    from .registry import FieldConfigProperty


class FieldType(StrEnum):
    """Value type of a field column."""

    number = "number"
    string = "string"
    time = "time"
    boolean = "boolean"
    other = "other"


class ThresholdsMode(StrEnum):
    """How threshold step values are interpreted."""

    absolute = "absolute"
    percentage = "percentage"


class FieldColorMode(StrEnum):
    """Color policy for a field."""

    thresholds = "thresholds"
    scheme = "scheme"
    fixed = "fixed"


class MappingType(StrEnum):
    """Value mapping variants."""

    value = "value"
    range = "range"


DEFAULT_COLOR_SCHEME = "BrBG"


@dataclass(frozen=True, slots=True)
class ThresholdStep:
    """A single threshold step.

    Attributes:
        value: Lower bound of the step; the first step is always `-inf`.
        color: Color name or hex string for values at or above `value`.
    """

    value: float
    color: str


@dataclass(frozen=True, slots=True)
class Thresholds:
    """Threshold policy for a field.

    Attributes:
        mode: Absolute values or percentages of the field's min/max range.
            None until validation fills in a default.
        steps: Ordered threshold steps. None until validation fills in a default.
    """

    mode: ThresholdsMode | None = ThresholdsMode.absolute
    steps: tuple[ThresholdStep, ...] | None = ()


@dataclass(frozen=True, slots=True)
class FieldColor:
    """Color configuration for a field.

    Attributes:
        mode: Color mode; a color block without a mode is dropped by validation.
        scheme_name: Scheme identifier, only meaningful for `scheme` mode.
        fixed_color: Color used by `fixed` mode.
    """

    mode: FieldColorMode | None = None
    scheme_name: str | None = None
    fixed_color: str | None = None


@dataclass(frozen=True, slots=True)
class ValueMapping:
    """Map a raw value (or value range) to display text.

    Attributes:
        type: Either a single-value or a range mapping.
        text: Replacement display text.
        value: Matched value for `value` mappings (compared as text).
        from_value: Inclusive lower bound for `range` mappings.
        to_value: Inclusive upper bound for `range` mappings.
        id: Optional stable identifier.
    """

    type: MappingType
    text: str
    value: str | None = None
    from_value: float | None = None
    to_value: float | None = None
    id: int | None = None


@dataclass(frozen=True, slots=True)
class DataLink:
    """A templated link attached to a field.

    Attributes:
        title: Title template.
        url: URL template; may reference scoped variables.
        target_blank: Open in a new tab when True.
    """

    title: str
    url: str
    target_blank: bool = False


@dataclass(frozen=True, slots=True)
class LinkModel:
    """A resolved link ready for rendering."""

    href: str
    title: str
    target: str
    origin: "Field"


@dataclass(frozen=True, slots=True)
class ScopedVar:
    """A templating variable with display text and a (possibly structured) value."""

    text: str
    value: Any


ScopedVars = Mapping[str, ScopedVar]


class InterpolateFunction(Protocol):
    """Templating collaborator: substitute variables in a template string."""

    def __call__(self, template: str, scoped_vars: ScopedVars | None = None) -> str: ...


@dataclass(slots=True)
class FieldConfig:
    """Resolved display configuration for a field.

    Standard properties are explicit attributes. Plugin-specific properties
    live in `custom`, keyed by the property path; `custom` stays None until
    a custom property is set.

    Attributes:
        title: Display title template.
        unit: Unit identifier (e.g. `percent`, `short`, `ms`).
        min: Lower bound of the display range.
        max: Upper bound of the display range.
        decimals: Number of decimals to display.
        no_value: Text shown when a value is missing.
        thresholds: Threshold policy.
        mappings: Value-to-text mappings.
        links: Data link templates.
        color: Color policy.
        custom: Plugin-specific properties keyed by path.
        scoped_vars: Templating variables attached during resolution.
    """

    title: str | None = None
    unit: str | None = None
    min: float | None = None
    max: float | None = None
    decimals: int | None = None
    no_value: str | None = None
    thresholds: Thresholds | None = None
    mappings: tuple[ValueMapping, ...] | None = None
    links: tuple[DataLink, ...] | None = None
    color: FieldColor | None = None
    custom: dict[str, Any] | None = None
    scoped_vars: dict[str, ScopedVar] | None = None

    def copy(self) -> FieldConfig:
        """Return a shallow copy whose `custom` map can be changed independently."""

        return replace(
            self,
            custom=dict(self.custom) if self.custom is not None else None,
            scoped_vars=dict(self.scoped_vars) if self.scoped_vars is not None else None,
        )

    def get_value(self, prop: FieldConfigProperty) -> Any:
        """Return the value stored for a property descriptor, or None."""

        if prop.is_custom:
            if self.custom is None:
                return None
            return self.custom.get(prop.path)
        return getattr(self, prop.path, None)

    def set_value(self, prop: FieldConfigProperty, value: Any) -> None:
        """Store a value for a property descriptor."""

        if prop.is_custom:
            if self.custom is None:
                self.custom = {}
            self.custom[prop.path] = value
            return
        if prop.path not in STANDARD_PATHS:
            raise KeyError(f"Unknown standard field config path: {prop.path!r}")
        setattr(self, prop.path, value)

    def unset_value(self, prop: FieldConfigProperty) -> None:
        """Remove the value stored for a property descriptor."""

        if prop.is_custom:
            if self.custom is not None:
                self.custom.pop(prop.path, None)
            return
        if prop.path in STANDARD_PATHS:
            setattr(self, prop.path, None)


STANDARD_PATHS: frozenset[str] = frozenset(
    {"title", "unit", "min", "max", "decimals", "no_value", "thresholds", "mappings", "links", "color"}
)


@dataclass(frozen=True, slots=True)
class Field:
    """A named, typed column of values plus its display configuration.

    Attributes:
        name: Column name (may be empty).
        type: Declared value type, or None when unknown.
        values: Column values; None marks a missing value.
        config: Display configuration.
        labels: Optional series labels.
        display: Display processor attached by resolution.
        get_links: Links supplier attached by resolution.
    """

    name: str
    type: FieldType | None = None
    values: Sequence[Any] = ()
    config: FieldConfig = field(default_factory=FieldConfig)
    labels: Mapping[str, str] | None = None
    display: Callable[[Any], DisplayValue] | None = field(default=None, compare=False, repr=False)
    get_links: LinksSupplier | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True, slots=True)
class DataFrame:
    """An ordered collection of equal-length fields.

    Attributes:
        fields: Field columns.
        name: Optional series name.
        ref_id: Optional query reference id.
        meta: Optional data-source metadata.
    """

    fields: tuple[Field, ...] = ()
    name: str | None = None
    ref_id: str | None = None
    meta: Mapping[str, Any] | None = None

    @property
    def length(self) -> int:
        """Row count shared by all fields."""

        if not self.fields:
            return 0
        return len(self.fields[0].values)


@dataclass(frozen=True, slots=True)
class MatcherConfig:
    """Declarative reference to a field matcher."""

    id: str
    options: Any = None


@dataclass(frozen=True, slots=True)
class DynamicConfigValue:
    """A property assignment inside an override rule."""

    id: str
    value: Any = None


@dataclass(frozen=True, slots=True)
class OverrideRule:
    """Apply `properties` (in order) to every field selected by `matcher`."""

    matcher: MatcherConfig
    properties: tuple[DynamicConfigValue, ...] = ()


@dataclass(frozen=True, slots=True)
class FieldConfigSource:
    """Panel-level defaults plus ordered override rules."""

    defaults: FieldConfig = field(default_factory=FieldConfig)
    overrides: tuple[OverrideRule, ...] = ()
