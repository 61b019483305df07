"""Registry of configurable field properties.

A registry is an ordered collection of property descriptors. The resolution
engine is generic over its contents: it only looks properties up by id and
never special-cases a particular property.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .types import STANDARD_PATHS, Field, ScopedVars

if TYPE_CHECKING:
    from .types import DataFrame, InterpolateFunction


@dataclass(frozen=True, slots=True)
class FieldOverrideContext:
    """Context passed to property processors.

    Args:
        field: The field being resolved (as supplied, before resolution).
        data: Every frame of the current resolution call.
        data_frame_index: Index of the frame that owns `field`.
        replace_variables: Templating collaborator, when available.
        scoped_vars: Scoped variables of the working config.
        field_config_registry: Registry used for the current pass.
    """

    field: Field
    data: Sequence[DataFrame]
    data_frame_index: int
    replace_variables: InterpolateFunction | None
    scoped_vars: ScopedVars
    field_config_registry: FieldConfigRegistry


ProcessFunction = Callable[[Any, FieldOverrideContext, Mapping[str, Any]], Any]


def _always(field: Field) -> bool:
    return True


@dataclass(frozen=True, slots=True)
class FieldConfigProperty:
    """Describe one configurable field property.

    Args:
        id: Stable identifier referenced by override rules.
        path: Attribute name for standard properties, or key inside
            `FieldConfig.custom` for custom properties.
        process: Convert a raw value into a normalized value. Returning None
            means "remove this property".
        name: Human-friendly label.
        description: Optional longer description.
        is_custom: Whether the property lives in the `custom` namespace.
        settings: Processor settings passed to `process`.
        should_apply: Applicability predicate over a field.
    """

    id: str
    path: str
    process: ProcessFunction
    name: str = ""
    description: str = ""
    is_custom: bool = False
    settings: Mapping[str, Any] = field(default_factory=dict)
    should_apply: Callable[[Field], bool] = _always


class FieldConfigRegistry:
    """Ordered lookup of field config property descriptors."""

    def __init__(self, properties: Iterable[FieldConfigProperty]) -> None:
        """Initialize a registry from descriptors in their application order.

        Raises:
            ValueError: On a duplicate id, or a non-custom descriptor whose
                path is not a standard `FieldConfig` attribute.
        """

        self._properties: dict[str, FieldConfigProperty] = {}
        for prop in properties:
            if prop.id in self._properties:
                raise ValueError(f"Duplicate FieldConfigProperty id: {prop.id!r}")
            if not prop.is_custom and prop.path not in STANDARD_PATHS:
                raise ValueError(f"FieldConfigProperty {prop.id!r} has no standard path {prop.path!r}; mark it custom")
            self._properties[prop.id] = prop

    def __contains__(self, property_id: object) -> bool:
        return property_id in self._properties

    def __len__(self) -> int:
        return len(self._properties)

    def get(self, property_id: str) -> FieldConfigProperty:
        """Return a descriptor by id.

        Raises:
            KeyError: When no descriptor is registered under `property_id`.
        """

        try:
            return self._properties[property_id]
        except KeyError:
            raise KeyError(f"Unknown field config property: {property_id!r}") from None

    def get_if_exists(self, property_id: str) -> FieldConfigProperty | None:
        """Return a descriptor by id, or None when missing."""

        return self._properties.get(property_id)

    def list(self) -> tuple[FieldConfigProperty, ...]:
        """Return all descriptors in registration order."""

        return tuple(self._properties.values())

    def ids(self) -> tuple[str, ...]:
        """Return all registered ids in registration order."""

        return tuple(self._properties.keys())

    def extend(self, properties: Iterable[FieldConfigProperty]) -> FieldConfigRegistry:
        """Return a new registry with extra descriptors appended.

        Args:
            properties: Additional descriptors, typically plugin-specific
                custom properties.

        Returns:
            A new FieldConfigRegistry; this registry is left unchanged.
        """

        return FieldConfigRegistry((*self.list(), *properties))

