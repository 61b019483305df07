"""Pure field configuration resolution for panel data.

This package resolves the display configuration of every field of a set of
frames from data-source defaults, panel defaults and override rules. It
operates on in-memory inputs only. It must not import Django or perform any
I/O.
"""

from .overrides import ApplyFieldOverrideOptions, apply_field_overrides
from .standard import STANDARD_REGISTRY
from .validation import validate_field_config

__all__ = ["ApplyFieldOverrideOptions", "STANDARD_REGISTRY", "apply_field_overrides", "validate_field_config"]
