"""
Color mapping for complexsim.

Contains:
- ColorScheme: Catalog of named gradients
- ColorPipeline: Scheme + offset + invert applied to scalars
- resolve / resolve_array / resolve_index: Functional forms
"""

from .schemes import ColorScheme, SCHEME_NAMES, scheme_stops
from .pipeline import (
    ColorPipeline, resolve, resolve_array, resolve_index, interior_color,
)

__all__ = [
    "ColorScheme",
    "SCHEME_NAMES",
    "scheme_stops",
    "ColorPipeline",
    "resolve",
    "resolve_array",
    "resolve_index",
    "interior_color",
]
