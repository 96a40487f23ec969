"""
Bounded parameter schemas.

Every simulation exposes its tunables as an ordered ParameterSet. Each
entry carries its kind, range and default so that a host can build
sliders, toggles and dropdowns without knowing the simulation type.

Writes never fail on out-of-range input: numeric values are clamped,
choices fall back to the nearest valid index. Non-numeric garbage and
NaN leave the current value untouched.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple
import logging
import math

from .errors import UnknownParameter

logger = logging.getLogger(__name__)

# Accepted string spellings of boolean values
_BOOL_WORDS = {
    "true": True, "yes": True, "on": True, "1": True,
    "false": False, "no": False, "off": False, "0": False,
}


class ParameterKind(Enum):
    """Value kind of a parameter."""
    FLOAT = "float"
    INT = "int"
    BOOL = "bool"
    CHOICE = "choice"   # One label out of a fixed tuple


@dataclass(frozen=True)
class Parameter:
    """
    Declaration of one tunable value.

    Attributes:
        name: Unique key inside its ParameterSet
        default: Value restored by reset()
        min_value: Lower bound (inclusive)
        max_value: Upper bound (inclusive)
        kind: Value kind
        choices: Labels for CHOICE parameters
        label: Human readable caption
    """
    name: str
    default: Any
    min_value: float = 0.0
    max_value: float = 1.0
    kind: ParameterKind = ParameterKind.FLOAT
    choices: Tuple[str, ...] = ()
    label: str = ""

    def __post_init__(self):
        if self.kind == ParameterKind.CHOICE:
            if not self.choices:
                raise ValueError(f"Choice parameter '{self.name}' needs at least one choice")
            if self.default not in self.choices:
                raise ValueError(f"Default '{self.default}' not in choices of '{self.name}'")
        elif self.min_value > self.max_value:
            raise ValueError(
                f"Parameter '{self.name}': min {self.min_value} > max {self.max_value}"
            )

    def coerce(self, value: Any) -> Any:
        """
        Convert a raw value into a valid stored value.

        Returns None when the value cannot be interpreted, in which case
        the caller keeps the current value.
        """
        if self.kind == ParameterKind.BOOL:
            return self._coerce_bool(value)

        if self.kind == ParameterKind.CHOICE:
            return self._coerce_choice(value)

        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        if math.isnan(number):
            return None

        number = min(max(number, self.min_value), self.max_value)
        if self.kind == ParameterKind.INT:
            # Bounds of INT params are integral, so rounding stays in range
            return int(round(number))
        return number

    @staticmethod
    def _coerce_bool(value: Any) -> Optional[bool]:
        if isinstance(value, str):
            return _BOOL_WORDS.get(value.strip().lower())
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        if math.isnan(number):
            return None
        return number != 0.0

    def _coerce_choice(self, value: Any) -> Optional[str]:
        if isinstance(value, Enum):
            value = value.value
        if isinstance(value, str):
            if value in self.choices:
                return value
            lowered = value.lower()
            for choice in self.choices:
                if choice.lower() == lowered:
                    return choice
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        if math.isnan(number):
            return None
        index = int(round(min(max(number, 0), len(self.choices) - 1)))
        return self.choices[index]


class ParameterInfo(NamedTuple):
    """Schema entry reported by ParameterSet.enumerate()."""
    name: str
    value: Any
    min_value: float
    max_value: float
    kind: ParameterKind
    choices: Tuple[str, ...] = ()
    label: str = ""


# ===== Declaration helpers =====

def float_param(name: str, default: float, lo: float, hi: float, label: str = "") -> Parameter:
    return Parameter(name, float(default), float(lo), float(hi), ParameterKind.FLOAT, (), label)


def int_param(name: str, default: int, lo: int, hi: int, label: str = "") -> Parameter:
    return Parameter(name, int(default), lo, hi, ParameterKind.INT, (), label)


def bool_param(name: str, default: bool, label: str = "") -> Parameter:
    return Parameter(name, bool(default), 0, 1, ParameterKind.BOOL, (), label)


def choice_param(name: str, default: str, choices: Iterable[str], label: str = "") -> Parameter:
    choices = tuple(choices)
    return Parameter(name, default, 0, len(choices) - 1, ParameterKind.CHOICE, choices, label)


class ParameterSet:
    """
    Ordered mapping name -> bounded value.

    Example:
        params = ParameterSet([
            float_param("rho", 28.0, 0.0, 50.0),
            int_param("substeps", 10, 1, 50),
        ])
        params.set("rho", 1000)   # stored as 50.0
    """

    def __init__(self, parameters: Iterable[Parameter]):
        self._params: Dict[str, Parameter] = {}
        for p in parameters:
            if p.name in self._params:
                raise ValueError(f"Duplicate parameter name: {p.name}")
            self._params[p.name] = p
        self._values: Dict[str, Any] = {name: p.default for name, p in self._params.items()}

    def __len__(self) -> int:
        return len(self._params)

    def __iter__(self) -> Iterator[str]:
        return iter(self._params)

    def __contains__(self, name: object) -> bool:
        return name in self._params

    def __getitem__(self, name: str) -> Any:
        return self.get(name)

    def param(self, name: str) -> Parameter:
        """Return the declaration of a parameter."""
        try:
            return self._params[name]
        except KeyError:
            raise UnknownParameter(f"Unknown parameter: {name}") from None

    def get(self, name: str) -> Any:
        self.param(name)
        return self._values[name]

    def set(self, name: str, value: Any) -> Any:
        """
        Write a value, clamped to the parameter's range.

        Args:
            name: Parameter name
            value: Raw value

        Returns:
            The value actually stored

        Raises:
            UnknownParameter: If name is not in the schema
        """
        param = self.param(name)
        coerced = param.coerce(value)
        if coerced is None:
            logger.debug(f"Ignoring invalid value {value!r} for parameter '{name}'")
            return self._values[name]
        self._values[name] = coerced
        return coerced

    def update(self, values: Dict[str, Any]) -> None:
        """Set several values in declaration order of the dict."""
        for name, value in values.items():
            self.set(name, value)

    def reset(self) -> None:
        """Restore every value to its default."""
        for name, p in self._params.items():
            self._values[name] = p.default

    def enumerate(self) -> List[ParameterInfo]:
        """Report the schema in declaration order with current values."""
        return [
            ParameterInfo(
                name=p.name,
                value=self._values[p.name],
                min_value=p.min_value,
                max_value=p.max_value,
                kind=p.kind,
                choices=p.choices,
                label=p.label or p.name,
            )
            for p in self._params.values()
        ]

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    def with_defaults(self, **overrides: Any) -> "ParameterSet":
        """
        Copy of this schema with some defaults replaced.

        Overrides are coerced like regular writes, so an out-of-range
        default is clamped into range.
        """
        params = []
        for name, p in self._params.items():
            if name in overrides:
                coerced = p.coerce(overrides[name])
                if coerced is not None:
                    p = Parameter(p.name, coerced, p.min_value, p.max_value,
                                  p.kind, p.choices, p.label)
            params.append(p)
        unknown = set(overrides) - set(self._params)
        if unknown:
            raise UnknownParameter(f"Unknown parameter(s): {sorted(unknown)}")
        return ParameterSet(params)
