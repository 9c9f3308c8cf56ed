from __future__ import annotations
from collections.abc import Mapping
from enum import Enum
from numbers import Integral
from types import MappingProxyType
from typing import Any, Iterator
import logging

from ..errors import InvalidParameterError

logger = logging.getLogger(__name__)

MIN_VALUE = -100
MAX_VALUE = 100
NEUTRAL_VALUE = 0


class Adjustment(str, Enum):
    """
    The six adjustments, declared in the order the pipeline runs them.
    Values are the persisted/public names.
    """
    BRIGHTNESS = "Brightness"
    CONTRAST = "Contrast"
    SATURATION = "Saturation"
    TEMPERATURE = "Temperature"
    FADE = "Fade"
    VIGNETTE = "Vignette"

    @classmethod
    def from_name(cls, name: str | Adjustment) -> Adjustment:
        if isinstance(name, Adjustment):
            return name
        try:
            return cls(name)
        except ValueError:
            raise InvalidParameterError(f"Unknown adjustment: {name!r}") from None


def _validate_value(name: str, value: Any) -> int:
    # bool is an Integral; a checkbox value is not a slider position
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise InvalidParameterError(f"{name} must be an integer, got {value!r}")
    value = int(value)
    if not MIN_VALUE <= value <= MAX_VALUE:
        raise InvalidParameterError(
            f"{name} must be within [{MIN_VALUE}, {MAX_VALUE}], got {value}"
        )
    return value


class AdjustmentParameters(Mapping):
    """
    Immutable mapping adjustment name → integer in [-100, 100].

    Missing keys read as the neutral value through `value_of`, but stay
    absent from the mapping itself so they round-trip through storage
    unchanged.
    """

    def __init__(self, values: Mapping[str | Adjustment, Any] | None = None, **kwargs: Any):
        merged: dict[str, int] = {}
        for key, value in {**dict(values or {}), **kwargs}.items():
            adjustment = Adjustment.from_name(key)
            merged[adjustment.value] = _validate_value(adjustment.value, value)
        self._values = MappingProxyType(merged)

    # ── Mapping protocol ─────────────────────────────────────────────
    def __getitem__(self, key: str | Adjustment) -> int:
        if isinstance(key, Adjustment):
            key = key.value
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self):
        return f"AdjustmentParameters({dict(self._values)!r})"

    # ── Helpers ──────────────────────────────────────────────────────
    def value_of(self, adjustment: Adjustment) -> int:
        """Parameter for *adjustment*, neutral when absent."""
        return self._values.get(adjustment.value, NEUTRAL_VALUE)

    def is_neutral(self) -> bool:
        return all(value == NEUTRAL_VALUE for value in self._values.values())

    def merged_with(self, overrides: Mapping[str | Adjustment, Any]) -> AdjustmentParameters:
        updated = dict(self._values)
        updated.update(AdjustmentParameters(overrides))
        return AdjustmentParameters(updated)

    def to_dict(self) -> dict[str, int]:
        return dict(self._values)

    @classmethod
    def from_stored(cls, raw: Mapping[str, Any]) -> AdjustmentParameters:
        """
        Rebuild parameters read back from storage.
        Unknown names are dropped (and logged) rather than rejected, so a
        preset written by a newer release still loads.
        """
        known = {}
        for key, value in raw.items():
            try:
                adjustment = Adjustment.from_name(key)
            except InvalidParameterError:
                logger.warning(f"Ignoring unknown stored adjustment {key!r}")
                continue
            known[adjustment.value] = value
        return cls(known)
