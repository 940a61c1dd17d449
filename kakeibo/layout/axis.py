"""Nice-axis computation and amount formatting for chart labels.

A nice axis always contains zero, and its step is 1, 2 or 5 times a power
of ten. Its bounds are whole multiples of the step and enclose the data.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

DEFAULT_TICKS = 5
# Substitute range when every value is zero.
DEGENERATE_RANGE = 100_000
MAN = 10_000

type Number = int | float


@dataclass(frozen=True, slots=True)
class Axis:
    min: Number
    max: Number
    step: Number

    @property
    def span(self) -> Number:
        return self.max - self.min

    def tick_values(self) -> list[Number]:
        count = round(self.span / self.step)
        return [self.min + i * self.step for i in range(count + 1)]


def nice_axis(min_value: Number, max_value: Number, ticks: int = DEFAULT_TICKS) -> Axis:
    """Return the nice axis enclosing ``[min(min_value, 0), max(max_value, 0)]``."""

    if ticks <= 0:
        raise ValueError(f"ticks must be positive; got {ticks}")
    lo = min(min_value, 0)
    hi = max(max_value, 0)
    span = hi - lo or DEGENERATE_RANGE

    raw_step = span / ticks
    magnitude = 10 ** math.floor(math.log10(raw_step))
    norm = raw_step / magnitude
    if norm <= 1:
        step = magnitude
    elif norm <= 2:
        step = 2 * magnitude
    elif norm <= 5:
        step = 5 * magnitude
    else:
        step = 10 * magnitude

    return Axis(
        min=math.floor(lo / step) * step,
        max=math.ceil(hi / step) * step,
        step=step,
    )


def format_amount(value: Number) -> str:
    """Thousands-separated amount, e.g. ``-5,491``."""

    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int):
        return f"{value:,}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def format_yen(value: Number) -> str:
    return f"¥{format_amount(value)}"


def format_axis_label(value: Number) -> str:
    """Compact tick label: ``0``, ``5,000``, ``12万``, ``-1.5万``."""

    if value == 0:
        return "0"
    magnitude = abs(value)
    if magnitude >= MAN:
        sign = "-" if value < 0 else ""
        man = magnitude / MAN
        text = f"{man:.0f}" if man == int(man) else f"{man:.1f}"
        return f"{sign}{text}万"
    return format_amount(value)


__all__ = [
    "Axis",
    "DEFAULT_TICKS",
    "DEGENERATE_RANGE",
    "format_amount",
    "format_axis_label",
    "format_yen",
    "nice_axis",
]
