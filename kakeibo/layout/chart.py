"""Bar + line chart geometry.

Turns a sequence of :class:`ChartPoint` into absolute drawing coordinates:

- one x position per point, centred in equal-width groups;
- y positions from a shared nice axis (see :mod:`kakeibo.layout.axis`);
- bar rectangles growing from the zero line, downward for negative values;
  bars of one point sit side by side around the point's x in input order;
- the line series as sub-paths that break wherever a point has no line
  value (``None`` means "no data", which is different from 0).

The functions here are pure and return frozen values only.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .axis import DEFAULT_TICKS, Axis, Number, format_axis_label, nice_axis

MAX_BAR_WIDTH = 24
BAR_WIDTH_RATIO = 0.3
LABEL_OFFSET = 12


@dataclass(frozen=True, slots=True)
class ChartPoint:
    label: str
    bars: tuple[Number, ...] = ()
    line: Number | None = None


@dataclass(frozen=True, slots=True)
class Padding:
    left: float = 52
    right: float = 12
    top: float = 16
    bottom: float = 24


@dataclass(frozen=True, slots=True)
class Tick:
    value: Number
    y: float
    label: str
    is_zero: bool


@dataclass(frozen=True, slots=True)
class BarRect:
    point: int
    series: int
    value: Number
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True, slots=True)
class LineVertex:
    point: int
    value: Number
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class XLabel:
    text: str
    x: float
    y: float
    highlighted: bool = False


@dataclass(frozen=True, slots=True)
class ChartGeometry:
    width: float
    height: float
    axis: Axis | None = None
    zero_y: float | None = None
    xs: tuple[float, ...] = ()
    ticks: tuple[Tick, ...] = ()
    bars: tuple[BarRect, ...] = ()
    line_segments: tuple[tuple[LineVertex, ...], ...] = ()
    line_path: str = ""
    labels: tuple[XLabel, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.xs


def _num(v: float) -> str:
    return f"{round(v, 2):g}"


def line_path(segments: Sequence[Sequence[LineVertex]]) -> str:
    """SVG path data: ``M`` opens each sub-path, ``L`` continues it."""

    parts: list[str] = []
    for segment in segments:
        for i, v in enumerate(segment):
            parts.append(f"{'M' if i == 0 else 'L'}{_num(v.x)},{_num(v.y)}")
    return "".join(parts)


def layout_bar_line(
    points: Sequence[ChartPoint],
    width: float,
    height: float,
    *,
    highlight: str | None = None,
    padding: Padding = Padding(),
    ticks: int = DEFAULT_TICKS,
) -> ChartGeometry:
    """Lay out ``points`` in a ``width`` × ``height`` drawing area.

    ``highlight`` names the x label to emphasize (e.g. the selected month).
    """

    if not points:
        return ChartGeometry(width=width, height=height)

    draw_w = width - padding.left - padding.right
    draw_h = height - padding.top - padding.bottom

    values: list[Number] = [v for p in points for v in p.bars]
    values.extend(p.line for p in points if p.line is not None)
    axis = nice_axis(min([*values, 0]), max([*values, 0]), ticks)
    span = axis.span or 1

    def to_y(v: Number) -> float:
        return padding.top + draw_h * (1 - (v - axis.min) / span)

    zero_y = to_y(0)
    group_w = draw_w / len(points)
    bar_w = min(MAX_BAR_WIDTH, group_w * BAR_WIDTH_RATIO)

    tick_list = tuple(
        Tick(
            value=v,
            y=to_y(v),
            label=format_axis_label(round(v)),
            is_zero=abs(v) < axis.step * 0.01,
        )
        for v in axis.tick_values()
    )

    xs: list[float] = []
    bars: list[BarRect] = []
    segments: list[tuple[LineVertex, ...]] = []
    current: list[LineVertex] = []
    labels: list[XLabel] = []

    for i, point in enumerate(points):
        x = padding.left + i * group_w + group_w / 2
        xs.append(x)

        n = len(point.bars)
        for bi, v in enumerate(point.bars):
            if v == 0:
                continue
            bar_y = to_y(v)
            bars.append(
                BarRect(
                    point=i,
                    series=bi,
                    value=v,
                    x=x + (bi - n / 2) * bar_w + 1,
                    y=bar_y if v >= 0 else zero_y,
                    width=bar_w - 2,
                    height=abs(bar_y - zero_y),
                )
            )

        if point.line is None:
            if current:
                segments.append(tuple(current))
                current = []
        else:
            current.append(LineVertex(point=i, value=point.line, x=x, y=to_y(point.line)))

        labels.append(
            XLabel(
                text=point.label,
                x=x,
                y=height - padding.bottom + LABEL_OFFSET,
                highlighted=highlight is not None and point.label == highlight,
            )
        )

    if current:
        segments.append(tuple(current))

    return ChartGeometry(
        width=width,
        height=height,
        axis=axis,
        zero_y=zero_y,
        xs=tuple(xs),
        ticks=tick_list,
        bars=tuple(bars),
        line_segments=tuple(segments),
        line_path=line_path(segments),
        labels=tuple(labels),
    )


__all__ = [
    "BarRect",
    "ChartGeometry",
    "ChartPoint",
    "LineVertex",
    "Padding",
    "Tick",
    "XLabel",
    "layout_bar_line",
    "line_path",
]
