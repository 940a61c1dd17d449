"""Three-column flow (sankey) diagram geometry.

Columns: 0 = income sources, 1 = institutions, 2 = expense categories.

- A node's column comes from the hint map when present; otherwise a node
  without incoming edges is column 0, one without outgoing edges is column 2
  and anything else is column 1.
- A node's value is ``max(outgoing sum, incoming sum)``.
- Nodes in a column are sorted by value descending; ties keep the order in
  which nodes first appear in the edge list.
- One vertical scale is shared by all columns and chosen so that every
  column, including its inter-node gaps, fits the drawing height.
- Bands stack along each endpoint in edge order; thickness is
  ``amount × scale`` with a floor of 1 so no edge becomes invisible.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from ..models import FlowEdge

WIDTH = 960
MIN_HEIGHT = 240
PAD_Y = 14
NODE_WIDTH = 10
NODE_GAP = 4
ROW_HEIGHT = 16
LEFT_GUTTER = 185
RIGHT_GUTTER = 150
MIN_NODE_HEIGHT = 2
MIN_BAND_THICKNESS = 1

COLUMN_COUNT = 3
COLUMN_HEADERS: tuple[str, ...] = ("収入", "保有金融機関", "大項目")


@dataclass(frozen=True, slots=True)
class FlowNode:
    name: str
    column: int
    value: float
    x: float
    y: float
    height: float


@dataclass(frozen=True, slots=True)
class FlowBand:
    source: str
    target: str
    amount: float
    color: str
    thickness: float
    source_y: float
    target_y: float
    path: str


@dataclass(frozen=True, slots=True)
class ColumnHeader:
    label: str
    x: float


@dataclass(frozen=True, slots=True)
class FlowGeometry:
    width: float
    height: float
    scale: float = 0.0
    nodes: tuple[FlowNode, ...] = ()
    bands: tuple[FlowBand, ...] = ()
    headers: tuple[ColumnHeader, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.bands

    def node(self, name: str) -> FlowNode:
        for n in self.nodes:
            if n.name == name:
                return n
        raise KeyError(name)


def column_x() -> tuple[float, float, float]:
    return (
        LEFT_GUTTER,
        LEFT_GUTTER + (WIDTH - LEFT_GUTTER - RIGHT_GUTTER) / 2,
        WIDTH - RIGHT_GUTTER,
    )


def _num(v: float) -> str:
    return f"{round(v, 2):g}"


def band_path(sx: float, sy: float, tx: float, ty: float, th: float) -> str:
    """Closed cubic Bézier ribbon from ``(sx, sy)`` to ``(tx, ty)``, ``th`` thick."""

    mx = (sx + tx) / 2
    f = _num
    return (
        f"M{f(sx)},{f(sy)} C{f(mx)},{f(sy)} {f(mx)},{f(ty)} {f(tx)},{f(ty)} "
        f"L{f(tx)},{f(ty + th)} C{f(mx)},{f(ty + th)} {f(mx)},{f(sy + th)} {f(sx)},{f(sy + th)} Z"
    )


def assign_columns(
    edges: Sequence[FlowEdge], hints: Mapping[str, int] | None = None
) -> tuple[list[str], dict[str, int], dict[str, float]]:
    """Return ``(nodes in first-seen order, node → column, node → value)``."""

    hints = hints or {}
    order: dict[str, None] = {}
    out_sum: dict[str, float] = {}
    in_sum: dict[str, float] = {}
    for e in edges:
        order.setdefault(e.source, None)
        order.setdefault(e.target, None)
        out_sum[e.source] = out_sum.get(e.source, 0) + e.amount
        in_sum[e.target] = in_sum.get(e.target, 0) + e.amount

    columns: dict[str, int] = {}
    values: dict[str, float] = {}
    for name in order:
        hint = hints.get(name)
        if hint in (0, 1, 2):
            columns[name] = hint
        elif name not in in_sum:
            columns[name] = 0
        elif name not in out_sum:
            columns[name] = 2
        else:
            columns[name] = 1
        values[name] = max(out_sum.get(name, 0), in_sum.get(name, 0))
    return list(order), columns, values


def layout_flow(
    edges: Sequence[FlowEdge], node_column: Mapping[str, int] | None = None
) -> FlowGeometry:
    """Compute node extents and band geometry for ``edges``."""

    if not edges:
        return FlowGeometry(width=WIDTH, height=MIN_HEIGHT)

    names, columns, values = assign_columns(edges, node_column)
    by_column: list[list[str]] = [[] for _ in range(COLUMN_COUNT)]
    for name in names:
        by_column[columns[name]].append(name)
    for col in by_column:
        col.sort(key=lambda n: values[n], reverse=True)

    height = max(MIN_HEIGHT, len(names) * ROW_HEIGHT + PAD_Y * 2)
    draw_h = height - PAD_Y * 2

    fits = [
        (draw_h - (len(col) - 1) * NODE_GAP) / total
        for col in by_column
        if (total := sum(values[n] for n in col)) > 0
    ]
    scale = min(fits) if fits else 0.0

    xs = column_x()
    nodes: dict[str, FlowNode] = {}
    for ci, col in enumerate(by_column):
        col_h = sum(values[n] * scale for n in col) + (len(col) - 1) * NODE_GAP
        y = PAD_Y + (draw_h - col_h) / 2
        for name in col:
            nodes[name] = FlowNode(
                name=name,
                column=ci,
                value=values[name],
                x=xs[ci],
                y=y,
                height=max(values[name] * scale, MIN_NODE_HEIGHT),
            )
            y += values[name] * scale + NODE_GAP

    source_offset: dict[str, float] = {}
    target_offset: dict[str, float] = {}
    bands: list[FlowBand] = []
    for e in edges:
        src, tgt = nodes[e.source], nodes[e.target]
        th = max(e.amount * scale, MIN_BAND_THICKNESS)
        sy = src.y + source_offset.get(e.source, 0)
        ty = tgt.y + target_offset.get(e.target, 0)
        source_offset[e.source] = source_offset.get(e.source, 0) + th
        target_offset[e.target] = target_offset.get(e.target, 0) + th
        bands.append(
            FlowBand(
                source=e.source,
                target=e.target,
                amount=e.amount,
                color=e.color,
                thickness=th,
                source_y=sy,
                target_y=ty,
                path=band_path(src.x + NODE_WIDTH, sy, tgt.x, ty, th),
            )
        )

    headers = tuple(
        ColumnHeader(label=COLUMN_HEADERS[ci], x=xs[ci] + NODE_WIDTH / 2)
        for ci, col in enumerate(by_column)
        if col
    )
    ordered = tuple(nodes[n] for col in by_column for n in col)
    return FlowGeometry(
        width=WIDTH,
        height=height,
        scale=scale,
        nodes=ordered,
        bands=tuple(bands),
        headers=headers,
    )


__all__ = [
    "COLUMN_HEADERS",
    "ColumnHeader",
    "FlowBand",
    "FlowGeometry",
    "FlowNode",
    "assign_columns",
    "band_path",
    "column_x",
    "layout_flow",
]
