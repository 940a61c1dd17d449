"""Pure layout algorithms: nice axes, bar/line charts and flow diagrams."""

from .axis import Axis, format_axis_label, format_amount, format_yen, nice_axis
from .chart import ChartGeometry, ChartPoint, layout_bar_line
from .flow import FlowGeometry, layout_flow

__all__ = [
    "Axis",
    "ChartGeometry",
    "ChartPoint",
    "FlowGeometry",
    "format_amount",
    "format_axis_label",
    "format_yen",
    "layout_bar_line",
    "layout_flow",
    "nice_axis",
]
