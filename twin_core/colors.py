from __future__ import annotations

from typing import Optional, Tuple

NODE_TYPE_COLORS = {
    "environment": "#10B981",  # emerald
    "boundary": "#8B5CF6",  # violet
    "system": "#F97316",  # orange
}
NODE_FALLBACK_COLOR = "#6B7280"

# two-color scheme paired with the alternative shape set: external vs internal
ALT_EXTERNAL_COLOR = "#ff4d4d"
ALT_INTERNAL_COLOR = "#10b981"


def node_color(node_type: Optional[str], alternative_shapes: bool = False) -> str:
    if alternative_shapes:
        return ALT_EXTERNAL_COLOR if node_type == "environment" else ALT_INTERNAL_COLOR
    return NODE_TYPE_COLORS.get(node_type or "", NODE_FALLBACK_COLOR)


def hex_to_rgb(hex_color: str) -> Optional[Tuple[int, int, int]]:
    if not hex_color:
        return None
    value = hex_color.strip()
    if value.startswith("#"):
        value = value[1:]
    if len(value) != 6:
        return None
    try:
        return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)
    except ValueError:
        return None


def with_alpha(color: str, alpha: float) -> str:
    """rgba() string for a hex color; non-hex colors are returned unchanged."""
    rgb = hex_to_rgb(color)
    if rgb is None:
        return color
    return f"rgba({rgb[0]}, {rgb[1]}, {rgb[2]}, {alpha:g})"
