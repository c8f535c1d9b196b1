from .calculator import (
    calculate_centrality,
    calculate_node_values,
    configure_arrows,
    get_node_display_value,
    get_node_size,
    get_node_value_statistics,
    prepare_nodes,
)
from .colors import node_color
from .config import (
    DisplayFlags,
    ForceProfile,
    NodeSizes,
    OverlaySettings,
    RenderSettings,
    TimerSettings,
    load_config,
)
from .models import GraphDataset, Link, Node, endpoint_id

__all__ = [
    "calculate_centrality",
    "calculate_node_values",
    "configure_arrows",
    "get_node_display_value",
    "get_node_size",
    "get_node_value_statistics",
    "prepare_nodes",
    "node_color",
    "DisplayFlags",
    "ForceProfile",
    "NodeSizes",
    "OverlaySettings",
    "RenderSettings",
    "TimerSettings",
    "load_config",
    "GraphDataset",
    "Link",
    "Node",
    "endpoint_id",
]
