from .twin_links import normalize_links, pair_hash_angle, pair_key, to_bidirectional
from .twin_physics import ForceLayout, ForceLayout2D, ForceLayout3D, build_layout

__all__ = [
    "normalize_links",
    "pair_hash_angle",
    "pair_key",
    "to_bidirectional",
    "ForceLayout",
    "ForceLayout2D",
    "ForceLayout3D",
    "build_layout",
]
