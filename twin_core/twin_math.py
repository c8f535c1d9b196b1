from __future__ import annotations

import json
import logging
import math
from typing import Any, Optional

LOG = logging.getLogger(__name__)


def _log(event: str, **fields: Any) -> None:
    if not LOG.isEnabledFor(logging.DEBUG):
        return
    payload = {"event": event, **fields}
    LOG.debug(json.dumps(payload, sort_keys=True, default=str))


def safe_float(value: Any, default: float = 0.0) -> float:
    try:
        v = float(value)
    except Exception:
        return default
    if math.isnan(v) or math.isinf(v):
        return default
    return v


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def clamp_normalize(
    value: Any,
    *,
    lo: float = 0.0,
    hi: float = 1.0,
    default: float = 0.0,
    label: Optional[str] = None,
    context: Optional[str] = None,
) -> float:
    try:
        v = float(value)
    except Exception:
        _log("clamp_invalid", label=label, value=value, context=context, default=default)
        return default
    if math.isnan(v) or math.isinf(v):
        _log("clamp_invalid", label=label, value=v, context=context, default=default)
        return default
    if v < lo or v > hi:
        _log("clamp_range", label=label, value=v, context=context, lo=lo, hi=hi)
    return max(lo, min(hi, v))


def round2(value: float) -> float:
    """Round half away from zero to two decimals (Python's round() is banker's)."""
    scaled = abs(value) * 100.0
    rounded = math.floor(scaled + 0.5) / 100.0
    return rounded if value >= 0 else -rounded


def to_int32(value: int) -> int:
    v = int(value) & 0xFFFFFFFF
    if v >= 0x80000000:
        v -= 0x100000000
    return v
