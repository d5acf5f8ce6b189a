"""Controller-agnostic data normalization.

This module provides functions to normalize vendor- and controller-specific
feed values into a consistent format that can be compared across mdadm,
hardware RAID controllers, and storage appliances.

Key normalizations:
1. Array types → Canonical names (RAID1, RAID5, RAID6, RAID10, JBOD)
2. Status values → Canonical disk/array states (healthy, rebuilding, ...)
3. Sizes and speeds → Bytes and bytes/second for computation
4. Durations → "Xh Ym" display strings
"""

from __future__ import annotations

import math
import re
from typing import Any, Optional


# =============================================================================
# Mappings
# =============================================================================

# Free-form array type spellings → canonical names
ARRAY_TYPE_MAP = {
    "raid1": "RAID1",
    "mirror": "RAID1",
    "raid5": "RAID5",
    "raid6": "RAID6",
    "raid10": "RAID10",
    "raid1+0": "RAID10",
    "jbod": "JBOD",
    "none": "JBOD",
    "single": "JBOD",
}

# Controller disk states → normalized disk states
DISK_STATE_MAP = {
    "healthy": "healthy",
    "online": "healthy",
    "optimal": "healthy",
    "active": "healthy",
    "in_sync": "healthy",
    "ok": "healthy",
    "rebuilding": "rebuilding",
    "rebuild": "rebuilding",
    "recovering": "rebuilding",
    "resync": "rebuilding",
    "spare_rebuilding": "rebuilding",
    "failed": "failed",
    "faulty": "failed",
    "offline": "failed",
    "missing": "failed",
    "removed": "failed",
}

# Controller array states → normalized array states
ARRAY_STATE_MAP = {
    "healthy": "healthy",
    "optimal": "healthy",
    "clean": "healthy",
    "active": "healthy",
    "ok": "healthy",
    "rebuilding": "rebuilding",
    "recovering": "rebuilding",
    "resyncing": "rebuilding",
    "degraded": "degraded",
    "partially_degraded": "degraded",
    "failed": "failed",
    "offline": "failed",
    "inactive": "failed",
}

# Decimal units, as drive vendors label capacity
SIZE_UNITS = {
    "": 1,
    "b": 1,
    "kb": 10**3,
    "k": 10**3,
    "mb": 10**6,
    "m": 10**6,
    "gb": 10**9,
    "g": 10**9,
    "tb": 10**12,
    "t": 10**12,
    "pb": 10**15,
    "p": 10**15,
}


# =============================================================================
# Normalization Functions
# =============================================================================


def normalize_array_type(value: Any) -> str:
    """Normalize an array type to its canonical name.

    Args:
        value: Raw type such as "RAID 5", "raid-5", "RAID10", "jbod" or 5

    Returns:
        Canonical name (RAID1, RAID5, RAID6, RAID10, JBOD) or UNKNOWN
    """
    if value is None:
        return "UNKNOWN"
    text = str(value).strip().lower()
    text = re.sub(r"[\s_\-]", "", text)
    if text.isdigit():
        text = f"raid{text}"
    return ARRAY_TYPE_MAP.get(text, "UNKNOWN")


def _normalize_state(value: Any, mapping: dict) -> Optional[str]:
    if value is None:
        return None
    text = re.sub(r"[\s\-]+", "_", str(value).strip().lower())
    return mapping.get(text)


def normalize_disk_status(value: Any) -> Optional[str]:
    """Normalize a disk state to healthy, rebuilding or failed.

    Returns:
        Normalized state, or None if unrecognized
    """
    return _normalize_state(value, DISK_STATE_MAP)


def normalize_array_status(value: Any) -> Optional[str]:
    """Normalize an array state to healthy, rebuilding, degraded or failed.

    Returns:
        Normalized state, or None if unrecognized
    """
    return _normalize_state(value, ARRAY_STATE_MAP)


def parse_size_to_bytes(value: Any) -> Optional[int]:
    """Convert a size to bytes.

    Handles integers (already bytes) and strings: 8TB, 1.92 TB, 960gb, 4000000000

    Returns:
        Size in bytes or None if unparseable
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value) if value >= 0 else None

    match = re.match(r"^\s*([\d.]+)\s*([a-zA-Z]*)\s*$", str(value))
    if not match:
        return None
    unit = match.group(2).lower()
    if unit.endswith("ib"):
        unit = unit[:-2] + "b"
    if unit not in SIZE_UNITS:
        return None
    try:
        return int(round(float(match.group(1)) * SIZE_UNITS[unit]))
    except ValueError:
        return None


def parse_speed_to_bytes_per_second(value: Any) -> Optional[float]:
    """Convert a throughput string like "85 MB/s" to bytes per second.

    Returns:
        Bytes per second, or None for "N/A", zero or unparseable values
    """
    if value is None:
        return None
    text = str(value).strip()
    if "/" in text:
        text = text.split("/", 1)[0]
    size = parse_size_to_bytes(text)
    if not size:
        return None
    return float(size)


def format_bytes(size_bytes: int) -> str:
    """Format bytes as a short decimal size like "8TB" or "960GB"."""
    for unit, factor in (("PB", 10**15), ("TB", 10**12), ("GB", 10**9), ("MB", 10**6), ("KB", 10**3)):
        if size_bytes >= factor:
            value = size_bytes / factor
            if value == int(value):
                return f"{int(value)}{unit}"
            return f"{value:.1f}{unit}"
    return f"{size_bytes}B"


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""
    return int(math.floor(value + 0.5))


def format_eta(remaining_hours: float) -> str:
    """Format a remaining duration in hours as "Xh Ym".

    Args:
        remaining_hours: Remaining time in hours (negative values clamp to 0)

    Returns:
        Display string like "2h 15m" or "0h 0m"
    """
    # Epsilon absorbs float error so 5.7h shows as 5h 42m, not 5h 41m
    total_minutes = int(math.floor(max(0.0, remaining_hours) * 60 + 1e-6))
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}h {minutes}m"
