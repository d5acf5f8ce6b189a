"""Data layer - models, normalization, persistence, and the demo fleet."""

from .persistence import DataStore, get_data_dir
from .models import (
    ArrayStatus,
    ArrayType,
    CapacityInfo,
    Disk,
    DiskArray,
    DiskLocation,
    DiskStatus,
    FleetSnapshot,
    InvalidArrayError,
    Location,
    RiskLevel,
    ServerInfo,
    ServerType,
    WarningSeverity,
)
from .demo import build_demo_arrays, build_demo_fleet

__all__ = [
    "DataStore",
    "get_data_dir",
    "ArrayStatus",
    "ArrayType",
    "CapacityInfo",
    "Disk",
    "DiskArray",
    "DiskLocation",
    "DiskStatus",
    "FleetSnapshot",
    "InvalidArrayError",
    "Location",
    "RiskLevel",
    "ServerInfo",
    "ServerType",
    "WarningSeverity",
    "build_demo_arrays",
    "build_demo_fleet",
]
