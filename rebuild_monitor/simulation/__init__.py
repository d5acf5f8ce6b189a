"""Simulation module - rebuild progress for fleets without live telemetry."""

from .progress import ProgressSimulator, complete_rebuild, disk_rebuild_progress

__all__ = [
    "ProgressSimulator",
    "complete_rebuild",
    "disk_rebuild_progress",
]
