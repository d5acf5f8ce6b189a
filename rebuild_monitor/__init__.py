"""Disk Rebuild Monitor - rebuild risk tracking for RAID and JBOD fleets."""

__version__ = "1.0.0"
