"""Insights module - risk classification, hazard warnings, and fleet aggregation."""

from .risk import classify, highest_risk, RISK_ORDER
from .hazards import advise, assess, ArrayAssessment, HazardWarning
from .fleet import FleetFilters, FleetSummary, filter_arrays, filter_disks, filter_options, summarize

__all__ = [
    "classify",
    "highest_risk",
    "RISK_ORDER",
    "advise",
    "assess",
    "ArrayAssessment",
    "HazardWarning",
    "FleetFilters",
    "FleetSummary",
    "filter_arrays",
    "filter_disks",
    "filter_options",
    "summarize",
]
