"""
API module for ledger-monitor.

Exposes the monitor's cached lookups as a small REST API.
"""

from ledger_monitor.api.models import FeaturesResponse, HeightResponse, PopulatedResponse

__all__ = [
    "FeaturesResponse",
    "HeightResponse",
    "PopulatedResponse",
]
