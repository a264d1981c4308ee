"""
Non-Rev Flight Planner backend.

Aggregates flight-status data from aviationstack, caches it in a durable
store and enriches every flight with the seat counts reported by
non-revenue travellers so that connecting flights can be chained in the UI.
"""

__version__ = "0.1.0"
