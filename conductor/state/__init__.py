"""
State module for Conductor.

Listener interaction tracking and the context snapshots it produces.
"""

from conductor.state.context import ListeningContext, MetricsSnapshot
from conductor.state.interaction_tracker import InteractionLog, InteractionTracker

__all__ = ["InteractionLog", "InteractionTracker", "ListeningContext", "MetricsSnapshot"]
