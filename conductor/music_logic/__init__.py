"""
Music logic module for Conductor.

Probability-weighted track selection and weight learning.
"""

from conductor.music_logic.probability_engine import ProbabilityEngine, TrackFeedback

__all__ = ["ProbabilityEngine", "TrackFeedback"]
