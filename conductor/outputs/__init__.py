"""
Outputs module for Conductor.

This package contains the audio transport interface and the simulated
transport used when no real decoder is attached.
"""

from .base_transport import AudioTransport, TransportError, TransportEvent
from .simulated_transport import SimulatedTransport

__all__ = [
    "AudioTransport",
    "TransportError",
    "TransportEvent",
    "SimulatedTransport",
]
