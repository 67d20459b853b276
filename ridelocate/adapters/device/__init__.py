"""Device adapters - Implementations of the device ports.

Available implementations:
- SimulatedDevice: In-process permission and position provider
"""

from .simulated import PositionUnavailable, SimulatedDevice

__all__ = ["SimulatedDevice", "PositionUnavailable"]
