from .base import SensorChannel, SensorError
from .simulated import SimulatedSensor

__all__ = ["SensorChannel", "SensorError", "SimulatedSensor"]
