from abc import ABC, abstractmethod
from typing import Callable

ChangeHandler = Callable[[float], None]


class SensorError(Exception):
    """Raised when the sensor session or channel cannot be set up."""


class SensorChannel(ABC):
    """Voltage-ratio channel as seen by the pedal.

    Implementations deliver a call to the registered handler whenever the
    ratio moves by at least the configured threshold. The handler may be
    invoked from a thread other than the event loop.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Open the network session to the sensor server"""

    @abstractmethod
    def set_change_handler(self, handler: ChangeHandler) -> None:
        """Register the callback fired on every voltage-ratio change"""

    @abstractmethod
    async def open_channel(self) -> None:
        """Open the voltage-ratio channel"""

    @abstractmethod
    async def set_change_threshold(self, threshold: float) -> None:
        """Set the minimum ratio delta that fires a change event"""

    @abstractmethod
    def close(self) -> None:
        """Close the channel and session; safe to call more than once"""
