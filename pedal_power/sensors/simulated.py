import logging
from typing import Optional

from .base import ChangeHandler, SensorChannel, SensorError

logger = logging.getLogger(__name__)

SETUP_STEPS = ("connect", "set_change_handler", "open_channel", "set_change_threshold")


class SimulatedSensor(SensorChannel):
    """In-process stand-in for the voltage-ratio channel.

    ``fail_at`` names a setup step that should raise ``SensorError``.
    Change events are produced with ``emit``.
    """

    def __init__(self, fail_at: Optional[str] = None):
        if fail_at is not None and fail_at not in SETUP_STEPS:
            raise ValueError(f"Unknown setup step: {fail_at}")
        self.fail_at = fail_at
        self.connected = False
        self.opened = False
        self.threshold: Optional[float] = None
        self.close_calls = 0
        self.ratio = 0.0
        self._handler: Optional[ChangeHandler] = None

    def _maybe_fail(self, step: str):
        if self.fail_at == step:
            raise SensorError(f"simulated {step} failure")

    async def connect(self) -> None:
        self._maybe_fail("connect")
        self.connected = True

    def set_change_handler(self, handler: ChangeHandler) -> None:
        self._maybe_fail("set_change_handler")
        self._handler = handler

    async def open_channel(self) -> None:
        self._maybe_fail("open_channel")
        self.opened = True

    async def set_change_threshold(self, threshold: float) -> None:
        self._maybe_fail("set_change_threshold")
        self.threshold = threshold

    def close(self) -> None:
        self.close_calls += 1
        self.opened = False
        self.connected = False

    def emit(self, ratio: Optional[float] = None) -> bool:
        """Fire one change event. Returns False when the channel is closed."""
        if ratio is None:
            # alternate between low and high like a magnet passing the sensor
            ratio = 0.0 if self.ratio >= 0.5 else 1.0
        self.ratio = ratio
        if not self.opened or self._handler is None:
            logger.debug(f"Dropped simulated event at ratio {ratio:.3f}")
            return False
        self._handler(ratio)
        return True

    def emit_many(self, count: int) -> int:
        return sum(1 for _ in range(count) if self.emit())
