import logging
import threading

from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from .sensors.base import SensorChannel

logger = logging.getLogger(__name__)

DEFAULT_CHANGE_TRIGGER = 0.05
# rising and falling edge per magnet pass
EVENTS_PER_LAP = 2


class Pedal:
    """Counts voltage-ratio change events and turns them into laps.

    Events come in on the sensor's thread while reads happen on the event
    loop, so the counters are guarded by a lock.
    """

    def __init__(self, sensor: SensorChannel, change_trigger: float = DEFAULT_CHANGE_TRIGGER,
                 connect_attempts: int = 1, retry_wait: float = 2.0):
        self.sensor = sensor
        self.change_trigger = change_trigger
        self.connect_attempts = connect_attempts
        self.retry_wait = retry_wait
        self._lock = threading.Lock()
        self._total_variation = 0
        self._last_read_laps = 0.0
        self._is_connected = False

    @property
    def is_connected(self) -> bool:
        return self._is_connected

    @property
    def total_variation(self) -> int:
        with self._lock:
            return self._total_variation

    @property
    def laps(self) -> float:
        """Full pedal rotations seen so far. Does not touch the read marker."""
        with self._lock:
            return self._total_variation / EVENTS_PER_LAP

    def laps_since_last_read(self) -> float:
        """Return laps accrued since the previous call and move the marker"""
        with self._lock:
            laps = self._total_variation / EVENTS_PER_LAP
            delta = abs(self._last_read_laps - laps)
            self._last_read_laps = laps
        return delta

    def _handle_voltage_change(self, voltage_ratio: float):
        if not self._is_connected:
            return
        with self._lock:
            self._total_variation += 1
            count = self._total_variation
        logger.debug(f"Change event #{count} at ratio {voltage_ratio:.3f}")

    async def _setup(self):
        await self.sensor.connect()
        self.sensor.set_change_handler(self._handle_voltage_change)
        await self.sensor.open_channel()
        await self.sensor.set_change_threshold(self.change_trigger)

    async def connect(self) -> bool:
        """Run the sensor setup sequence.

        Failures close the channel and are logged, never raised. Returns the
        resulting connection state.
        """
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.connect_attempts),
                wait=wait_exponential(multiplier=self.retry_wait / 2,
                                      min=self.retry_wait, max=5 * self.retry_wait),
                reraise=True
            ):
                with attempt:
                    try:
                        await self._setup()
                    except Exception as e:
                        self.sensor.close()
                        logger.error(f"Pedal sensor setup failed: {str(e)}")
                        raise
        except Exception:
            self._is_connected = False
            return False

        self._is_connected = True
        logger.info(f"Pedal sensor ready (change trigger {self.change_trigger})")
        return True

    def disconnect(self):
        """Close the sensor; safe to call more than once"""
        if self._is_connected:
            logger.info("Disconnecting pedal sensor")
        self._is_connected = False
        self.sensor.close()
