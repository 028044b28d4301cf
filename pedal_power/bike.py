import asyncio
import inspect
import logging
from datetime import datetime
from typing import Awaitable, Callable, Dict, Optional, Union

from .battery import Battery
from .pedal_manager import DEFAULT_CHANGE_TRIGGER, Pedal
from .sensors.base import SensorChannel

logger = logging.getLogger(__name__)

DEFAULT_TICK_PERIOD = 0.5

TickCallback = Callable[[Dict], Union[None, Awaitable[None]]]


class Ticker:
    """Calls ``func`` every ``period`` seconds on the running event loop."""

    def __init__(self, period: float, func: Callable[[], Awaitable[None]]):
        if period <= 0:
            raise ValueError(f"Tick period must be positive, got {period}")
        self.period = period
        self.func = func
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run())

    async def _run(self):
        while True:
            await asyncio.sleep(self.period)
            await self.func()

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None


class Bike:
    """Moves laps from the pedal into the battery on a fixed period.

    Use as ``async with Bike(sensor) as bike:`` or call ``start``/``stop``.
    """

    def __init__(self, sensor: SensorChannel, tick_period: float = DEFAULT_TICK_PERIOD,
                 change_trigger: float = DEFAULT_CHANGE_TRIGGER, connect_attempts: int = 1,
                 initial_energy: float = 0.0):
        self.pedal = Pedal(sensor, change_trigger=change_trigger, connect_attempts=connect_attempts)
        self.battery = Battery(initial_energy)
        self.ticker = Ticker(tick_period, self.tick)
        self.callback: Optional[TickCallback] = None

    @classmethod
    def from_config(cls, config: Dict, sensor: SensorChannel) -> "Bike":
        return cls(
            sensor,
            tick_period=config['tick_period'],
            change_trigger=config['change_trigger'],
            connect_attempts=config['connect_attempts'],
            initial_energy=config['initial_energy']
        )

    @property
    def is_running(self) -> bool:
        return self.ticker.is_running

    async def start(self):
        if self.is_running:
            return
        await self.pedal.connect()
        self.ticker.start()
        logger.info(f"Bike started, ticking every {self.ticker.period}s")

    async def stop(self):
        await self.ticker.stop()
        self.pedal.disconnect()
        logger.info(f"Bike stopped with {self.battery.total():.1f} energy")

    async def __aenter__(self) -> "Bike":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()

    def snapshot(self, fed: float = 0.0) -> Dict:
        return {
            'energy': self.battery.total(),
            'laps': self.pedal.laps,
            'fed': fed,
            'pedal_connected': self.pedal.is_connected,
            'timestamp': datetime.now().isoformat()
        }

    async def tick(self):
        """Feed laps accrued since the last tick into the battery"""
        fed = self.pedal.laps_since_last_read()
        self.battery.feed(fed)
        if fed:
            logger.debug(f"Fed {fed} laps, energy now {self.battery.total()}")

        if not self.callback:
            return
        try:
            result = self.callback(self.snapshot(fed))
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Tick callback error: {str(e)}")
