#!/usr/bin/env python
import argparse
import asyncio
import logging
import signal
import sys
from datetime import datetime
from typing import Optional

from pedal_power.bike import Bike
from pedal_power.config import load_bike_config
from pedal_power.config.config_loader import DEFAULT_CONFIG_PATH
from pedal_power.main import build_bike

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def setup_logging():
    """Configure logging with precise timestamps."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S',
        handlers=[
            logging.FileHandler('pedal_monitor.log'),
            logging.StreamHandler()
        ]
    )


class PedalMonitor:
    def __init__(self, bike: Bike):
        setup_logging()
        self.logger = logging.getLogger('Monitor')
        self.bike = bike
        self._shutdown: Optional[asyncio.Event] = None

    def _handle_signal(self):
        self.logger.critical("SHUTDOWN SIGNAL RECEIVED")
        if self._shutdown is not None:
            self._shutdown.set()

    def display(self, snapshot):
        print(f"\033[1;36m[{datetime.now().strftime('%H:%M:%S')}] "
              f"\033[1;32mEnergy:\033[0m {snapshot['energy']:.1f} | "
              f"\033[1;33mLaps:\033[0m {snapshot['laps']:.1f}",
              end='\r')

    async def run(self):
        self._shutdown = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            loop.add_signal_handler(sig, self._handle_signal)

        self.bike.callback = self.display
        self.logger.info("Starting pedal monitor")
        try:
            async with self.bike:
                if not self.bike.pedal.is_connected:
                    self.logger.warning("Pedal sensor unavailable, energy will not accrue")
                await self._shutdown.wait()
        finally:
            for sig in SHUTDOWN_SIGNALS:
                loop.remove_signal_handler(sig)
        self.logger.info(f"Monitor stopped at {self.bike.battery.total():.1f} energy")


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH))
    args = parser.parse_args()

    try:
        monitor = PedalMonitor(build_bike(load_bike_config(args.config), simulate=False))
        asyncio.run(monitor.run())
    except Exception as e:
        logging.critical(f"Application crash: {str(e)}")
        sys.exit(1)
