import asyncio
import logging
from typing import Optional

from Phidget22.Devices.VoltageRatioInput import VoltageRatioInput
from Phidget22.Net import Net
from Phidget22.PhidgetException import PhidgetException

from .base import ChangeHandler, SensorChannel, SensorError

logger = logging.getLogger(__name__)


class PhidgetVoltageRatioSensor(SensorChannel):
    """Voltage-ratio input reached through a Phidget network server.

    Phidget22 calls block, so they run in a worker thread. Change events
    are delivered on the library's own thread.
    """

    def __init__(self, config: dict):
        self.config = config
        self.channel: Optional[VoltageRatioInput] = None
        self._server_added = False

    async def connect(self) -> None:
        """Register the network server so remote channels can attach"""
        try:
            await asyncio.to_thread(
                Net.addServer,
                self.config['server_name'],
                self.config['host'],
                self.config['port'],
                self.config.get('password', ""),
                0
            )
        except PhidgetException as e:
            raise SensorError(f"Server {self.config['host']}:{self.config['port']} unavailable: {e.details}") from e
        self._server_added = True
        logger.info(f"Registered Phidget server {self.config['host']}:{self.config['port']}")

    def _ensure_channel(self) -> VoltageRatioInput:
        if self.channel is None:
            channel = VoltageRatioInput()
            channel.setIsRemote(True)
            channel.setChannel(self.config.get('channel', 0))
            hub_port = self.config.get('hub_port', -1)
            if hub_port >= 0:
                channel.setHubPort(hub_port)
                channel.setIsHubPortDevice(self.config.get('is_hub_port_device', False))
            self.channel = channel
        return self.channel

    def set_change_handler(self, handler: ChangeHandler) -> None:
        try:
            self._ensure_channel().setOnVoltageRatioChangeHandler(
                lambda ch, voltage_ratio: handler(voltage_ratio)
            )
        except PhidgetException as e:
            raise SensorError(f"Could not register change handler: {e.details}") from e

    async def open_channel(self) -> None:
        channel = self._ensure_channel()
        try:
            await asyncio.to_thread(
                channel.openWaitForAttachment,
                self.config.get('attach_timeout_ms', 5000)
            )
        except PhidgetException as e:
            raise SensorError(f"Failed to open the channel: {e.details}") from e
        logger.info(f"Voltage ratio channel {self.config.get('channel', 0)} attached")

    async def set_change_threshold(self, threshold: float) -> None:
        try:
            await asyncio.to_thread(self._ensure_channel().setVoltageRatioChangeTrigger, threshold)
        except PhidgetException as e:
            raise SensorError(f"Could not set change trigger {threshold}: {e.details}") from e

    def close(self) -> None:
        if self.channel is not None:
            try:
                self.channel.close()
            except PhidgetException as e:
                logger.warning(f"Channel close error: {e.details}")
            self.channel = None
        if self._server_added:
            try:
                Net.removeServer(self.config['server_name'])
            except PhidgetException as e:
                logger.warning(f"Server removal error: {e.details}")
            self._server_added = False
