import asyncio

import pytest

from pedal_power.pedal_manager import Pedal
from pedal_power.sensors.base import SensorError
from pedal_power.sensors.simulated import SimulatedSensor


def test_connect_runs_full_setup(pedal, sensor):
    assert asyncio.run(pedal.connect()) is True
    assert pedal.is_connected
    assert sensor.connected and sensor.opened
    assert sensor.threshold == 0.05


@pytest.mark.parametrize("events", [0, 1, 2, 5, 10])
def test_laps_is_half_the_event_count(pedal, sensor, events):
    asyncio.run(pedal.connect())
    sensor.emit_many(events)
    assert pedal.total_variation == events
    assert pedal.laps == events / 2


def test_four_events_make_two_laps(pedal, sensor):
    asyncio.run(pedal.connect())
    sensor.emit_many(4)
    assert pedal.laps_since_last_read() == 2


def test_second_read_without_events_is_zero(pedal, sensor):
    asyncio.run(pedal.connect())
    sensor.emit_many(3)
    pedal.laps_since_last_read()
    assert pedal.laps_since_last_read() == 0


def test_odd_event_count_gives_half_lap(pedal, sensor):
    asyncio.run(pedal.connect())
    assert pedal.laps_since_last_read() == 0
    sensor.emit_many(3)
    assert pedal.laps_since_last_read() == 1.5


def test_reading_laps_does_not_move_read_marker(pedal, sensor):
    asyncio.run(pedal.connect())
    sensor.emit_many(4)
    assert pedal.laps == 2
    assert pedal.laps_since_last_read() == 2


@pytest.mark.parametrize("step", ["connect", "set_change_handler", "open_channel", "set_change_threshold"])
def test_setup_failure_leaves_pedal_inert(step):
    sensor = SimulatedSensor(fail_at=step)
    pedal = Pedal(sensor)

    assert asyncio.run(pedal.connect()) is False
    assert not pedal.is_connected
    assert sensor.close_calls == 1

    sensor.opened = True  # hardware keeps talking regardless
    sensor.emit_many(6)
    assert pedal.total_variation == 0
    assert pedal.laps_since_last_read() == 0


def test_setup_failure_is_logged(caplog):
    pedal = Pedal(SimulatedSensor(fail_at="connect"))
    with caplog.at_level("ERROR"):
        asyncio.run(pedal.connect())
    assert "simulated connect failure" in caplog.text


class FlakySensor(SimulatedSensor):
    def __init__(self, failures):
        super().__init__()
        self.failures = failures
        self.attempts = 0

    async def connect(self):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise SensorError("server not up yet")
        await super().connect()


def test_connect_retries_when_configured():
    sensor = FlakySensor(failures=1)
    pedal = Pedal(sensor, connect_attempts=2, retry_wait=0)
    assert asyncio.run(pedal.connect()) is True
    assert sensor.attempts == 2


def test_single_attempt_by_default():
    sensor = FlakySensor(failures=1)
    pedal = Pedal(sensor, retry_wait=0)
    assert asyncio.run(pedal.connect()) is False
    assert sensor.attempts == 1


def test_disconnect_stops_counting(pedal, sensor):
    asyncio.run(pedal.connect())
    sensor.emit_many(2)
    pedal.disconnect()
    pedal.disconnect()
    sensor.emit_many(2)
    assert pedal.total_variation == 2
    assert not pedal.is_connected
