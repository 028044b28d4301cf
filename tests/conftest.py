import pytest

from pedal_power.pedal_manager import Pedal
from pedal_power.sensors.simulated import SimulatedSensor


@pytest.fixture
def sensor():
    return SimulatedSensor()


@pytest.fixture
def pedal(sensor):
    return Pedal(sensor)
