import textwrap
from pathlib import Path

import pytest

from pedal_power.config import load_bike_config
from pedal_power.config.config_loader import DEFAULT_CONFIG_PATH


def write_config(tmp_path, body):
    path = tmp_path / "pedal_power.yaml"
    path.write_text(textwrap.dedent(body))
    return path


def test_shipped_config_loads():
    config = load_bike_config(DEFAULT_CONFIG_PATH)
    assert config["sensor"]["host"] == "localhost"
    assert config["sensor"]["port"] == 8989
    assert config["change_trigger"] == 0.05
    assert config["tick_period"] == 0.5
    assert config["connect_attempts"] == 1


def test_optional_keys_default(tmp_path):
    path = write_config(tmp_path, """
        devices:
          pedal:
            host: 10.0.0.5
            port: 5661
    """)
    config = load_bike_config(path)
    assert config["sensor"] == {
        "host": "10.0.0.5",
        "port": 5661,
        "server_name": "pedal_power",
        "password": "",
        "channel": 0,
        "hub_port": -1,
        "is_hub_port_device": False,
        "attach_timeout_ms": 5000,
    }
    assert config["initial_energy"] == 0.0


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_bike_config(tmp_path / "nope.yaml")


def test_missing_required_key(tmp_path):
    path = write_config(tmp_path, """
        devices:
          pedal:
            host: localhost
    """)
    with pytest.raises(ValueError, match="Missing required key"):
        load_bike_config(path)


@pytest.mark.parametrize("section,key,value", [
    ("bike", "tick_period", 0),
    ("bike", "connect_attempts", 0),
    ("pedal", "change_trigger", 2),
])
def test_invalid_values_rejected(tmp_path, section, key, value):
    pedal_extra = f"    {key}: {value}\n" if section == "pedal" else ""
    bike_extra = f"bike:\n  {key}: {value}\n" if section == "bike" else ""
    path = tmp_path / "pedal_power.yaml"
    path.write_text(
        "devices:\n  pedal:\n    host: localhost\n    port: 8989\n"
        + pedal_extra + bike_extra
    )
    with pytest.raises(ValueError, match=key):
        load_bike_config(path)


def test_default_config_ships_inside_package():
    import pedal_power

    package_dir = Path(pedal_power.__file__).parent
    assert DEFAULT_CONFIG_PATH == package_dir / "configs" / "pedal_power.yaml"
    assert DEFAULT_CONFIG_PATH.exists()
    assert load_bike_config()["sensor"]["port"] == 8989
