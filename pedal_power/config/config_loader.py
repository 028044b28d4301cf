import yaml
from pathlib import Path

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "configs" / "pedal_power.yaml"


def load_bike_config(config_path=DEFAULT_CONFIG_PATH) -> dict:
    """Loads pedal sensor and bike settings from pedal_power.yaml"""
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Bike config not found at {config_path}")

    with open(config_path) as f:
        config = yaml.safe_load(f) or {}

    try:
        pedal = config["devices"]["pedal"]
        sensor = {
            "host": pedal["host"],
            "port": int(pedal["port"]),
            "server_name": pedal.get("server_name", "pedal_power"),
            "password": pedal.get("password", ""),
            "channel": int(pedal.get("channel", 0)),
            "hub_port": int(pedal.get("hub_port", -1)),
            "is_hub_port_device": bool(pedal.get("is_hub_port_device", False)),
            "attach_timeout_ms": int(pedal.get("attach_timeout_ms", 5000)),
        }
    except KeyError as e:
        raise ValueError(f"Missing required key in bike config: {e}")

    bike = config.get("bike", {})
    result = {
        "sensor": sensor,
        "change_trigger": float(pedal.get("change_trigger", 0.05)),
        "tick_period": float(bike.get("tick_period", 0.5)),
        "connect_attempts": int(bike.get("connect_attempts", 1)),
        "initial_energy": float(config.get("battery", {}).get("initial_energy", 0)),
    }

    if result["tick_period"] <= 0:
        raise ValueError(f"tick_period must be positive, got {result['tick_period']}")
    if result["connect_attempts"] < 1:
        raise ValueError(f"connect_attempts must be at least 1, got {result['connect_attempts']}")
    if not 0 < result["change_trigger"] <= 1:
        raise ValueError(f"change_trigger must be within (0, 1], got {result['change_trigger']}")

    return result
