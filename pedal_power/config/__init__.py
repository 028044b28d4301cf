from .config_loader import load_bike_config

__all__ = ["load_bike_config"]
