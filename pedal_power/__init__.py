"""Pedal-driven energy counter for a Phidget voltage-ratio sensor."""

__version__ = "0.1.0"
