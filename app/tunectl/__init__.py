"""tunectl - declarative performance tuning for an Arch Linux desktop."""

__version__ = "0.4.0"
