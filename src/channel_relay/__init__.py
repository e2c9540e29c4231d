"""Channel Relay - mirrors Discord channels into other channels."""

__version__ = "0.3.0"
