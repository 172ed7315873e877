"""pairctl - remote-pairing session controller."""

__version__ = "0.1.0"
