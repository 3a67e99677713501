"""Token-authenticated HTTP API over a NadekoBot database."""

__version__ = "0.1.0"
