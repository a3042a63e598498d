"""Tripboard: live per-region trip counters shared over WebSocket."""

__version__ = "1.0.0"
