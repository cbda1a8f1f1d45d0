"""robolive: live telemetry client for a robot inspection fleet."""

__version__ = "0.1.0"
