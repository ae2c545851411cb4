"""Stream hourly averages out of a fixed-width time-series feed."""

__version__ = "0.1.0"
