"""StellarCast: star position, distance and velocity forecasting."""

__version__ = "1.0.0"
