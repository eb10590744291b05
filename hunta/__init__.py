"""Hunta - second-hand marketplace search aggregator."""

__version__ = "2.0.0"
