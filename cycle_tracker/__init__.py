"""Cycle Tracker — personal menstrual cycle tracking service."""

__version__ = "0.1.0"
